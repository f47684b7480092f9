"""
Abstract bases shared by services, guests, appointments and notifications.
"""
import uuid
from django.db import models


class UUIDModel(models.Model):
    """UUID primary key; appointment ids travel in URLs and messages."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class TimestampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class BaseModel(UUIDModel, TimestampedModel):
    class Meta:
        abstract = True

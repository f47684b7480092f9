"""
Account profile — role and contact details layered on Django's User.

A user whose profile role is OWNER is a professional: they own services,
a weekly schedule, and the appointments booked against them.
"""
from django.conf import settings
from django.db import models
from apps.core.models import BaseModel


class Role(models.TextChoices):
    OWNER  = 'owner',  'Owner'
    CLIENT = 'client', 'Client'


class Profile(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='profile',
    )
    role = models.CharField(
        max_length=10, choices=Role.choices, default=Role.CLIENT, db_index=True,
    )
    display_name = models.CharField(max_length=120, blank=True)
    phone = models.CharField(max_length=20, blank=True)

    class Meta:
        verbose_name = 'Profile'
        verbose_name_plural = 'Profiles'
        ordering = ['display_name']

    def __str__(self):
        return f"{self.name} ({self.get_role_display()})"

    @property
    def name(self):
        return self.display_name or self.user.get_full_name() or self.user.get_username()


def display_name_for(user) -> str:
    """Best available display name for a user, with or without a profile."""
    profile = getattr(user, 'profile', None)
    if profile is not None:
        return profile.name
    return user.get_full_name() or user.get_username()


def phone_for(user) -> str:
    profile = getattr(user, 'profile', None)
    return profile.phone if profile is not None else ''

"""
In-app notifications shown to a signed-in user (owner or client).
"""
from django.conf import settings
from django.db import models
from apps.core.models import BaseModel


class NotificationType(models.TextChoices):
    APPOINTMENT = 'appointment', 'Appointment'
    PAYMENT     = 'payment',     'Payment'
    SYSTEM      = 'system',      'System'


class Notification(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications',
    )
    title = models.CharField(max_length=200)
    message = models.TextField()
    type = models.CharField(max_length=20, choices=NotificationType.choices, default=NotificationType.SYSTEM)
    read = models.BooleanField(default=False, db_index=True)
    data = models.JSONField(default=dict, blank=True)

    class Meta:
        verbose_name = 'Notification'
        verbose_name_plural = 'Notifications'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} → {self.user}"

    def mark_read(self):
        if not self.read:
            self.read = True
            self.save(update_fields=['read', 'updated_at'])

    def as_json(self) -> dict:
        return {
            'id': str(self.id),
            'title': self.title,
            'message': self.message,
            'type': self.type,
            'read': self.read,
            'data': self.data,
            'createdAt': self.created_at.isoformat(),
        }

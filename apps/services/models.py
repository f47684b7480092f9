"""
Service catalogue and Business Hours Store.

  Service            — offered by exactly one professional; duration drives
                       the slot grid.
  BusinessHourWindow — per professional, per weekday open/close window.
                       Several windows per weekday are allowed (split shifts).

Weekday numbering follows the booking clients: 0=Sunday .. 6=Saturday.
Python's date.weekday() is Monday=0, so always go through weekday_of().
"""
from datetime import date as date_type
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from apps.accounts.models import display_name_for
from apps.core.models import BaseModel


WEEKDAY_CHOICES = [
    (0, 'Sunday'), (1, 'Monday'), (2, 'Tuesday'), (3, 'Wednesday'),
    (4, 'Thursday'), (5, 'Friday'), (6, 'Saturday'),
]


def weekday_of(day: date_type) -> int:
    """0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


class Service(BaseModel):
    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='services_offered',
    )
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text='Session duration in minutes; also the slot grid step',
    )
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        verbose_name = 'Service'
        verbose_name_plural = 'Services'
        ordering = ['name', 'duration_minutes']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(duration_minutes__gt=0),
                name='ck_service_duration_positive',
            )
        ]

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min)"

    def as_json(self) -> dict:
        return {
            'id': str(self.id),
            'professionalId': self.professional_id,
            'professionalName': display_name_for(self.professional),
            'name': self.name,
            'description': self.description,
            'price': str(self.price),
            'duration': self.duration_minutes,
        }


class BusinessHourWindow(BaseModel):
    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='business_hours',
    )
    day_of_week = models.IntegerField(choices=WEEKDAY_CHOICES, db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField()

    class Meta:
        verbose_name = 'Business Hour Window'
        verbose_name_plural = 'Business Hour Windows'
        ordering = ['professional', 'day_of_week', 'start_time']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F('start_time')),
                name='ck_business_hours_end_after_start',
            )
        ]

    def __str__(self):
        return (
            f"{self.get_day_of_week_display()} "
            f"{self.start_time.strftime('%H:%M')}–{self.end_time.strftime('%H:%M')}"
        )

    def as_json(self) -> dict:
        return {
            'id': str(self.id),
            'professionalId': self.professional_id,
            'dayOfWeek': self.day_of_week,
            'startTime': self.start_time.strftime('%H:%M'),
            'endTime': self.end_time.strftime('%H:%M'),
        }

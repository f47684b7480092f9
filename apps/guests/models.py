"""
Guest model — a booking customer without a user account.

The guest client id is an opaque token issued on the first guest booking
and stored by the client app, so later bookings from the same device merge
under one id. It is a correlator, not a credential.

Phone normalisation keeps only digits so the messaging channel receives the
same number however the guest typed it:
  +55 (11) 98765-4321  →  5511987654321
  (11) 98765-4321      →  11987654321
"""
import re
import uuid
from django.db import models
from apps.core.models import UUIDModel, TimestampedModel

MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15   # E.164 upper bound


def normalize_phone(raw: str) -> str:
    """
    Strip everything but digits and check the length is plausible.

    Raises ValueError if the result is not 10–15 digits.
    """
    digits = re.sub(r'\D', '', raw or '')
    if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
        raise ValueError(
            f"Cannot normalise phone number '{raw}' — "
            f"expected {MIN_PHONE_DIGITS}-{MAX_PHONE_DIGITS} digits, got {len(digits)}."
        )
    return digits


def new_client_id() -> str:
    return uuid.uuid4().hex


class Guest(UUIDModel, TimestampedModel):
    client_id = models.CharField(max_length=64, unique=True, default=new_client_id)
    name = models.CharField(max_length=120)
    phone = models.CharField(max_length=20, db_index=True)
    email = models.EmailField(blank=True)

    class Meta:
        verbose_name = 'Guest'
        verbose_name_plural = 'Guests'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.phone})"

    @classmethod
    def get_or_create_by_client_id(cls, client_id, name, phone, email=''):
        """
        Canonical guest lookup by client id; issues a fresh id when none given.
        Updates name, phone and email on subsequent bookings by the same guest.
        """
        if not client_id:
            return cls.objects.create(name=name, phone=phone, email=email), True

        guest, created = cls.objects.get_or_create(
            client_id=client_id,
            defaults={'name': name, 'phone': phone, 'email': email},
        )
        if not created:
            # Keep most-recent contact details
            update_fields = []
            for field, value in (('name', name), ('phone', phone), ('email', email)):
                if value and getattr(guest, field) != value:
                    setattr(guest, field, value)
                    update_fields.append(field)
            if update_fields:
                update_fields.append('updated_at')
                guest.save(update_fields=update_fields)
        return guest, created

"""
Bookings app models:
  - Appointment          : Core booking record with state machine
  - AppointmentStatusLog : Full audit trail of state transitions

An appointment occupies the half-open interval [start_at, end_at) on its
professional's calendar while it is CONFIRMED, or while it is
PENDING_VERIFICATION and its expires_at is still in the future.
"""
from django.conf import settings
from django.db import models
from django.utils import timezone
from django.core.validators import MinValueValidator
from apps.accounts.models import display_name_for
from apps.core.models import BaseModel, UUIDModel
from apps.guests.models import Guest
from apps.services.models import Service


# ── Appointment State Machine ─────────────────────────────────────────────────

class AppointmentStatus(models.TextChoices):
    PENDING_VERIFICATION = 'pending_verification', 'Pending Verification'
    CONFIRMED            = 'confirmed',            'Confirmed'
    EXPIRED              = 'expired',              'Expired'
    CANCELLED            = 'cancelled',            'Cancelled'


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PAID    = 'paid',    'Paid'


class AppointmentQuerySet(models.QuerySet):
    def occupying(self, now=None):
        """Appointments that currently hold their slot."""
        now = now or timezone.now()
        return self.filter(
            models.Q(status=AppointmentStatus.CONFIRMED)
            | models.Q(status=AppointmentStatus.PENDING_VERIFICATION, expires_at__gt=now)
        )

    def overlapping(self, start, end):
        """Appointments whose [start_at, end_at) intersects [start, end)."""
        return self.filter(start_at__lt=end, end_at__gt=start)

    def stale_pending(self, now=None):
        now = now or timezone.now()
        return self.filter(
            status=AppointmentStatus.PENDING_VERIFICATION,
            expires_at__lte=now,
        )


class Appointment(BaseModel):
    """
    Created in PENDING_VERIFICATION by the verification handshake.
    Status transitions go through the explicit methods below, never direct
    field writes, so every change lands in the status log.
    """
    service = models.ForeignKey(Service, on_delete=models.PROTECT, related_name='appointments')
    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='appointments_received',
    )

    # Client identity: exactly one of these is set
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, null=True, blank=True,
        related_name='appointments_booked',
    )
    guest = models.ForeignKey(
        Guest, on_delete=models.PROTECT, null=True, blank=True, related_name='appointments',
    )
    contact_phone = models.CharField(max_length=20, help_text='Number the verification code was sent to')

    start_at = models.DateTimeField(db_index=True)
    end_at = models.DateTimeField(db_index=True)
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text='service.duration_minutes at time of booking',
    )
    price = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        validators=[MinValueValidator(0)],
        help_text='service.price at time of booking',
    )

    status = models.CharField(
        max_length=24, choices=AppointmentStatus.choices,
        default=AppointmentStatus.PENDING_VERIFICATION, db_index=True,
    )
    payment_status = models.CharField(
        max_length=10, choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )

    # Verification handshake (cleared once confirmed)
    verification_code = models.CharField(max_length=12, blank=True)
    verification_attempts = models.PositiveSmallIntegerField(default=0)
    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = AppointmentQuerySet.as_manager()

    class Meta:
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        ordering = ['start_at']
        # DB-level guard: no two CONFIRMED appointments for same professional+start
        constraints = [
            models.UniqueConstraint(
                fields=['professional', 'start_at'],
                condition=models.Q(status='confirmed'),
                name='uq_confirmed_appointment_slot',
            )
        ]

    def __str__(self):
        return f"#{self.id_short} | {self.client_name} | {self.service.name} | {self.start_at:%Y-%m-%d %H:%M}"

    @property
    def id_short(self):
        """Returns the first 8 chars of UUID in uppercase."""
        return str(self.id)[:8].upper()

    @property
    def client_name(self):
        if self.guest_id:
            return self.guest.name
        if self.client_id:
            return display_name_for(self.client)
        return 'Client'

    @property
    def guest_client_id(self):
        return self.guest.client_id if self.guest_id else None

    def is_pending_expired(self, now=None):
        now = now or timezone.now()
        return (
            self.status == AppointmentStatus.PENDING_VERIFICATION
            and self.expires_at is not None
            and self.expires_at <= now
        )

    # ── State transition helpers ──────────────────────────────────────────────

    def confirm(self, changed_by='system'):
        """Transition to CONFIRMED after the code matched."""
        self._transition(AppointmentStatus.CONFIRMED, changed_by)
        self.verification_code = ''
        self.expires_at = None
        self.save(update_fields=['status', 'verification_code', 'expires_at', 'updated_at'])

    def cancel(self, changed_by='client', reason=''):
        self._transition(AppointmentStatus.CANCELLED, changed_by, reason)
        self.verification_code = ''
        self.save(update_fields=['status', 'verification_code', 'updated_at'])

    def expire(self, changed_by='system', reason=''):
        """Verification window elapsed or attempts exhausted."""
        self._transition(AppointmentStatus.EXPIRED, changed_by, reason)
        self.verification_code = ''
        self.save(update_fields=['status', 'verification_code', 'updated_at'])

    def mark_paid(self):
        self.payment_status = PaymentStatus.PAID
        self.save(update_fields=['payment_status', 'updated_at'])

    def _transition(self, new_status, changed_by, reason=''):
        old_status = self.status
        self.status = new_status
        AppointmentStatusLog.objects.create(
            appointment=self,
            from_status=old_status,
            to_status=new_status,
            changed_by=changed_by,
            reason=reason,
        )

    def as_json(self) -> dict:
        return {
            'id': str(self.id),
            'appointmentDate': timezone.localtime(self.start_at).isoformat(),
            'endDate': timezone.localtime(self.end_at).isoformat(),
            'status': self.status,
            'paymentStatus': self.payment_status,
            'serviceId': str(self.service_id),
            'serviceName': self.service.name,
            'servicePrice': str(self.price),
            'duration': self.duration_minutes,
            'professionalId': self.professional_id,
            'professionalName': display_name_for(self.professional),
            'clientName': self.client_name,
            'guestClientId': self.guest_client_id,
        }


# ── Appointment Audit Log ─────────────────────────────────────────────────────

class AppointmentStatusLog(UUIDModel):
    """Immutable audit trail of every status transition on an appointment."""
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='status_logs')
    from_status = models.CharField(max_length=24, choices=AppointmentStatus.choices, blank=True)
    to_status = models.CharField(max_length=24, choices=AppointmentStatus.choices)
    changed_by = models.CharField(max_length=80, help_text='system / client / guest / owner / cron')
    reason = models.TextField(blank=True)
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Appointment Status Log'
        verbose_name_plural = 'Appointment Status Logs'
        ordering = ['changed_at']

    def __str__(self):
        return f"Appointment {str(self.appointment_id)[:8]}: {self.from_status} → {self.to_status}"

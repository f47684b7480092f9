"""
Verification handshake — a pending appointment is held for a short TTL
while a one-time code travels to the client's phone; submitting the code
confirms it.

Public API:
  request_code(service_id, start_at, identity, phone, guest_name='', guest_email='')
  verify_code(appointment_id, code)

Concurrency: both steps lock the professional's user row with
SELECT ... FOR UPDATE before checking for overlaps, so bookings against the
same professional serialise in the database. Messages are sent after the
transaction has committed; no row lock is held across network I/O.
"""
import hmac
import logging
import secrets
import string
from datetime import datetime, timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.guests.models import Guest, normalize_phone
from apps.notifications.alerts import notify_appointment_confirmed, verification_code_text
from apps.notifications.messaging import MessagingError, send_message

from .engine import get_service, occupying_appointments, parse_uuid, slots_for_day
from .exceptions import (
    CodeMismatchError,
    InvalidStateError,
    NotFoundError,
    NotificationFailedError,
    SlotConflictError,
    ValidationError,
    VerificationExpiredError,
)
from .models import Appointment, AppointmentStatus, AppointmentStatusLog

logger = logging.getLogger(__name__)


def generate_code(length: int = None) -> str:
    """Uniformly random numeric code, e.g. '048213'."""
    length = length or settings.VERIFICATION_CODE_LENGTH
    return ''.join(secrets.choice(string.digits) for _ in range(length))


def _lock_professional(professional_id):
    return get_user_model().objects.select_for_update().get(pk=professional_id)


def _locked_appointments():
    # Lock only the appointment row; PostgreSQL refuses FOR UPDATE across the
    # nullable guest join.
    return (
        Appointment.objects
        .select_for_update(of=('self',))
        .select_related('service', 'guest')
    )


def _aware(start_at: datetime) -> datetime:
    if timezone.is_naive(start_at):
        return timezone.make_aware(start_at)
    return start_at


def _validate_slot(service, start_at: datetime, now: datetime) -> None:
    if start_at <= now:
        raise ValidationError('Cannot book a time in the past.', appointment_date=start_at.isoformat())

    local = timezone.localtime(start_at)
    slot = local.strftime('%H:%M')
    on_grid = local.second == 0 and local.microsecond == 0
    if not on_grid or slot not in slots_for_day(service, local.date()):
        raise ValidationError(
            'The requested time is not one of the available slots for this service.',
            date=local.date().isoformat(), time=slot,
        )


def _validate_contact(identity, phone, guest_name, guest_email):
    try:
        digits = normalize_phone(phone)
    except ValueError as exc:
        raise ValidationError('Please enter a valid phone number.', field='phone') from exc

    if identity.is_authenticated:
        return digits, '', ''

    guest_name = (guest_name or '').strip()
    guest_email = (guest_email or '').strip().lower()
    if not guest_name:
        raise ValidationError('Please enter your name.', field='guestName')
    if not guest_email:
        raise ValidationError('Please enter your email address.', field='guestEmail')
    try:
        validate_email(guest_email)
    except DjangoValidationError as exc:
        raise ValidationError('Please enter a valid email address.', field='guestEmail') from exc
    return digits, guest_name, guest_email


def _own_pending(service, start_at, identity, guest):
    """The caller's earlier pending request for this exact slot, if any."""
    qs = Appointment.objects.filter(
        service=service,
        start_at=start_at,
        status=AppointmentStatus.PENDING_VERIFICATION,
    )
    if identity.is_authenticated:
        qs = qs.filter(client_id=identity.user_id)
    elif guest is not None:
        qs = qs.filter(guest=guest)
    else:
        return None
    return qs.first()


# ── Step 1: request a code ────────────────────────────────────────────────────

def request_code(service_id, start_at: datetime, identity, phone: str,
                 guest_name: str = '', guest_email: str = '') -> Appointment:
    """
    Hold the slot in PENDING_VERIFICATION and send a code to `phone`.

    Raises:
      NotFoundError           — unknown or inactive service
      ValidationError         — bad phone/name/email, past or off-grid time
      SlotConflictError       — slot overlaps an occupying appointment
      NotificationFailedError — the code could not be delivered; nothing kept
    """
    service = get_service(service_id)
    start_at = _aware(start_at)
    now = timezone.now()
    _validate_slot(service, start_at, now)
    digits, guest_name, guest_email = _validate_contact(identity, phone, guest_name, guest_email)

    end_at = start_at + timedelta(minutes=service.duration_minutes)
    code = generate_code()
    expires_at = now + timedelta(minutes=settings.PENDING_VERIFICATION_TTL_MINUTES)

    with transaction.atomic():
        _lock_professional(service.professional_id)

        guest, guest_created = None, False
        if not identity.is_authenticated:
            guest, guest_created = Guest.get_or_create_by_client_id(
                identity.guest_client_id, guest_name, digits, guest_email,
            )

        appointment = _own_pending(service, start_at, identity, guest)
        conflicts = occupying_appointments(
            service.professional_id, start_at, end_at,
            exclude_id=appointment.pk if appointment else None, now=now,
        )
        if conflicts.exists():
            logger.info(
                'Slot conflict: service %s at %s for professional %s',
                service.id, start_at, service.professional_id,
            )
            raise SlotConflictError(
                'This time was just taken. Please choose a different slot.',
                appointment_date=start_at.isoformat(),
            )

        if appointment is not None:
            appointment.contact_phone = digits
            appointment.verification_code = code
            appointment.verification_attempts = 0
            appointment.expires_at = expires_at
            appointment.save(update_fields=[
                'contact_phone', 'verification_code', 'verification_attempts',
                'expires_at', 'updated_at',
            ])
            logger.info('Verification code re-issued for appointment %s', appointment.id_short)
        else:
            appointment = Appointment.objects.create(
                service=service,
                professional_id=service.professional_id,
                client_id=identity.user_id,
                guest=guest,
                contact_phone=digits,
                start_at=start_at,
                end_at=end_at,
                duration_minutes=service.duration_minutes,
                price=service.price,
                status=AppointmentStatus.PENDING_VERIFICATION,
                verification_code=code,
                verification_attempts=0,
                expires_at=expires_at,
            )
            AppointmentStatusLog.objects.create(
                appointment=appointment,
                from_status='',
                to_status=AppointmentStatus.PENDING_VERIFICATION,
                changed_by='client' if identity.is_authenticated else 'guest',
                reason='Verification code requested',
            )
            logger.info(
                'Appointment %s pending verification: service %s at %s',
                appointment.id_short, service.id, start_at,
            )

    try:
        send_message(digits, verification_code_text(appointment, code))
    except Exception as exc:
        logger.error(
            'Verification code for appointment %s not delivered; releasing slot: %s',
            appointment.id_short, exc,
        )
        appointment.delete()
        if guest_created:
            guest.delete()
        if not isinstance(exc, MessagingError):
            raise
        raise NotificationFailedError(
            'We could not send the verification code. Please try again.',
        ) from exc

    return appointment


# ── Step 2: verify the code ───────────────────────────────────────────────────

def verify_code(appointment_id, code: str) -> Appointment:
    """
    Confirm a pending appointment when `code` matches.

    Failed attempts are persisted before the error is raised; the final
    allowed failure expires the appointment.

    Raises:
      NotFoundError            — unknown appointment
      InvalidStateError        — appointment is not pending verification
      VerificationExpiredError — TTL elapsed or attempts exhausted
      CodeMismatchError        — wrong code, attempts remain
      SlotConflictError        — another confirmed booking took the slot
    """
    pk = parse_uuid(appointment_id, 'Appointment')
    professional_id = (
        Appointment.objects.filter(pk=pk).values_list('professional_id', flat=True).first()
    )
    if professional_id is None:
        raise NotFoundError('Appointment not found.', appointment_id=str(appointment_id))

    error = None
    with transaction.atomic():
        _lock_professional(professional_id)
        appointment = _locked_appointments().get(pk=pk)
        changed_by = 'guest' if appointment.guest_id else 'client'

        if appointment.status != AppointmentStatus.PENDING_VERIFICATION:
            raise InvalidStateError(
                'This appointment is not awaiting verification.', status=appointment.status,
            )

        if appointment.is_pending_expired():
            appointment.expire(changed_by='system', reason='Verification window elapsed')
            error = VerificationExpiredError('The verification code has expired. Please book again.')

        elif not hmac.compare_digest(
            str(code or '').strip().encode(), appointment.verification_code.encode(),
        ):
            appointment.verification_attempts += 1
            remaining = settings.VERIFICATION_MAX_ATTEMPTS - appointment.verification_attempts
            if remaining <= 0:
                appointment.save(update_fields=['verification_attempts', 'updated_at'])
                appointment.expire(changed_by=changed_by, reason='Too many failed verification attempts')
                error = VerificationExpiredError(
                    'Too many incorrect codes. Please book again.', remaining_attempts=0,
                )
            else:
                appointment.save(update_fields=['verification_attempts', 'updated_at'])
                error = CodeMismatchError(
                    'Invalid verification code.', remaining_attempts=remaining,
                )

        else:
            taken = (
                Appointment.objects
                .filter(professional_id=professional_id, status=AppointmentStatus.CONFIRMED)
                .overlapping(appointment.start_at, appointment.end_at)
                .exclude(pk=appointment.pk)
                .exists()
            )
            if not taken:
                try:
                    with transaction.atomic():
                        appointment.confirm(changed_by=changed_by)
                except IntegrityError:
                    appointment.refresh_from_db(fields=['status', 'verification_code', 'expires_at'])
                    taken = True
            if taken:
                appointment.expire(changed_by='system', reason='Slot confirmed by another booking')
                error = SlotConflictError(
                    'This time was confirmed by another booking. Please choose a different slot.',
                )

    if error is not None:
        logger.info('Verification failed for appointment %s: %s', appointment.id_short, error.code)
        raise error

    logger.info('Appointment %s confirmed', appointment.id_short)
    notify_appointment_confirmed(appointment)
    return appointment

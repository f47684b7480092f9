"""
Booking orchestrator — the entry points views and commands call.

Every function takes an explicit CallerIdentity where the caller matters;
owner-only operations go through require_role(identity, Role.OWNER) here
and nowhere else.

Public API:
  get_availability(service_id, day)
  request_booking(service_id, start_at, identity, phone, guest_name='', guest_email='')
  confirm_booking(appointment_id, code)
  list_my_appointments(identity)
  cancel_booking(appointment_id, identity, reason='')
  list_professional_appointments(identity, day=None)
  mark_paid(appointment_id, identity)
  expire_stale_pending(now=None)
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.accounts.identity import require_role
from apps.accounts.models import Role
from apps.notifications.alerts import notify_payment_confirmed

from . import engine
from .exceptions import AuthenticationRequired, InvalidStateError, NotFoundError, Unauthorized
from .models import Appointment, AppointmentStatus, PaymentStatus
from .verification import request_code, verify_code

logger = logging.getLogger(__name__)

_DISPLAY_RELATED = ('service', 'professional__profile', 'client__profile', 'guest')


def get_availability(service_id, day):
    return engine.get_availability(service_id, day)


def request_booking(service_id, start_at, identity, phone,
                    guest_name='', guest_email='') -> Appointment:
    return request_code(service_id, start_at, identity, phone, guest_name, guest_email)


def confirm_booking(appointment_id, code) -> Appointment:
    return verify_code(appointment_id, code)


def list_my_appointments(identity) -> list:
    """The caller's own appointments, soonest first."""
    qs = Appointment.objects.select_related(*_DISPLAY_RELATED).exclude(
        status=AppointmentStatus.EXPIRED,
    )
    if identity.is_authenticated:
        qs = qs.filter(client_id=identity.user_id)
    elif identity.is_guest:
        qs = qs.filter(guest__client_id=identity.guest_client_id)
    else:
        raise AuthenticationRequired('Sign in or supply a guest client id.')
    return list(qs.order_by('start_at'))


def _get_appointment(appointment_id, for_update=False) -> Appointment:
    qs = Appointment.objects.select_related(*_DISPLAY_RELATED)
    if for_update:
        qs = qs.select_for_update(of=('self',))
    appointment = qs.filter(pk=engine.parse_uuid(appointment_id, 'Appointment')).first()
    if appointment is None:
        raise NotFoundError('Appointment not found.', appointment_id=str(appointment_id))
    return appointment


def _actor(appointment, identity):
    """Who the caller is with respect to this appointment, or None."""
    if identity.is_authenticated:
        if appointment.professional_id == identity.user_id:
            return 'owner'
        if appointment.client_id == identity.user_id:
            return 'client'
    elif identity.is_guest and appointment.guest_client_id == identity.guest_client_id:
        return 'guest'
    return None


def cancel_booking(appointment_id, identity, reason='') -> Appointment:
    """The booking's client, guest or professional cancels it."""
    if identity.is_anonymous:
        raise AuthenticationRequired('Sign in or supply a guest client id.')

    with transaction.atomic():
        appointment = _get_appointment(appointment_id, for_update=True)
        actor = _actor(appointment, identity)
        if actor is None:
            raise Unauthorized('You cannot cancel this appointment.')
        if appointment.status not in (AppointmentStatus.PENDING_VERIFICATION, AppointmentStatus.CONFIRMED):
            raise InvalidStateError(
                'Only pending or confirmed appointments can be cancelled.', status=appointment.status,
            )
        appointment.cancel(changed_by=actor, reason=reason)

    logger.info('Appointment %s cancelled by %s', appointment.id_short, actor)
    return appointment


def list_professional_appointments(identity, day=None) -> list:
    """Owner's calendar; optionally one local calendar day."""
    require_role(identity, Role.OWNER)
    qs = (
        Appointment.objects
        .select_related(*_DISPLAY_RELATED)
        .filter(professional_id=identity.user_id)
        .exclude(status=AppointmentStatus.EXPIRED)
    )
    if day is not None:
        start, end = engine.local_day_bounds(day)
        qs = qs.filter(start_at__gte=start, start_at__lt=end)
    return list(qs.order_by('start_at'))


def mark_paid(appointment_id, identity) -> Appointment:
    """Simulated payment: the professional records that the client paid."""
    require_role(identity, Role.OWNER)

    with transaction.atomic():
        appointment = _get_appointment(appointment_id, for_update=True)
        if appointment.professional_id != identity.user_id:
            raise Unauthorized('Only the professional for this appointment can mark it paid.')
        if appointment.status in (AppointmentStatus.CANCELLED, AppointmentStatus.EXPIRED):
            raise InvalidStateError(
                'Cannot mark a cancelled or expired appointment as paid.', status=appointment.status,
            )
        if appointment.payment_status == PaymentStatus.PAID:
            return appointment
        appointment.mark_paid()

    logger.info('Appointment %s marked paid by professional %s', appointment.id_short, identity.user_id)
    notify_payment_confirmed(appointment)
    return appointment


def expire_stale_pending(now=None) -> int:
    """
    Move pending appointments whose hold has lapsed to EXPIRED.
    They already stop occupying their slot once expires_at passes; this
    just makes the state explicit and logged.
    """
    now = now or timezone.now()
    count = 0
    with transaction.atomic():
        for appointment in Appointment.objects.stale_pending(now).select_for_update():
            appointment.expire(changed_by='cron', reason='Verification window elapsed')
            count += 1
    if count:
        logger.info('Expired %d stale pending appointment(s)', count)
    return count

"""
Booking alerts: message texts and in-app notifications.

The verification code message is the only one whose delivery matters to the
caller (request_code deletes the pending appointment if it fails). Every
other alert here is best effort: failures are logged and swallowed so a
confirmed appointment is never rolled back by a messaging outage.

Public API:
  verification_code_text(appointment, code)
  notify_appointment_confirmed(appointment)
  notify_payment_confirmed(appointment)
  create_notification(user_id, title, message, type, data=None)
"""
import logging
from django.conf import settings
from django.utils import timezone

from apps.accounts.models import display_name_for, phone_for
from apps.guests.models import normalize_phone
from .messaging import send_message
from .models import Notification, NotificationType

logger = logging.getLogger(__name__)


def _when(appointment) -> str:
    return timezone.localtime(appointment.start_at).strftime('%d/%m/%Y %H:%M')


def verification_code_text(appointment, code: str) -> str:
    ttl = settings.PENDING_VERIFICATION_TTL_MINUTES
    return (
        f"Hello {appointment.client_name}!\n\n"
        f"Your verification code for {appointment.service.name} "
        f"on {_when(appointment)}:\n\n"
        f"Code: {code}\n\n"
        f"The code expires in {ttl} minutes."
    )


def _client_confirmation_text(appointment) -> str:
    return (
        f"Appointment confirmed!\n\n"
        f"Hello {appointment.client_name}, see you on {_when(appointment)} "
        f"for {appointment.service.name}."
    )


def _professional_confirmation_text(appointment) -> str:
    return (
        f"New appointment confirmed\n\n"
        f"Date: {_when(appointment)}\n"
        f"Service: {appointment.service.name}\n"
        f"Client: {appointment.client_name}\n"
        f"Phone: {appointment.contact_phone or 'not provided'}\n"
        f"Price: {appointment.price}"
    )


def create_notification(user_id, title: str, message: str, type: str, data=None) -> Notification:
    return Notification.objects.create(
        user_id=user_id, title=title, message=message, type=type, data=data or {},
    )


def _send_quietly(phone: str, text: str, ref: str) -> bool:
    """Best-effort send. Returns False (and logs) on any delivery failure."""
    if not phone:
        return False
    try:
        send_message(phone, text)
    except Exception:
        logger.exception('Best-effort message for appointment %s was not delivered', ref)
        return False
    return True


def notify_appointment_confirmed(appointment) -> None:
    """In-app notice + message to the professional, confirmation to the client."""
    ref = appointment.id_short
    try:
        create_notification(
            appointment.professional_id,
            'New appointment confirmed',
            f"{appointment.client_name} confirmed {appointment.service.name} on {_when(appointment)}",
            NotificationType.APPOINTMENT,
            {'appointmentId': str(appointment.id)},
        )
    except Exception:
        logger.exception('Could not create confirmation notification for appointment %s', ref)

    _send_quietly(appointment.contact_phone, _client_confirmation_text(appointment), ref)

    try:
        professional_phone = normalize_phone(phone_for(appointment.professional))
    except ValueError:
        logger.info('Professional %s has no usable phone; skipping message', appointment.professional_id)
        return
    _send_quietly(professional_phone, _professional_confirmation_text(appointment), ref)


def notify_payment_confirmed(appointment) -> None:
    """Tell an authenticated client their payment was recorded."""
    if not appointment.client_id:
        return
    try:
        create_notification(
            appointment.client_id,
            'Payment confirmed',
            f"{display_name_for(appointment.professional)} marked "
            f"{appointment.service.name} on {_when(appointment)} as paid.",
            NotificationType.PAYMENT,
            {'appointmentId': str(appointment.id)},
        )
    except Exception:
        logger.exception('Could not create payment notification for appointment %s', appointment.id_short)

"""
Appointment API views — thin JSON adapters over the orchestrator.

Views parse and validate request data, resolve the caller and hand off;
all booking rules live in engine/verification/orchestrator.
"""
from datetime import datetime

from django.utils.dateparse import parse_datetime

from apps.accounts.identity import CallerIdentity, login_required, owner_required, resolve_caller
from apps.core.api import api_view, json_body

from . import orchestrator
from .exceptions import ValidationError


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _parse_date(date_str: str, field: str = 'date'):
    try:
        return datetime.strptime(date_str, '%Y-%m-%d').date()
    except (ValueError, TypeError) as exc:
        raise ValidationError('Dates must be formatted YYYY-MM-DD.', field=field) from exc


def _parse_instant(value, field: str = 'appointmentDate'):
    try:
        parsed = parse_datetime(value) if isinstance(value, str) else None
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError('Expected an ISO-8601 date and time.', field=field)
    return parsed


def _require(data: dict, *fields):
    missing = [f for f in fields if not data.get(f)]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}.", fields=missing)


# ─────────────────────────────────────────────────────────────────────────────
# Availability & verification handshake
# ─────────────────────────────────────────────────────────────────────────────

@api_view('GET')
def available_slots(request):
    """GET /api/appointments/available?serviceId=<uuid>&date=YYYY-MM-DD"""
    service_id = request.GET.get('serviceId')
    if not service_id:
        raise ValidationError('serviceId is required.', field='serviceId')
    day = _parse_date(request.GET.get('date'))
    return orchestrator.get_availability(service_id, day).as_json()


@api_view('POST')
def request_verification(request):
    """
    POST /api/appointments/request-verification
    {serviceId, appointmentDate, phone, guestName?, guestEmail?, guestClientId?}
    """
    data = json_body(request)
    _require(data, 'serviceId', 'appointmentDate', 'phone')
    identity = resolve_caller(request, guest_client_id=data.get('guestClientId'))

    appointment = orchestrator.request_booking(
        data['serviceId'],
        _parse_instant(data['appointmentDate']),
        identity,
        str(data['phone']),
        guest_name=data.get('guestName') or '',
        guest_email=data.get('guestEmail') or '',
    )
    return {
        'success': True,
        'appointmentId': str(appointment.id),
        'guestClientId': appointment.guest_client_id,
        'expiresAt': appointment.expires_at.isoformat(),
        'message': 'Verification code sent.',
    }, 201


@api_view('POST')
def verify_code_view(request):
    """POST /api/appointments/verify-code {appointmentId, verificationCode}"""
    data = json_body(request)
    _require(data, 'appointmentId', 'verificationCode')
    appointment = orchestrator.confirm_booking(data['appointmentId'], str(data['verificationCode']))
    return {
        'success': True,
        'message': 'Appointment confirmed.',
        'appointment': appointment.as_json(),
    }


# ─────────────────────────────────────────────────────────────────────────────
# Listings
# ─────────────────────────────────────────────────────────────────────────────

@api_view('GET')
@login_required
def my_appointments(request):
    return [a.as_json() for a in orchestrator.list_my_appointments(request.caller)]


@api_view('GET')
def guest_appointments(request, guest_client_id):
    identity = CallerIdentity.for_guest(guest_client_id)
    return [a.as_json() for a in orchestrator.list_my_appointments(identity)]


@api_view('GET')
@owner_required
def professional_appointments(request):
    day = request.GET.get('date')
    day = _parse_date(day) if day else None
    return [a.as_json() for a in orchestrator.list_professional_appointments(request.caller, day)]


# ─────────────────────────────────────────────────────────────────────────────
# State changes
# ─────────────────────────────────────────────────────────────────────────────

@api_view('POST')
def cancel_appointment(request, appointment_id):
    """Client (token), guest ({guestClientId}) or owning professional."""
    data = json_body(request)
    identity = resolve_caller(
        request, guest_client_id=data.get('guestClientId') or request.GET.get('guestClientId'),
    )
    appointment = orchestrator.cancel_booking(appointment_id, identity, reason=data.get('reason') or '')
    return appointment.as_json()


@api_view('POST')
@owner_required
def mark_paid_view(request, appointment_id):
    appointment = orchestrator.mark_paid(appointment_id, request.caller)
    return {'success': True, 'message': 'Payment recorded.', 'appointment': appointment.as_json()}

"""
Catalogue endpoints: public service listing, owner-managed services and
business hours.
"""
import logging

from apps.accounts.identity import owner_required, require_role, resolve_caller
from apps.accounts.models import Role
from apps.bookings.exceptions import NotFoundError, ValidationError
from apps.core.api import api_view, json_body

from .forms import BusinessHourForm, ServiceForm
from .models import BusinessHourWindow, Service

logger = logging.getLogger(__name__)


def _form_errors(form) -> dict:
    return {field: [str(e) for e in errors] for field, errors in form.errors.items()}


@api_view('GET', 'POST')
def services_view(request):
    """
    GET  /api/services  — all active services with professional display name.
    POST /api/services  — owner creates a service.
    """
    if request.method == 'GET':
        services = (
            Service.objects
            .filter(is_active=True)
            .select_related('professional__profile')
            .order_by('name', 'duration_minutes')
        )
        return [s.as_json() for s in services]

    caller = resolve_caller(request)
    require_role(caller, Role.OWNER)

    data = json_body(request)
    form = ServiceForm(data={
        'name': data.get('name'),
        'description': data.get('description') or '',
        'price': data.get('price'),
        'duration_minutes': data.get('duration'),
    })
    if not form.is_valid():
        raise ValidationError('Invalid service.', fields=_form_errors(form))

    service = form.save(commit=False)
    service.professional_id = caller.user_id
    service.save()
    logger.info('Service %s created by professional %s', service.id, caller.user_id)
    return service.as_json(), 201


@api_view('GET', 'POST')
@owner_required
def business_hours_view(request):
    """
    GET  /api/business-hours  — the caller's own windows.
    POST /api/business-hours  — {dayOfWeek: 0-6, startTime: "HH:MM", endTime: "HH:MM"}
    """
    caller = request.caller
    if request.method == 'GET':
        windows = BusinessHourWindow.objects.filter(professional_id=caller.user_id)
        return [w.as_json() for w in windows]

    data = json_body(request)
    form = BusinessHourForm(data={
        'day_of_week': data.get('dayOfWeek'),
        'start_time': data.get('startTime'),
        'end_time': data.get('endTime'),
    })
    if not form.is_valid():
        raise ValidationError('Invalid business hours window.', fields=_form_errors(form))

    window = form.save(commit=False)
    window.professional_id = caller.user_id
    window.save()
    logger.info('Business hours %s added for professional %s', window, caller.user_id)
    return window.as_json(), 201


@api_view('DELETE')
@owner_required
def business_hour_detail_view(request, window_id):
    window = BusinessHourWindow.objects.filter(
        id=window_id, professional_id=request.caller.user_id,
    ).first()
    if window is None:
        raise NotFoundError('Business hours window not found.')
    window.delete()
    return {'deleted': str(window_id)}

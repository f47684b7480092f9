"""
In-app notification endpoints for the signed-in user.
"""
from apps.accounts.identity import login_required
from apps.bookings.exceptions import NotFoundError
from apps.core.api import api_view

from .models import Notification


@api_view('GET')
@login_required
def notification_list(request):
    notifications = Notification.objects.filter(user_id=request.caller.user_id)[:100]
    return [n.as_json() for n in notifications]


@api_view('PUT')
@login_required
def notification_read(request, notification_id):
    notification = Notification.objects.filter(
        id=notification_id, user_id=request.caller.user_id,
    ).first()
    if notification is None:
        raise NotFoundError('Notification not found.')
    notification.mark_read()
    return notification.as_json()


@api_view('PUT')
@login_required
def notification_read_all(request):
    updated = (
        Notification.objects
        .filter(user_id=request.caller.user_id, read=False)
        .update(read=True)
    )
    return {'updated': updated}

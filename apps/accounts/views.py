"""
Thin identity endpoints: password login returning a bearer token, and
"who am I" for an authenticated caller.
"""
import logging

from django.contrib.auth import authenticate, get_user_model

from apps.bookings.exceptions import AuthenticationRequired, ValidationError
from apps.core.api import api_view, json_body

from .identity import issue_token, login_required
from .models import Role, display_name_for, phone_for

logger = logging.getLogger(__name__)


def _serialize_user(user) -> dict:
    profile = getattr(user, 'profile', None)
    return {
        'id': user.pk,
        'username': user.get_username(),
        'name': display_name_for(user),
        'email': user.email,
        'phone': phone_for(user),
        'role': profile.role if profile is not None else Role.CLIENT,
    }


@api_view('POST')
def login_view(request):
    data = json_body(request)
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    if not username or not password:
        raise ValidationError('username and password are required.')

    user = authenticate(request, username=username, password=password)
    if user is None:
        logger.info('Failed login for %s', username)
        raise AuthenticationRequired('Invalid credentials.')

    return {'token': issue_token(user), 'user': _serialize_user(user)}


@api_view('GET')
@login_required
def me_view(request):
    user = get_user_model().objects.select_related('profile').get(pk=request.caller.user_id)
    return _serialize_user(user)

"""
Request-scoped caller identity.

Every core operation receives an explicit CallerIdentity instead of reading
ambient request state. A caller is one of:
  - an authenticated user (bearer token → user id + role)
  - a guest (opaque guest client id, no account)
  - anonymous

Public API:
  issue_token(user)
  resolve_caller(request, guest_client_id=None)
  require_role(identity, role)
  login_required(view)   — view decorator, sets request.caller
  owner_required(view)   — view decorator, sets request.caller
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from functools import wraps
from typing import Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing

from apps.bookings.exceptions import AuthenticationRequired, Unauthorized
from .models import Role

logger = logging.getLogger(__name__)

TOKEN_SALT = 'slotbook.accounts.token'


@dataclass(frozen=True)
class CallerIdentity:
    user_id: Optional[int] = None
    role: Optional[str] = None
    guest_client_id: Optional[str] = None

    @classmethod
    def anonymous(cls):
        return cls()

    @classmethod
    def for_user(cls, user_id: int, role: str):
        return cls(user_id=user_id, role=role)

    @classmethod
    def for_guest(cls, guest_client_id: str):
        return cls(guest_client_id=guest_client_id)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_guest(self) -> bool:
        return self.user_id is None and bool(self.guest_client_id)

    @property
    def is_anonymous(self) -> bool:
        return not self.is_authenticated and not self.is_guest


# ── Tokens ────────────────────────────────────────────────────────────────────

def issue_token(user) -> str:
    """Signed, timestamped bearer token carrying the user id."""
    return signing.dumps({'uid': user.pk}, salt=TOKEN_SALT, compress=True)


def _user_from_token(token: str):
    max_age = timedelta(days=settings.AUTH_TOKEN_MAX_AGE_DAYS)
    try:
        payload = signing.loads(token, salt=TOKEN_SALT, max_age=max_age)
    except signing.SignatureExpired as exc:
        raise AuthenticationRequired('Token expired. Please sign in again.') from exc
    except signing.BadSignature as exc:
        raise AuthenticationRequired('Invalid token.') from exc

    User = get_user_model()
    user = (
        User.objects
        .select_related('profile')
        .filter(pk=payload.get('uid'), is_active=True)
        .first()
    )
    if user is None:
        raise AuthenticationRequired('Invalid token.')
    return user


def _role_of(user) -> str:
    profile = getattr(user, 'profile', None)
    return profile.role if profile is not None else Role.CLIENT


# ── Resolution ────────────────────────────────────────────────────────────────

def resolve_caller(request, guest_client_id: Optional[str] = None) -> CallerIdentity:
    """
    Resolve who is calling.

    A bearer token wins over a guest client id. A malformed or expired token
    is an error rather than a silent downgrade to guest.
    """
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        user = _user_from_token(header[7:].strip())
        logger.debug('Caller resolved from token: user %s', user.pk)
        return CallerIdentity.for_user(user.pk, _role_of(user))

    if guest_client_id:
        return CallerIdentity.for_guest(str(guest_client_id))
    return CallerIdentity.anonymous()


def require_role(identity: CallerIdentity, role: str) -> None:
    """The single authorization rule: authenticated, and holding `role`."""
    if not identity.is_authenticated:
        raise AuthenticationRequired('Authentication required. Please sign in.')
    if identity.role != role:
        logger.warning(
            'Authorization failed: user %s has role %s, needs %s',
            identity.user_id, identity.role, role,
        )
        raise Unauthorized(f'This action requires the {Role(role).label.lower()} role.')


# ── View decorators ───────────────────────────────────────────────────────────

def login_required(view_func):
    """Require a valid bearer token. Use inside @api_view."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        request.caller = resolve_caller(request)
        if not request.caller.is_authenticated:
            raise AuthenticationRequired('Authentication required. Please sign in.')
        return view_func(request, *args, **kwargs)
    return wrapper


def owner_required(view_func):
    """Require a valid bearer token for a user with the OWNER role."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        request.caller = resolve_caller(request)
        require_role(request.caller, Role.OWNER)
        return view_func(request, *args, **kwargs)
    return wrapper

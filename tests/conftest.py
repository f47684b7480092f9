from datetime import time, timedelta

import pytest
from django.contrib.auth import get_user_model
from django.test import Client
from django.utils import timezone

from apps.accounts.identity import CallerIdentity, issue_token
from apps.accounts.models import Profile, Role
from apps.bookings.engine import slot_instant
from apps.notifications import messaging
from apps.services.models import BusinessHourWindow, Service, weekday_of


def make_user(username, role, phone='', display_name=''):
    user = get_user_model().objects.create_user(username=username, password='pass12345')
    Profile.objects.create(user=user, role=role, phone=phone, display_name=display_name or username.title())
    return user


@pytest.fixture(autouse=True)
def outbox():
    messaging.outbox.clear()
    yield messaging.outbox
    messaging.outbox.clear()


@pytest.fixture
def owner(db):
    return make_user('owner', Role.OWNER, phone='5511999999999', display_name='Joao Silva')


@pytest.fixture
def client_user(db):
    return make_user('maria', Role.CLIENT, phone='5511988887777', display_name='Maria')


@pytest.fixture
def service(owner):
    return Service.objects.create(
        professional=owner, name='Haircut', price='50.00', duration_minutes=30,
    )


@pytest.fixture
def booking_day():
    """A day comfortably in the future, so its slots are bookable."""
    return timezone.localdate() + timedelta(days=7)


@pytest.fixture
def morning_window(owner, booking_day):
    return BusinessHourWindow.objects.create(
        professional=owner, day_of_week=weekday_of(booking_day),
        start_time=time(9, 0), end_time=time(12, 0),
    )


@pytest.fixture
def at(booking_day):
    """at('09:30') -> aware instant of that slot on booking_day."""
    return lambda slot: slot_instant(booking_day, slot)


@pytest.fixture
def guest():
    return CallerIdentity.anonymous()


@pytest.fixture
def owner_identity(owner):
    return CallerIdentity.for_user(owner.pk, Role.OWNER)


@pytest.fixture
def client_identity(client_user):
    return CallerIdentity.for_user(client_user.pk, Role.CLIENT)


@pytest.fixture
def api():
    return Client()


@pytest.fixture
def auth_header():
    return lambda user: {'Authorization': f'Bearer {issue_token(user)}'}

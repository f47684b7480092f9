from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from apps.accounts.identity import CallerIdentity
from apps.accounts.models import Role
from apps.bookings import orchestrator
from apps.bookings.engine import slot_instant
from apps.bookings.exceptions import AuthenticationRequired, InvalidStateError, Unauthorized
from apps.bookings.models import Appointment, AppointmentStatus, PaymentStatus
from apps.notifications.models import Notification
from apps.services.models import BusinessHourWindow, Service

pytestmark = pytest.mark.django_db


@pytest.fixture
def confirmed_for_client(service, morning_window, at, client_identity):
    pending = orchestrator.request_booking(service.id, at('10:00'), client_identity, '5511988887777')
    return orchestrator.confirm_booking(pending.id, pending.verification_code)


@pytest.fixture
def confirmed_for_guest(service, morning_window, at, guest):
    pending = orchestrator.request_booking(service.id, at('11:00'), guest, '5511977776666',
        guest_name='Ana', guest_email='ana@example.com')
    return orchestrator.confirm_booking(pending.id, pending.verification_code)


def test_end_to_end_booking_flow(service, morning_window, booking_day, at, guest):
    availability = orchestrator.get_availability(service.id, booking_day)
    assert availability.free_slots == ['09:00', '09:30', '10:00', '10:30', '11:00', '11:30']

    pending = orchestrator.request_booking(service.id, at('09:30'), guest, '5511988887777',
        guest_name='Ana', guest_email='ana@example.com')
    orchestrator.confirm_booking(pending.id, pending.verification_code)

    availability = orchestrator.get_availability(service.id, booking_day)
    assert availability.booked_slots == {'09:30'}
    assert len(availability.free_slots) == 5

    mine = orchestrator.list_my_appointments(CallerIdentity.for_guest(pending.guest_client_id))
    assert [a.pk for a in mine] == [pending.pk]
    assert mine[0].status == AppointmentStatus.CONFIRMED


class TestListMyAppointments:
    def test_client_sees_only_own(self, confirmed_for_client, confirmed_for_guest, client_identity):
        assert orchestrator.list_my_appointments(client_identity) == [confirmed_for_client]

    def test_guest_sees_only_own(self, confirmed_for_client, confirmed_for_guest):
        identity = CallerIdentity.for_guest(confirmed_for_guest.guest_client_id)
        assert orchestrator.list_my_appointments(identity) == [confirmed_for_guest]

    def test_unknown_guest_sees_nothing(self, confirmed_for_guest):
        assert orchestrator.list_my_appointments(CallerIdentity.for_guest('nobody')) == []

    def test_anonymous_is_rejected(self):
        with pytest.raises(AuthenticationRequired):
            orchestrator.list_my_appointments(CallerIdentity.anonymous())

    def test_ordered_by_start(self, service, morning_window, at, client_identity):
        for slot in ('11:30', '09:00'):
            pending = orchestrator.request_booking(service.id, at(slot), client_identity, '5511988887777')
            orchestrator.confirm_booking(pending.id, pending.verification_code)
        starts = [a.start_at for a in orchestrator.list_my_appointments(client_identity)]
        assert starts == [at('09:00'), at('11:30')]


class TestCancelBooking:
    def test_client_cancels_and_frees_slot(self, confirmed_for_client, client_identity, service, booking_day):
        cancelled = orchestrator.cancel_booking(confirmed_for_client.id, client_identity)
        assert cancelled.status == AppointmentStatus.CANCELLED
        assert orchestrator.get_availability(service.id, booking_day).booked_slots == set()

    def test_guest_cancels_with_client_id(self, confirmed_for_guest):
        identity = CallerIdentity.for_guest(confirmed_for_guest.guest_client_id)
        assert orchestrator.cancel_booking(confirmed_for_guest.id, identity).status == AppointmentStatus.CANCELLED

    def test_owner_cancels(self, confirmed_for_guest, owner_identity):
        cancelled = orchestrator.cancel_booking(confirmed_for_guest.id, owner_identity, reason='Sick day')
        assert cancelled.status_logs.get(to_status=AppointmentStatus.CANCELLED).changed_by == 'owner'

    def test_stranger_cannot_cancel(self, confirmed_for_guest, client_identity):
        with pytest.raises(Unauthorized):
            orchestrator.cancel_booking(confirmed_for_guest.id, client_identity)
        with pytest.raises(Unauthorized):
            orchestrator.cancel_booking(confirmed_for_guest.id, CallerIdentity.for_guest('someone-else'))

    def test_cannot_cancel_twice(self, confirmed_for_client, client_identity):
        orchestrator.cancel_booking(confirmed_for_client.id, client_identity)
        with pytest.raises(InvalidStateError):
            orchestrator.cancel_booking(confirmed_for_client.id, client_identity)


class TestProfessionalCalendar:
    def test_owner_sees_bookings_for_day(self, confirmed_for_client, confirmed_for_guest, owner_identity, booking_day):
        assert orchestrator.list_professional_appointments(owner_identity, booking_day) == [
            confirmed_for_client, confirmed_for_guest,
        ]
        assert orchestrator.list_professional_appointments(owner_identity, booking_day + timedelta(days=1)) == []

    def test_client_role_is_rejected(self, client_identity):
        with pytest.raises(Unauthorized):
            orchestrator.list_professional_appointments(client_identity)

    def test_anonymous_is_rejected(self):
        with pytest.raises(AuthenticationRequired):
            orchestrator.list_professional_appointments(CallerIdentity.anonymous())


class TestMarkPaid:
    def test_owner_marks_paid_and_client_is_notified(self, confirmed_for_client, owner_identity, client_user):
        paid = orchestrator.mark_paid(confirmed_for_client.id, owner_identity)
        assert paid.payment_status == PaymentStatus.PAID
        assert Notification.objects.filter(user=client_user, type='payment').count() == 1

        # idempotent
        orchestrator.mark_paid(confirmed_for_client.id, owner_identity)
        assert Notification.objects.filter(user=client_user, type='payment').count() == 1

    def test_other_owner_cannot_mark_paid(self, confirmed_for_client, client_user):
        other_owner = CallerIdentity.for_user(client_user.pk, Role.OWNER)
        with pytest.raises(Unauthorized):
            orchestrator.mark_paid(confirmed_for_client.id, other_owner)

    def test_client_cannot_mark_paid(self, confirmed_for_client, client_identity):
        with pytest.raises(Unauthorized):
            orchestrator.mark_paid(confirmed_for_client.id, client_identity)

    def test_cancelled_cannot_be_paid(self, confirmed_for_client, client_identity, owner_identity):
        orchestrator.cancel_booking(confirmed_for_client.id, client_identity)
        with pytest.raises(InvalidStateError):
            orchestrator.mark_paid(confirmed_for_client.id, owner_identity)


class TestExpirySweep:
    def test_command_expires_only_lapsed_holds(self, service, morning_window, at, guest):
        lapsed = orchestrator.request_booking(service.id, at('09:00'), guest, '5511988887777',
            guest_name='Ana', guest_email='ana@example.com')
        live = orchestrator.request_booking(service.id, at('09:30'), guest, '5511977776666',
            guest_name='Bruno', guest_email='bruno@example.com')
        Appointment.objects.filter(pk=lapsed.pk).update(expires_at=timezone.now() - timedelta(minutes=1))

        out = StringIO()
        call_command('expire_pending_appointments', stdout=out)

        lapsed.refresh_from_db()
        live.refresh_from_db()
        assert lapsed.status == AppointmentStatus.EXPIRED
        assert lapsed.status_logs.get(to_status=AppointmentStatus.EXPIRED).changed_by == 'cron'
        assert live.status == AppointmentStatus.PENDING_VERIFICATION
        assert 'expired 1 appointments' in out.getvalue()


def test_seed_data_is_idempotent():
    call_command('seed_data', stdout=StringIO())
    call_command('seed_data', stdout=StringIO())

    assert Service.objects.count() == 4
    assert BusinessHourWindow.objects.count() == 11
    owner = Service.objects.first().professional
    assert owner.profile.role == Role.OWNER


def test_seed_flush_keeps_services_with_bookings(booking_day, guest):
    call_command('seed_data', stdout=StringIO())
    haircut = Service.objects.get(name='Haircut')
    monday = booking_day + timedelta(days=-booking_day.weekday() % 7)
    orchestrator.request_booking(haircut.id, slot_instant(monday, '09:00'), guest, '5511988887777',
                                 guest_name='Ana', guest_email='ana@example.com')
    Service.objects.filter(name='Beard Trim').update(price=99)

    out = StringIO()
    call_command('seed_data', '--flush', stdout=out)

    assert Service.objects.filter(pk=haircut.pk).exists()
    assert Service.objects.count() == 4
    assert Service.objects.get(name='Beard Trim').price == 30
    assert 'Kept 1 services' in out.getvalue()

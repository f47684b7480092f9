import json

import pytest

from apps.bookings.models import Appointment, AppointmentStatus
from apps.notifications.models import Notification
from apps.services.models import BusinessHourWindow, Service

pytestmark = pytest.mark.django_db


def post(api, url, payload, **kwargs):
    return api.post(url, data=json.dumps(payload), content_type='application/json', **kwargs)


class TestAuth:
    def test_login_returns_token_usable_for_me(self, api, owner):
        response = post(api, '/api/auth/login', {'username': 'owner', 'password': 'pass12345'})
        assert response.status_code == 200
        body = response.json()
        assert body['user']['role'] == 'owner'

        me = api.get('/api/auth/me', headers={'Authorization': f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()['name'] == 'Joao Silva'

    def test_bad_credentials(self, api, owner):
        response = post(api, '/api/auth/login', {'username': 'owner', 'password': 'nope'})
        assert response.status_code == 401
        assert response.json()['code'] == 'AUTHENTICATION_REQUIRED'

    def test_tampered_token_is_rejected(self, api, owner):
        response = api.get('/api/auth/me', headers={'Authorization': 'Bearer not-a-token'})
        assert response.status_code == 401

    def test_me_requires_token(self, api):
        assert api.get('/api/auth/me').status_code == 401


class TestCatalogue:
    def test_lists_active_services_with_professional_name(self, api, service, owner):
        Service.objects.create(professional=owner, name='Retired', price=1, duration_minutes=15, is_active=False)
        body = api.get('/api/services').json()
        assert [s['name'] for s in body] == ['Haircut']
        assert body[0]['professionalName'] == 'Joao Silva'
        assert body[0]['duration'] == 30

    def test_owner_creates_service(self, api, owner, auth_header):
        response = post(api, '/api/services', {'name': 'Shave', 'price': '25.00', 'duration': 20},
                        headers=auth_header(owner))
        assert response.status_code == 201
        assert Service.objects.get(name='Shave').professional == owner

    def test_invalid_duration_is_rejected(self, api, owner, auth_header):
        response = post(api, '/api/services', {'name': 'Shave', 'price': '25.00', 'duration': 0},
                        headers=auth_header(owner))
        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'

    def test_client_cannot_create_service(self, api, client_user, auth_header):
        response = post(api, '/api/services', {'name': 'Shave', 'price': '25.00', 'duration': 20},
                        headers=auth_header(client_user))
        assert response.status_code == 403
        assert response.json()['code'] == 'UNAUTHORIZED'

    def test_owner_manages_business_hours(self, api, owner, auth_header):
        response = post(api, '/api/business-hours', {'dayOfWeek': 1, 'startTime': '09:00', 'endTime': '12:00'},
                        headers=auth_header(owner))
        assert response.status_code == 201
        window_id = response.json()['id']

        listed = api.get('/api/business-hours', headers=auth_header(owner)).json()
        assert listed == [{
            'id': window_id, 'professionalId': owner.pk, 'dayOfWeek': 1,
            'startTime': '09:00', 'endTime': '12:00',
        }]

        deleted = api.delete(f'/api/business-hours/{window_id}', headers=auth_header(owner))
        assert deleted.status_code == 200
        assert not BusinessHourWindow.objects.exists()

    def test_window_must_end_after_start(self, api, owner, auth_header):
        response = post(api, '/api/business-hours', {'dayOfWeek': 1, 'startTime': '12:00', 'endTime': '09:00'},
                        headers=auth_header(owner))
        assert response.status_code == 400

    def test_business_hours_require_owner(self, api, client_user, auth_header):
        assert api.get('/api/business-hours').status_code == 401
        assert api.get('/api/business-hours', headers=auth_header(client_user)).status_code == 403


class TestBookingFlow:
    def test_guest_books_verifies_and_lists(self, api, service, morning_window, booking_day, at, outbox):
        available = api.get('/api/appointments/available', {'serviceId': str(service.id), 'date': booking_day.isoformat()})
        assert available.status_code == 200
        assert available.json()['slots'] == ['09:00', '09:30', '10:00', '10:30', '11:00', '11:30']

        response = post(api, '/api/appointments/request-verification', {
            'serviceId': str(service.id),
            'appointmentDate': at('09:30').isoformat(),
            'phone': '(11) 98888-7777',
            'guestName': 'Ana',
            'guestEmail': 'ana@example.com',
        })
        assert response.status_code == 201
        body = response.json()
        guest_client_id = body['guestClientId']
        appointment = Appointment.objects.get(pk=body['appointmentId'])

        verified = post(api, '/api/appointments/verify-code', {
            'appointmentId': body['appointmentId'],
            'verificationCode': appointment.verification_code,
        })
        assert verified.status_code == 200
        assert verified.json()['appointment']['status'] == AppointmentStatus.CONFIRMED

        mine = api.get(f'/api/appointments/guest/{guest_client_id}').json()
        assert [a['id'] for a in mine] == [body['appointmentId']]
        assert mine[0]['clientName'] == 'Ana'

        again = api.get('/api/appointments/available', {'serviceId': str(service.id), 'date': booking_day.isoformat()})
        assert again.json()['bookedSlots'] == ['09:30']

    def test_conflict_is_409_and_retryable(self, api, service, morning_window, at):
        payload = {
            'serviceId': str(service.id), 'appointmentDate': at('10:00').isoformat(),
            'phone': '5511988887777', 'guestName': 'Ana', 'guestEmail': 'ana@example.com',
        }
        assert post(api, '/api/appointments/request-verification', payload).status_code == 201
        payload.update(phone='5511977776666', guestName='Bruno', guestEmail='bruno@example.com')
        response = post(api, '/api/appointments/request-verification', payload)
        assert response.status_code == 409
        assert response.json()['code'] == 'SLOT_CONFLICT'
        assert response.json()['retryable'] is True

    def test_wrong_code_reports_remaining_attempts(self, api, service, morning_window, at):
        created = post(api, '/api/appointments/request-verification', {
            'serviceId': str(service.id), 'appointmentDate': at('10:00').isoformat(),
            'phone': '5511988887777', 'guestName': 'Ana', 'guestEmail': 'ana@example.com',
        }).json()
        code = Appointment.objects.get(pk=created['appointmentId']).verification_code
        wrong = '000000' if code != '000000' else '111111'

        response = post(api, '/api/appointments/verify-code', {
            'appointmentId': created['appointmentId'], 'verificationCode': wrong,
        })
        assert response.status_code == 400
        assert response.json()['code'] == 'CODE_MISMATCH'
        assert response.json()['details'] == {'remaining_attempts': 4}

    def test_missing_fields_and_bad_dates(self, api, service):
        response = post(api, '/api/appointments/request-verification', {'serviceId': str(service.id)})
        assert response.status_code == 400
        bad_date = api.get('/api/appointments/available', {'serviceId': str(service.id), 'date': '31/12/2030'})
        assert bad_date.status_code == 400

    def test_guest_without_email_is_400(self, api, service, morning_window, at):
        response = post(api, '/api/appointments/request-verification', {
            'serviceId': str(service.id), 'appointmentDate': at('10:00').isoformat(),
            'phone': '5511988887777', 'guestName': 'Ana',
        })
        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'
        assert not Appointment.objects.exists()

    def test_unknown_service_is_404(self, api, booking_day):
        response = api.get('/api/appointments/available', {
            'serviceId': '00000000-0000-0000-0000-000000000000', 'date': booking_day.isoformat(),
        })
        assert response.status_code == 404
        assert response.json()['code'] == 'NOT_FOUND'

    def test_malformed_json_is_400(self, api):
        response = api.post('/api/appointments/verify-code', data='{nope', content_type='application/json')
        assert response.status_code == 400

    def test_wrong_method_is_405(self, api):
        assert api.get('/api/appointments/verify-code').status_code == 405

    def test_client_books_lists_and_cancels(self, api, service, morning_window, at, client_user, auth_header):
        headers = auth_header(client_user)
        created = post(api, '/api/appointments/request-verification', {
            'serviceId': str(service.id), 'appointmentDate': at('11:00').isoformat(), 'phone': '5511988887777',
        }, headers=headers).json()
        assert created['guestClientId'] is None

        mine = api.get('/api/appointments/my', headers=headers).json()
        assert [a['id'] for a in mine] == [created['appointmentId']]

        cancelled = post(api, f"/api/appointments/{created['appointmentId']}/cancel", {}, headers=headers)
        assert cancelled.status_code == 200
        assert cancelled.json()['status'] == AppointmentStatus.CANCELLED

    def test_owner_calendar_and_mark_paid(self, api, service, morning_window, booking_day, at, owner, client_user, auth_header):
        created = post(api, '/api/appointments/request-verification', {
            'serviceId': str(service.id), 'appointmentDate': at('09:00').isoformat(), 'phone': '5511988887777',
        }, headers=auth_header(client_user)).json()
        code = Appointment.objects.get(pk=created['appointmentId']).verification_code
        post(api, '/api/appointments/verify-code', {'appointmentId': created['appointmentId'], 'verificationCode': code})

        calendar = api.get('/api/appointments/professional', {'date': booking_day.isoformat()},
                           headers=auth_header(owner))
        assert [a['id'] for a in calendar.json()] == [created['appointmentId']]

        forbidden = post(api, f"/api/appointments/{created['appointmentId']}/mark-paid", {},
                         headers=auth_header(client_user))
        assert forbidden.status_code == 403

        paid = post(api, f"/api/appointments/{created['appointmentId']}/mark-paid", {}, headers=auth_header(owner))
        assert paid.status_code == 200
        assert paid.json()['appointment']['paymentStatus'] == 'paid'


class TestNotifications:
    def test_list_and_mark_read(self, api, owner, auth_header):
        first = Notification.objects.create(user=owner, title='A', message='a', type='appointment')
        Notification.objects.create(user=owner, title='B', message='b', type='appointment')
        headers = auth_header(owner)

        listed = api.get('/api/notifications', headers=headers).json()
        assert {n['title'] for n in listed} == {'A', 'B'}

        response = api.put(f'/api/notifications/{first.id}/read', headers=headers)
        assert response.status_code == 200
        assert response.json()['read'] is True

        response = api.put('/api/notifications/read-all', headers=headers)
        assert response.json() == {'updated': 1}
        assert not Notification.objects.filter(read=False).exists()

    def test_cannot_read_someone_elses(self, api, owner, client_user, auth_header):
        notification = Notification.objects.create(user=owner, title='A', message='a', type='system')
        response = api.put(f'/api/notifications/{notification.id}/read', headers=auth_header(client_user))
        assert response.status_code == 404

from datetime import date, time, timedelta

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from backend.auth.jwt_handler import create_access_token
from backend.database import get_db
from backend.main import app
from backend.models.appointment import Appointment
from backend.models.schedule import DoctorSchedule
from backend.routes import appointment_routes
from backend.routes.appointment_routes import BookAppointmentRequest
from backend.services import email_service
from backend.services.meet_service import MeetingProvisioner, MeetingResult, get_meeting_provisioner

BOOKING_DATE = (date.today() + timedelta(days=1)).isoformat()


class StubProvisioner(MeetingProvisioner):
    def __init__(self, result: MeetingResult) -> None:
        self.result = result

    def create_meeting(self, request):
        return self.result


@pytest.fixture
def provisioner_holder() -> dict:
    return {'provisioner': StubProvisioner(MeetingResult.success('https://meet.google.com/abc-defg-hij', 'evt'))}


@pytest.fixture
def client(session_factory, provisioner_holder, monkeypatch: pytest.MonkeyPatch):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr(appointment_routes, 'ensure_database_ready', lambda: None)
    monkeypatch.setattr(email_service, 'send_appointment_email', lambda *args: None)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_meeting_provisioner] = lambda: provisioner_holder['provisioner']
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _auth(user) -> dict:
    return {'Authorization': f'Bearer {create_access_token(user.id, user.role)}'}


def _booking_payload(clinic, **overrides) -> dict:
    payload = {
        'doctor_id': clinic['doctor'].id,
        'specialization_id': clinic['specialization'].id,
        'appointment_date': BOOKING_DATE,
        'start_time': '10:00',
        'end_time': '10:30',
        'type': 'online',
        'notes': '  Chest pain after exercise  ',
    }
    payload.update(overrides)
    return payload


def test_book_appointment_request_normalizes_fields() -> None:
    request = BookAppointmentRequest(
        doctor_id=1,
        appointment_date='2026-01-05',
        start_time='09:30',
        end_time='10:00',
        type=' In-Person ',
        notes='   ',
    )

    assert request.start_time == time(9, 30)
    assert request.type == 'in-person'
    assert request.notes is None


@pytest.mark.parametrize(
    'overrides',
    [
        {'start_time': '9:30'},
        {'end_time': '25:00'},
        {'type': 'phone'},
        {'notes': 'x' * 601},
    ],
)
def test_book_appointment_request_rejects_malformed_fields(overrides) -> None:
    fields = {
        'doctor_id': 1,
        'appointment_date': '2026-01-05',
        'start_time': '09:30',
        'end_time': '10:00',
        'type': 'online',
    }
    fields.update(overrides)

    with pytest.raises(ValidationError):
        BookAppointmentRequest(**fields)


def test_list_specializations_is_public(client, clinic) -> None:
    response = client.get('/appointments/specializations')

    assert response.status_code == 200
    assert response.json() == [{'id': clinic['specialization'].id, 'name': 'Cardiology', 'description': None}]


def test_list_doctors_returns_active_doctors(client, clinic) -> None:
    response = client.get(
        f'/appointments/doctors/{clinic["specialization"].id}',
        headers=_auth(clinic['patient']),
    )

    assert response.status_code == 200
    assert [doctor['name'] for doctor in response.json()] == ['Abebe Kebede']


def test_slots_require_a_patient(client, clinic) -> None:
    assert client.get(f'/appointments/slots/{clinic["doctor"].id}').status_code in (401, 403)

    response = client.get(f'/appointments/slots/{clinic["doctor"].id}', headers=_auth(clinic['admin']))

    assert response.status_code == 403


def test_slots_list_seven_days_of_free_slots(client, clinic) -> None:
    response = client.get(f'/appointments/slots/{clinic["doctor"].id}', headers=_auth(clinic['patient']))

    body = response.json()
    assert response.status_code == 200
    assert len(body) == 7
    assert body[0]['date'] == date.today().isoformat()
    assert body[0]['free'][0] == {'start_time': '09:00', 'end_time': '09:30'}
    assert {'start_time': '13:00', 'end_time': '13:30'} not in body[0]['free']


def test_slots_without_schedule_return_message(client, clinic, db) -> None:
    db.query(DoctorSchedule).delete()
    db.commit()

    response = client.get(f'/appointments/slots/{clinic["doctor"].id}', headers=_auth(clinic['patient']))

    assert response.status_code == 200
    assert response.json() == {'message': 'No free slots in next 7 days. Please check later.'}


def test_book_returns_created_appointment(client, clinic) -> None:
    response = client.post('/appointments/book', json=_booking_payload(clinic), headers=_auth(clinic['patient']))

    body = response.json()
    assert response.status_code == 201
    assert body['patient_id'] == clinic['patient'].id
    assert body['appointment_date'] == BOOKING_DATE
    assert (body['start_time'], body['end_time']) == ('10:00', '10:30')
    assert body['meet_link'] == 'https://meet.google.com/abc-defg-hij'
    assert body['patient_notes'] == 'Chest pain after exercise'
    assert body['status'] == 'booked'


def test_booked_slot_disappears_from_availability(client, clinic) -> None:
    client.post('/appointments/book', json=_booking_payload(clinic), headers=_auth(clinic['patient']))

    response = client.get(f'/appointments/slots/{clinic["doctor"].id}', headers=_auth(clinic['patient']))

    booked_day = next(day for day in response.json() if day['date'] == BOOKING_DATE)
    assert {'start_time': '10:00', 'end_time': '10:30'} not in booked_day['free']
    assert {'start_time': '10:30', 'end_time': '11:00'} in booked_day['free']


def test_book_conflict_returns_error_object(client, clinic) -> None:
    client.post('/appointments/book', json=_booking_payload(clinic), headers=_auth(clinic['patient']))

    response = client.post(
        '/appointments/book',
        json=_booking_payload(clinic, start_time='10:15', end_time='10:45'),
        headers=_auth(clinic['patient']),
    )

    assert response.status_code == 409
    assert response.json() == {'error': 'Slot already booked.'}


def test_book_provisioning_failure_returns_bad_gateway(client, clinic, db, provisioner_holder) -> None:
    provisioner_holder['provisioner'] = StubProvisioner(
        MeetingResult.failure('Failed to generate online meeting link', 'Calendar API quota exceeded')
    )

    response = client.post('/appointments/book', json=_booking_payload(clinic), headers=_auth(clinic['patient']))

    assert response.status_code == 502
    assert response.json() == {
        'error': 'Failed to generate online meeting link',
        'detail': 'Calendar API quota exceeded',
    }
    assert db.query(Appointment).count() == 0


def test_book_unknown_doctor_returns_not_found(client, clinic) -> None:
    response = client.post(
        '/appointments/book',
        json=_booking_payload(clinic, doctor_id=9999, type='in-person'),
        headers=_auth(clinic['patient']),
    )

    assert response.status_code == 404
    assert response.json()['error'] == 'User/Doctor not found.'


def test_book_reversed_interval_is_rejected(client, clinic) -> None:
    response = client.post(
        '/appointments/book',
        json=_booking_payload(clinic, start_time='11:00', end_time='10:30'),
        headers=_auth(clinic['patient']),
    )

    assert response.status_code == 400
    assert response.json()['error'] == 'Invalid time range.'


def test_book_rejects_invalid_token(client, clinic) -> None:
    response = client.post(
        '/appointments/book',
        json=_booking_payload(clinic),
        headers={'Authorization': 'Bearer not-a-token'},
    )

    assert response.status_code == 401


def test_dashboard_splits_upcoming_and_history(client, clinic, db) -> None:
    yesterday = date.today() - timedelta(days=1)
    db.add_all([
        Appointment(
            patient_id=clinic['patient'].id,
            doctor_id=clinic['doctor'].id,
            appointment_date=yesterday,
            start_time=time(9, 0),
            end_time=time(9, 30),
            type='in-person',
            status='completed',
        ),
        Appointment(
            patient_id=clinic['patient'].id,
            doctor_id=clinic['doctor'].id,
            appointment_date=date.today() + timedelta(days=2),
            start_time=time(11, 0),
            end_time=time(11, 30),
            type='in-person',
            status='cancelled',
        ),
        Appointment(
            patient_id=clinic['patient'].id,
            doctor_id=clinic['doctor'].id,
            appointment_date=date.today() + timedelta(days=3),
            start_time=time(14, 0),
            end_time=time(14, 30),
            type='in-person',
            status='confirmed',
        ),
    ])
    db.commit()
    client.post('/appointments/book', json=_booking_payload(clinic), headers=_auth(clinic['patient']))

    response = client.get('/patients/dashboard', headers=_auth(clinic['patient']))

    body = response.json()
    assert response.status_code == 200
    assert [(item['appointment_date'], item['status']) for item in body['upcoming']] == [
        (BOOKING_DATE, 'booked'),
        ((date.today() + timedelta(days=3)).isoformat(), 'confirmed'),
    ]
    assert body['upcoming'][0]['doctor_name'] == 'Abebe Kebede'
    assert sorted(item['status'] for item in body['history']) == ['cancelled', 'completed']

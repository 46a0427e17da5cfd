from datetime import date, time, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from backend.core.errors import StoreError
from backend.models.appointment import Appointment
from backend.models.schedule import DoctorSchedule
from backend.scheduling import availability
from backend.scheduling.availability import build_availability, day_of_week, free_slots_for_day

MONDAY = date(2026, 1, 5)


def _book(db, clinic, start: time, end: time, status: str = 'booked', day: date = MONDAY) -> Appointment:
    appointment = Appointment(
        patient_id=clinic['patient'].id,
        doctor_id=clinic['doctor'].id,
        appointment_date=day,
        start_time=start,
        end_time=end,
        type='in-person',
        status=status,
    )
    db.add(appointment)
    db.commit()
    return appointment


def test_day_of_week_counts_from_sunday() -> None:
    assert day_of_week(date(2026, 1, 4)) == 0
    assert day_of_week(MONDAY) == 1
    assert day_of_week(date(2026, 1, 10)) == 6


def test_free_slots_exclude_only_overlapping_candidates(db, clinic) -> None:
    _book(db, clinic, time(10, 0), time(10, 30))

    free = [slot.to_dict() for slot in free_slots_for_day(db, clinic['doctor'].id, MONDAY)]

    assert {'start_time': '10:00', 'end_time': '10:30'} not in free
    assert {'start_time': '09:30', 'end_time': '10:00'} in free
    assert {'start_time': '10:30', 'end_time': '11:00'} in free
    assert len(free) == 14


def test_free_slots_exclude_every_slot_a_long_appointment_touches(db, clinic) -> None:
    _book(db, clinic, time(9, 15), time(10, 15))

    free = [slot.to_dict()['start_time'] for slot in free_slots_for_day(db, clinic['doctor'].id, MONDAY)]

    assert '09:00' not in free
    assert '09:30' not in free
    assert '10:00' not in free
    assert '10:30' in free


@pytest.mark.parametrize('status', ['cancelled', 'completed'])
def test_terminal_appointments_do_not_block_slots(db, clinic, status: str) -> None:
    _book(db, clinic, time(10, 0), time(10, 30), status=status)

    free = [slot.to_dict() for slot in free_slots_for_day(db, clinic['doctor'].id, MONDAY)]

    assert {'start_time': '10:00', 'end_time': '10:30'} in free


def test_confirmed_appointments_still_block_slots(db, clinic) -> None:
    _book(db, clinic, time(10, 0), time(10, 30), status='confirmed')

    free = [slot.to_dict() for slot in free_slots_for_day(db, clinic['doctor'].id, MONDAY)]

    assert {'start_time': '10:00', 'end_time': '10:30'} not in free


def test_appointments_on_other_days_do_not_block_slots(db, clinic) -> None:
    _book(db, clinic, time(10, 0), time(10, 30), day=MONDAY + timedelta(days=1))

    free = [slot.to_dict() for slot in free_slots_for_day(db, clinic['doctor'].id, MONDAY)]

    assert {'start_time': '10:00', 'end_time': '10:30'} in free


def test_build_availability_covers_seven_days_in_order(db, clinic) -> None:
    window = build_availability(db, clinic['doctor'].id, today=MONDAY, days=7)

    assert [day.date for day in window] == [MONDAY + timedelta(days=offset) for offset in range(7)]
    assert window[0].to_dict()['date'] == '2026-01-05'
    assert window[0].to_dict()['free'][0] == {'start_time': '09:00', 'end_time': '09:30'}


def test_build_availability_skips_days_without_template(db, clinic) -> None:
    db.query(DoctorSchedule).filter(DoctorSchedule.day_of_week.in_([0, 6])).delete(synchronize_session=False)
    db.commit()

    window = build_availability(db, clinic['doctor'].id, today=MONDAY, days=7)

    assert [day_of_week(day.date) for day in window] == [1, 2, 3, 4, 5]


def test_build_availability_skips_fully_booked_days(db, clinic) -> None:
    _book(db, clinic, time(9, 0), time(17, 0))

    window = build_availability(db, clinic['doctor'].id, today=MONDAY, days=2)

    assert [day.date for day in window] == [MONDAY + timedelta(days=1)]


def test_build_availability_is_empty_for_doctor_without_schedule(db, clinic) -> None:
    assert build_availability(db, 9999, today=MONDAY, days=7) == []


def test_build_availability_with_zero_days_is_empty(db, clinic) -> None:
    assert build_availability(db, clinic['doctor'].id, today=MONDAY, days=0) == []


def test_build_availability_defaults_to_configured_horizon(db, clinic, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(availability.config, 'AVAILABILITY_HORIZON_DAYS', 2)

    window = build_availability(db, clinic['doctor'].id, today=MONDAY)

    assert [day.date for day in window] == [MONDAY, MONDAY + timedelta(days=1)]


def test_build_availability_wraps_store_failures(db, clinic, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_lookup(*_args, **_kwargs):
        raise OperationalError('SELECT 1', {}, Exception('connection refused'))

    monkeypatch.setattr(availability, 'get_schedule_template', failing_lookup)

    with pytest.raises(StoreError):
        build_availability(db, clinic['doctor'].id, today=MONDAY, days=7)

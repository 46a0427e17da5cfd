"""Appointment reads and the atomic booking insert."""

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import NotFound, SlotConflict, StoreError
from backend.models.appointment import BOOKED, CONFIRMED, TERMINAL_STATUSES, Appointment
from backend.models.doctor import Doctor, Specialization
from backend.models.user import User
from backend.scheduling.time_utils import Interval, overlaps

logger = logging.getLogger(__name__)

PATIENT = 'patient'
DOCTOR = 'doctor'
ACTIVE_SLOT_INDEX = 'uq_appointments_active_slot'
UPCOMING_STATUSES = (BOOKED, CONFIRMED)


@dataclass(frozen=True)
class Contact:
    name: str
    email: str


def get_active_appointments(db: Session, doctor_id: int, appointment_date: date) -> list[Appointment]:
    """Appointments for a doctor and day that still hold their slot."""
    statement = (
        select(Appointment)
        .where(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == appointment_date,
            Appointment.status.not_in(TERMINAL_STATUSES),
        )
        .order_by(Appointment.start_time.asc())
    )
    return list(db.scalars(statement))


def find_conflicting_appointments(
    db: Session,
    doctor_id: int,
    appointment_date: date,
    requested: Interval,
) -> list[Appointment]:
    return [
        appointment
        for appointment in get_active_appointments(db, doctor_id, appointment_date)
        if overlaps(requested, Interval(appointment.start_time, appointment.end_time))
    ]


def get_contact(db: Session, kind: str, identity_id: int) -> Contact | None:
    model = {PATIENT: User, DOCTOR: Doctor}[kind]
    row = db.get(model, identity_id)
    if row is None:
        return None
    return Contact(name=row.name or '', email=row.email or '')


def specialization_exists(db: Session, specialization_id: int) -> bool:
    return db.get(Specialization, specialization_id) is not None


def is_active_slot_violation(exc: IntegrityError) -> bool:
    """True when the unique active-slot index rejected the insert."""
    message = str(exc.orig)
    # Postgres names the index; SQLite lists the indexed columns.
    return ACTIVE_SLOT_INDEX in message or (
        'UNIQUE constraint failed' in message and 'appointments.start_time' in message
    )


def _lock_doctor(db: Session, doctor_id: int) -> None:
    # Serialises bookings per doctor on backends with row locks.
    # SQLite ignores FOR UPDATE and relies on the unique slot index.
    doctor = db.execute(
        select(Doctor.id).where(Doctor.id == doctor_id).with_for_update()
    ).first()
    if doctor is None:
        raise NotFound('Doctor not found.')


def insert_if_no_conflict(db: Session, fields: dict) -> Appointment:
    """Re-check for overlaps and insert in one transaction.

    Raises ``SlotConflict`` when another active appointment overlaps the
    requested interval, whether it is seen by the check or only by the
    ``uq_appointments_active_slot`` index at flush time.
    """
    requested = Interval(fields['start_time'], fields['end_time'])

    try:
        _lock_doctor(db, fields['doctor_id'])

        if find_conflicting_appointments(db, fields['doctor_id'], fields['appointment_date'], requested):
            db.rollback()
            raise SlotConflict('Slot already booked.')

        appointment = Appointment(**fields, status=BOOKED)
        db.add(appointment)
        db.flush()
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not is_active_slot_violation(exc):
            raise NotFound('Referenced record not found.', str(exc.orig)) from exc
        logger.info(
            'Concurrent booking lost the race for doctor %s on %s at %s',
            fields['doctor_id'],
            fields['appointment_date'],
            fields['start_time'],
        )
        raise SlotConflict('Slot already booked.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError('Database unavailable.', 'Please retry the booking.') from exc
    except NotFound:
        db.rollback()
        raise

    db.refresh(appointment)
    return appointment


def list_patient_appointments(db: Session, patient_id: int, today: date) -> tuple[list, list]:
    """Split a patient's appointments into ``(upcoming, history)`` rows.

    Each row is an ``(Appointment, doctor_name)`` pair.
    """
    rows = db.execute(
        select(Appointment, Doctor.name)
        .join(Doctor, Appointment.doctor_id == Doctor.id)
        .where(Appointment.patient_id == patient_id)
        .order_by(Appointment.appointment_date.asc(), Appointment.start_time.asc())
    ).all()

    upcoming = []
    history = []
    for appointment, doctor_name in rows:
        if appointment.appointment_date >= today and appointment.status in UPCOMING_STATUSES:
            upcoming.append((appointment, doctor_name))
        else:
            history.append((appointment, doctor_name))

    return upcoming, history

"""Specializations, doctors and their weekly schedule templates."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.models.doctor import Doctor, Specialization
from backend.models.schedule import DoctorSchedule


def list_specializations(db: Session) -> list[Specialization]:
    return list(db.scalars(select(Specialization).order_by(Specialization.name.asc())))


def list_active_doctors(db: Session, specialization_id: int) -> list[Doctor]:
    statement = (
        select(Doctor)
        .where(Doctor.specialization_id == specialization_id, Doctor.is_active.is_(True))
        .order_by(Doctor.name.asc())
    )
    return list(db.scalars(statement))


def create_doctor(db: Session, **fields) -> Doctor:
    doctor = Doctor(**fields)
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


def get_schedule_template(db: Session, doctor_id: int, day_of_week: int) -> DoctorSchedule | None:
    return db.scalars(
        select(DoctorSchedule).where(
            DoctorSchedule.doctor_id == doctor_id,
            DoctorSchedule.day_of_week == day_of_week,
        )
    ).first()


def upsert_schedule_template(db: Session, doctor_id: int, day_of_week: int, **fields) -> DoctorSchedule:
    template = get_schedule_template(db, doctor_id, day_of_week)
    if template is None:
        template = DoctorSchedule(doctor_id=doctor_id, day_of_week=day_of_week)
        db.add(template)

    for name, value in fields.items():
        setattr(template, name, value)

    db.commit()
    db.refresh(template)
    return template

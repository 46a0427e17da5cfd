"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Time, text
from backend.database import Base

BOOKED = 'booked'
CONFIRMED = 'confirmed'
CANCELLED = 'cancelled'
COMPLETED = 'completed'
TERMINAL_STATUSES = (CANCELLED, COMPLETED)

ONLINE = 'online'
IN_PERSON = 'in-person'
APPOINTMENT_TYPES = (ONLINE, IN_PERSON)

_ACTIVE_SLOT_CLAUSE = text("status NOT IN ('cancelled', 'completed')")


class Appointment(Base):
    """Represents a scheduled appointment."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_doctor_date", "doctor_id", "appointment_date"),
        Index(
            "uq_appointments_active_slot",
            "doctor_id",
            "appointment_date",
            "start_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_CLAUSE,
            sqlite_where=_ACTIVE_SLOT_CLAUSE,
        ),
    )

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    specialization_id = Column(Integer, ForeignKey("specializations.id"))
    appointment_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    type = Column(String, nullable=False)
    meet_link = Column(String)
    patient_notes = Column(String)
    status = Column(String, nullable=False, default=BOOKED)
    created_at = Column(DateTime, default=datetime.now)

"""Weekly schedule template definitions."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Time, UniqueConstraint
from backend.database import Base


class DoctorSchedule(Base):
    """Working hours of one doctor on one weekday (0=Sunday .. 6=Saturday)."""
    __tablename__ = "doctor_schedules"
    __table_args__ = (
        UniqueConstraint("doctor_id", "day_of_week", name="uq_doctor_schedules_doctor_day"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_doctor_schedules_day_of_week"),
        CheckConstraint("slot_duration > 0", name="ck_doctor_schedules_slot_duration"),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    slot_duration = Column(Integer, nullable=False)
    break_start = Column(Time)
    break_end = Column(Time)

"""Rolling availability window for a doctor."""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core import config
from backend.core.errors import StoreError
from backend.crud.appointment import get_active_appointments
from backend.crud.directory import get_schedule_template
from backend.scheduling.slots import Slot, slots_for_template
from backend.scheduling.time_utils import Interval, overlaps_any

logger = logging.getLogger(__name__)


@dataclass
class DayAvailability:
    date: date
    free: list[Slot] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'date': self.date.isoformat(),
            'free': [slot.to_dict() for slot in self.free],
        }


def no_slots_message(days: int) -> str:
    return f'No free slots in next {days} days. Please check later.'


def day_of_week(day: date) -> int:
    """Weekday index with Sunday as 0."""
    return day.isoweekday() % 7


def horizon(today: date, days: int) -> list[date]:
    return [today + timedelta(days=offset) for offset in range(days)]


def free_slots_for_day(db: Session, doctor_id: int, day: date) -> list[Slot]:
    template = get_schedule_template(db, doctor_id, day_of_week(day))
    if template is None:
        return []

    booked = [
        Interval(appointment.start_time, appointment.end_time)
        for appointment in get_active_appointments(db, doctor_id, day)
    ]
    return [slot for slot in slots_for_template(template, day) if not overlaps_any(slot, booked)]


def build_availability(
    db: Session,
    doctor_id: int,
    today: date | None = None,
    days: int | None = None,
) -> list[DayAvailability]:
    """Free slots per day from ``today`` through ``today + days - 1``.

    Days without a schedule template or without a free slot are left out.
    Any database failure aborts the whole window.
    """
    today = today or date.today()
    if days is None:
        days = config.AVAILABILITY_HORIZON_DAYS

    try:
        window = []
        for day in horizon(today, days):
            free = free_slots_for_day(db, doctor_id, day)
            if free:
                window.append(DayAvailability(date=day, free=free))
        return window
    except SQLAlchemyError as exc:
        logger.exception('Availability lookup failed for doctor %s', doctor_id)
        raise StoreError('Database unavailable.', 'Please retry shortly.') from exc

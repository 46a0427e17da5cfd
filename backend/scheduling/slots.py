"""Slot generation for a single working day.

Slots are never stored. ``DailySlots`` is a plain iterable over a schedule
template: iterating it twice walks the working window twice, so callers can
filter or re-read it without holding on to a list.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterator

from backend.scheduling.time_utils import Interval, add_minutes, format_time_of_day

# Anchor day for time-of-day arithmetic. A slot that would end at or past
# midnight lands on the next day and is not offered.
_ANCHOR_DAY = date(2000, 1, 3)


@dataclass(frozen=True)
class Slot(Interval):
    """A candidate bookable interval, optionally tied to a calendar date."""

    day: date | None = None

    def to_dict(self) -> dict:
        return {
            'start_time': format_time_of_day(self.start),
            'end_time': format_time_of_day(self.end),
        }


class DailySlots:
    """Fixed-size slots walked from ``start`` towards ``end``.

    A slot is skipped only when it lies entirely inside the break window. A
    slot straddling a break boundary is still offered. The last slot may run
    past ``end`` when ``duration`` does not divide the working window, but
    never past midnight.
    """

    def __init__(
        self,
        start: time,
        end: time,
        duration: int,
        break_start: time | None = None,
        break_end: time | None = None,
        day: date | None = None,
    ) -> None:
        if duration <= 0:
            raise ValueError('Slot duration must be a positive number of minutes.')
        self.start = start
        self.end = end
        self.duration = duration
        self.break_start = break_start
        self.break_end = break_end
        self.day = day

    def _at(self, value: time) -> datetime:
        return datetime.combine(_ANCHOR_DAY, value)

    def _inside_break(self, slot_start: datetime, slot_end: datetime) -> bool:
        if self.break_start is None or self.break_end is None:
            return False
        return slot_start >= self._at(self.break_start) and slot_end <= self._at(self.break_end)

    def __iter__(self) -> Iterator[Slot]:
        cursor = self._at(self.start)
        window_end = self._at(self.end)

        while cursor < window_end:
            slot_end = add_minutes(cursor, self.duration)
            if slot_end.date() != _ANCHOR_DAY:
                break
            if not self._inside_break(cursor, slot_end):
                yield Slot(start=cursor.time(), end=slot_end.time(), day=self.day)
            cursor = slot_end


def generate_slots(
    start: time,
    end: time,
    duration: int,
    break_start: time | None = None,
    break_end: time | None = None,
    day: date | None = None,
) -> DailySlots:
    return DailySlots(start, end, duration, break_start, break_end, day)


def slots_for_template(template, day: date | None = None) -> DailySlots:
    """Slots for a ``DoctorSchedule`` row (or anything shaped like one)."""
    return DailySlots(
        template.start_time,
        template.end_time,
        template.slot_duration,
        template.break_start,
        template.break_end,
        day,
    )

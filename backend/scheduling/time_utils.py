"""Time-of-day parsing and half-open interval helpers."""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from backend.core.errors import FormatError

_TIME_OF_DAY = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')
_ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


@dataclass(frozen=True)
class Interval:
    """A half-open ``[start, end)`` span within one day."""

    start: time
    end: time


def parse_time_of_day(value: str) -> time:
    """Parse a 24-hour ``HH:MM`` string."""
    if not isinstance(value, str):
        raise FormatError('Invalid time format.', f'Expected HH:MM, got: {value!r}')

    match = _TIME_OF_DAY.match(value.strip())
    if match is None:
        raise FormatError('Invalid time format.', f'Expected HH:MM, got: {value!r}')

    return time(int(match.group(1)), int(match.group(2)))


def format_time_of_day(value: time) -> str:
    return value.strftime('%H:%M')


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date."""
    if not isinstance(value, str) or not _ISO_DATE.match(value.strip()):
        raise FormatError('Invalid date format.', f'Expected YYYY-MM-DD, got: {value!r}')
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise FormatError('Invalid date format.', str(exc)) from exc


def coerce_time_of_day(value) -> time:
    """Accept either a ``time`` or an ``HH:MM`` string; drops seconds."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    return parse_time_of_day(value)


def add_minutes(anchor: datetime, minutes: int) -> datetime:
    return anchor + timedelta(minutes=minutes)


def overlaps(a: Interval, b: Interval) -> bool:
    """True when two half-open intervals share at least one instant.

    Touching endpoints (``a.end == b.start``) do not overlap. Availability
    filtering and booking conflict detection both go through this check.
    """
    return a.start < b.end and a.end > b.start


def overlaps_any(candidate: Interval, others) -> bool:
    return any(overlaps(candidate, other) for other in others)

"""Calendar and time-of-day helpers.

Shift times are exchanged as "HH:MM" strings and dates as ISO calendar
dates. The helpers here are pure functions so that the scheduling
engine, the validator and the reports agree on one interpretation of both.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Iterator, Optional

MINUTES_PER_DAY = 24 * 60
NOON_HOUR = 12


class Weekday(Enum):
    """Working weekdays. Saturday and Sunday are never scheduled."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"

    @classmethod
    def ordered(cls) -> list["Weekday"]:
        """Weekdays in calendar order, Monday first."""
        return list(cls)


class HalfDay(Enum):
    """Halves of a working day, split at noon."""

    AM = "AM"
    PM = "PM"


def parse_time(value: str) -> tuple[int, int]:
    """Parse an "HH:MM" string into (hour, minute).

    Raises:
        ValueError: If the string is not a valid 24-hour time of day.
    """
    if not isinstance(value, str):
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")
    parts = value.split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")

    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")
    return hour, minute


def time_to_minutes(value: str) -> int:
    """Minutes since midnight for an "HH:MM" string."""
    hour, minute = parse_time(value)
    return hour * 60 + minute


def shift_duration_hours(start_time: str, end_time: str) -> float:
    """Length of a shift in hours.

    A shift whose end lies before its start crosses midnight, so a day is
    added to the end before subtracting. Equal start and end yield 0.0.

    Example:
        >>> shift_duration_hours("22:00", "06:00")
        8.0
    """
    start_minutes = time_to_minutes(start_time)
    end_minutes = time_to_minutes(end_time)

    if end_minutes < start_minutes:
        end_minutes += MINUTES_PER_DAY

    return (end_minutes - start_minutes) / 60


def working_weekday(d: date) -> Optional[Weekday]:
    """Working weekday for a date, or None on Saturday and Sunday."""
    index = d.weekday()
    if index >= len(Weekday.ordered()):
        return None
    return Weekday.ordered()[index]


def date_range(start_date: date, end_date: date) -> Iterator[date]:
    """Yield every date from start_date to end_date inclusive.

    An inverted range yields nothing.
    """
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def working_dates(start_date: date, end_date: date) -> list[tuple[date, Weekday]]:
    """(date, weekday) pairs for the Monday-Friday dates of a horizon."""
    result = []
    for d in date_range(start_date, end_date):
        weekday = working_weekday(d)
        if weekday is not None:
            result.append((d, weekday))
    return result


def to_iso(d: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return d.isoformat()


def from_iso(value: str) -> date:
    """Parse a YYYY-MM-DD string.

    Raises:
        ValueError: If the string is not an ISO calendar date.
    """
    return date.fromisoformat(value)

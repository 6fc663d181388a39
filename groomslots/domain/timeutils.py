"""
Parsing and formatting helpers for the transport formats used at the edges.

Dates are local calendar dates in the business timezone ("YYYY-MM-DD"),
times of day are "HH:MM", instants are ISO-8601 strings.
"""

import re
from datetime import time

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidInputError

MINUTES_PER_DAY = 24 * 60

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")


def parse_date(value: str, field: str = "date") -> Date:
    """Parse a "YYYY-MM-DD" string into a calendar date."""
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        raise InvalidInputError(field, f"expected YYYY-MM-DD, got {value!r}")
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except ValueError as exc:
        raise InvalidInputError(field, f"invalid calendar date {value!r}") from exc


def parse_time_of_day(value: str, field: str = "time") -> time:
    """Parse a "HH:MM" string into a time of day."""
    match = _TIME_PATTERN.match(value) if isinstance(value, str) else None
    if not match:
        raise InvalidInputError(field, f"expected HH:MM, got {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidInputError(field, f"time out of range: {value!r}")
    return time(hour=hour, minute=minute)


def parse_instant(value: str, timezone: str, field: str = "scheduled_at") -> DateTime:
    """
    Parse an ISO-8601 datetime and express it in the business timezone.

    Strings without an offset are read as business-local wall time.
    """
    try:
        parsed = pendulum.parse(value, tz=timezone)
    except (ValueError, TypeError) as exc:
        raise InvalidInputError(field, f"invalid ISO-8601 datetime {value!r}") from exc
    if not isinstance(parsed, DateTime):
        raise InvalidInputError(field, f"expected a datetime, got {value!r}")
    return parsed.in_timezone(timezone)


def time_to_minutes(value: time) -> int:
    """Minutes since midnight."""
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidInputError("minutes", f"{minutes} is outside a single day")
    return time(hour=minutes // 60, minute=minutes % 60)


def combine(day: Date, at: time, timezone: str) -> DateTime:
    """Anchor a local date and time of day in the business timezone."""
    return pendulum.datetime(day.year, day.month, day.day, at.hour, at.minute, tz=timezone)


def format_time(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def format_date(value: Date) -> str:
    return value.format("YYYY-MM-DD")


def format_time_display(value: str) -> str:
    """
    Format an "HH:MM" string for customers using a 12-hour clock.

    Example: "14:30" -> "2:30 PM", "00:15" -> "12:15 AM"
    """
    parsed = parse_time_of_day(value)
    period = "PM" if parsed.hour >= 12 else "AM"
    display_hour = parsed.hour % 12 or 12
    return f"{display_hour}:{parsed.minute:02d} {period}"

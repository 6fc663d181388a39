"""
Booking window validation: minimum advance notice and maximum horizon.
"""

from dataclasses import dataclass
from datetime import time
from typing import Optional

from pendulum import Date, DateTime

from .clock import Clock
from .timeutils import combine


@dataclass(frozen=True)
class WindowCheck:
    allowed: bool
    reason: Optional[str] = None


def earliest_bookable(now: DateTime, min_advance_minutes: int) -> DateTime:
    """Instants at or before this are too soon."""
    return now.add(minutes=min_advance_minutes)


def latest_bookable(now: DateTime, max_advance_days: int) -> DateTime:
    """Instants after this are too far out. Measured in elapsed hours, not calendar days."""
    return now.add(hours=max_advance_days * 24)


def check_instant(
    scheduled: DateTime,
    now: DateTime,
    min_advance_minutes: int,
    max_advance_days: int,
) -> WindowCheck:
    """
    Validate one instant against the window.

    The lower bound is exclusive (exactly ``now + min_advance`` is rejected),
    the upper bound is inclusive (exactly ``now + max_advance`` is accepted).
    """
    if scheduled <= earliest_bookable(now, min_advance_minutes):
        return WindowCheck(
            allowed=False,
            reason=f"Appointments must be booked at least {min_advance_minutes} minutes in advance",
        )
    if scheduled > latest_bookable(now, max_advance_days):
        return WindowCheck(
            allowed=False,
            reason=f"Appointments cannot be booked more than {max_advance_days} days in advance",
        )
    return WindowCheck(allowed=True)


def is_within_window(
    day: Date,
    start: time,
    min_advance_minutes: int,
    max_advance_days: int,
    clock: Clock,
    timezone: str,
) -> WindowCheck:
    """Check a local (date, time) pair in the business timezone against the booking window."""
    return check_instant(
        combine(day, start, timezone),
        clock.now(),
        min_advance_minutes,
        max_advance_days,
    )

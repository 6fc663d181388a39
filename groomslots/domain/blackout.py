"""
Blackout resolution: is a calendar date wholly blocked for bookings?
"""

from typing import Optional

from pendulum import Date

from .models import BlackoutSet, Weekday


def is_date_blocked(day: Date, blackout: BlackoutSet) -> bool:
    """True iff the date is an explicit blackout, inside a blocked range, or on a recurring blocked weekday."""
    return blocked_reason(day, blackout) is not None


def blocked_reason(day: Date, blackout: BlackoutSet) -> Optional[str]:
    """
    Explain why a date is blocked, or return None when it is bookable.

    Explicit ranges carry an administrator-supplied reason; recurring
    weekdays are described by name.
    """
    for blocked in blackout.blocked_ranges:
        if blocked.covers(day):
            return blocked.reason or "Date is blocked"

    if day in blackout.explicit_dates:
        return "Date is blocked"

    weekday = Weekday.of(day)
    if weekday in blackout.recurring_weekdays:
        return f"{weekday.label}s are blocked for appointments"

    return None

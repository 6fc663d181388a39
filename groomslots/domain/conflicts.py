"""
Conflict detection between a candidate slot and existing appointments.

Intervals are half-open, so an appointment ending at 10:00 leaves a
10:00 start free.
"""

import logging
from datetime import time
from typing import Iterable, Iterator, List

from pendulum import Date

from .exceptions import InvalidInputError
from .models import ExistingAppointment, TimeRange
from .timeutils import combine

logger = logging.getLogger(__name__)


def candidate_range(
    day: Date,
    start: time,
    duration_minutes: int,
    timezone: str,
) -> TimeRange:
    if duration_minutes <= 0:
        raise InvalidInputError("duration_minutes", f"must be positive, got {duration_minutes}")
    begin = combine(day, start, timezone)
    return TimeRange(start=begin, end=begin.add(minutes=duration_minutes))


def _iter_conflicts(
    candidate: TimeRange,
    existing_appointments: Iterable[ExistingAppointment],
    day: Date,
    timezone: str,
) -> Iterator[ExistingAppointment]:
    for appointment in existing_appointments:
        if not appointment.blocking:
            continue
        if appointment.scheduled_at.in_timezone(timezone).date() != day:
            continue
        if candidate.overlaps(appointment.time_range()):
            yield appointment


def has_conflict(
    start: time,
    duration_minutes: int,
    existing_appointments: Iterable[ExistingAppointment],
    day: Date,
    timezone: str,
) -> bool:
    """
    Check whether a candidate overlaps any blocking appointment on the same date.

    Args:
        start: Candidate start, local wall time
        duration_minutes: Candidate length including buffer padding
        existing_appointments: Snapshot from storage; other dates and
            cancelled/no-show entries are ignored
        day: Local calendar date of the candidate
        timezone: Business timezone

    Returns:
        True on the first overlap found
    """
    candidate = candidate_range(day, start, duration_minutes, timezone)
    for _ in _iter_conflicts(candidate, existing_appointments, day, timezone):
        return True
    return False


def find_conflicts(
    start: time,
    duration_minutes: int,
    existing_appointments: Iterable[ExistingAppointment],
    day: Date,
    timezone: str,
) -> List[ExistingAppointment]:
    """Return every blocking appointment that overlaps the candidate."""
    candidate = candidate_range(day, start, duration_minutes, timezone)
    conflicts = list(_iter_conflicts(candidate, existing_appointments, day, timezone))
    if conflicts:
        logger.debug("Candidate %s overlaps %d appointment(s)", candidate, len(conflicts))
    return conflicts

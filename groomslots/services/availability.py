"""
Availability service - the composition root of the scheduling engine.

Answers "which slots are open on date D for service S", "is slot (D, T)
still free" and "which dates should a calendar widget disable". It performs
no I/O: settings and the appointment snapshot are supplied by the caller,
which keeps it trivially testable with fixtures.

The read-time slot list is advisory. Before inserting an appointment the
caller must re-run ``ensure_slot_free`` against a fresh snapshot inside the
same critical section as the insert (see ``services.booking``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import time
from typing import Iterable, List, Optional

from pendulum import Date

from ..domain.blackout import blocked_reason
from ..domain.booking_window import check_instant
from ..domain.clock import Clock, SystemClock
from ..domain.conflicts import find_conflicts
from ..domain.exceptions import BookingRejectedError, InvalidInputError, SlotConflictError
from ..domain.models import (
    BlackoutSet,
    BookingPolicy,
    BusinessCalendar,
    DayAvailability,
    ExistingAppointment,
    SchedulingSettings,
    Service,
    TimeSlot,
    Weekday,
)
from ..domain.slot_generator import SlotGenerator
from ..domain.timeutils import combine, format_date, format_time, time_to_minutes

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_DAYS = 60


@dataclass(frozen=True)
class SlotCheck:
    """Outcome of validating one proposed start time."""
    allowed: bool
    reason: Optional[str] = None
    conflict: bool = False


class AvailabilityService:
    """
    Orchestrates blackout resolution, window validation, slot generation
    and conflict detection for one set of scheduling settings.
    """

    def __init__(self, settings: SchedulingSettings, clock: Optional[Clock] = None) -> None:
        self._settings = settings
        self._clock = clock or SystemClock(settings.timezone)
        self._generator = SlotGenerator(
            calendar=settings.calendar,
            policy=settings.policy,
            blackout=settings.blackout,
            timezone=settings.timezone,
        )

    @property
    def settings(self) -> SchedulingSettings:
        return self._settings

    def get_available_slots(
        self,
        day: Date,
        service: Service,
        existing_appointments: Iterable[ExistingAppointment],
    ) -> List[TimeSlot]:
        """Chronological slot list for ``day``, each flagged available or taken."""
        return self._generator.generate_slots(day, service, existing_appointments, self._clock)

    def describe_day(
        self,
        day: Date,
        service: Service,
        existing_appointments: Iterable[ExistingAppointment],
    ) -> DayAvailability:
        """Slot list plus the reason the day is closed, if it is."""
        reason = self._closure_reason(day)
        if reason is not None:
            return DayAvailability(date=day, is_closed=True, reason=reason)

        slots = self.get_available_slots(day, service, existing_appointments)
        return DayAvailability(date=day, is_closed=False, slots=slots)

    def check_slot(
        self,
        day: Date,
        start: time,
        service: Service,
        existing_appointments: Iterable[ExistingAppointment],
    ) -> SlotCheck:
        """
        Validate a proposed start time against every rule.

        Unlike the slot grid, this accepts any start inside business hours so
        staff can book walk-ins at off-grid times.
        """
        reason = self._closure_reason(day)
        if reason is not None:
            return SlotCheck(allowed=False, reason=reason)

        settings = self._settings
        hours = settings.calendar.for_date(day)
        start_minutes = time_to_minutes(start)
        occupied = service.duration_minutes + settings.policy.buffer_minutes

        if start_minutes < hours.open_minutes or start_minutes >= hours.close_minutes:
            return SlotCheck(allowed=False, reason="Requested time is outside business hours")

        if start_minutes + occupied > hours.close_minutes:
            return SlotCheck(
                allowed=False,
                reason=f"Appointment must finish by closing time {format_time(hours.close)}",
            )

        window = check_instant(
            combine(day, start, settings.timezone),
            self._clock.now(),
            settings.policy.min_advance_minutes,
            settings.policy.max_advance_days,
        )
        if not window.allowed:
            return SlotCheck(allowed=False, reason=window.reason)

        conflicts = find_conflicts(start, occupied, existing_appointments, day, settings.timezone)
        if conflicts:
            return SlotCheck(allowed=False, reason="Time slot is already booked", conflict=True)

        return SlotCheck(allowed=True)

    def is_slot_free(
        self,
        day: Date,
        start: time,
        service: Service,
        existing_appointments: Iterable[ExistingAppointment],
    ) -> bool:
        return self.check_slot(day, start, service, existing_appointments).allowed

    def ensure_slot_free(
        self,
        day: Date,
        start: time,
        service: Service,
        existing_appointments: Iterable[ExistingAppointment],
    ) -> None:
        """
        Raise unless the slot can be booked against this snapshot.

        Raises:
            SlotConflictError: The slot collides with another appointment
            BookingRejectedError: Any other business rule rejects the slot
        """
        appointments = list(existing_appointments)
        result = self.check_slot(day, start, service, appointments)
        if result.allowed:
            return

        if result.conflict:
            alternatives = [
                slot.label
                for slot in self.get_available_slots(day, service, appointments)
                if slot.available
            ]
            logger.warning(
                "Slot %s %s was taken; %d alternative(s) remain",
                format_date(day),
                format_time(start),
                len(alternatives),
            )
            raise SlotConflictError(format_date(day), format_time(start), alternatives)

        raise BookingRejectedError(result.reason or "Slot cannot be booked")

    def get_disabled_dates(self, start_date: Date, end_date: Date) -> List[Date]:
        settings = self._settings
        return get_disabled_dates(
            start_date,
            end_date,
            settings.calendar,
            settings.blackout,
            settings.policy,
            self._clock,
            settings.timezone,
        )

    def is_date_available(self, day: Date) -> bool:
        """Not past, within the horizon, open, and not blacked out."""
        return not self.get_disabled_dates(day, day)

    def next_available_date(
        self,
        start_date: Optional[Date] = None,
        search_days: int = DEFAULT_SEARCH_DAYS,
    ) -> Optional[Date]:
        """First available date from ``start_date`` (default today) within ``search_days``."""
        if search_days <= 0:
            raise InvalidInputError("search_days", f"must be positive, got {search_days}")

        first = start_date or self._today()
        last = first.add(days=search_days - 1)
        disabled = set(self.get_disabled_dates(first, last))

        current = first
        while current <= last:
            if current not in disabled:
                return current
            current = current.add(days=1)
        return None

    def _closure_reason(self, day: Date) -> Optional[str]:
        reason = blocked_reason(day, self._settings.blackout)
        if reason is not None:
            return reason
        if not self._settings.calendar.is_open_on(day):
            return f"Closed on {Weekday.of(day).label}s"
        return None

    def _today(self) -> Date:
        return self._clock.now().in_timezone(self._settings.timezone).date()


def get_disabled_dates(
    start_date: Date,
    end_date: Date,
    calendar: BusinessCalendar,
    blackout: BlackoutSet,
    policy: BookingPolicy,
    clock: Clock,
    timezone: str,
) -> List[Date]:
    """
    Dates in ``[start_date, end_date]`` a calendar widget should disable.

    A date is disabled when it is in the past, beyond the max-advance
    horizon, on a closed weekday, or blacked out. Same rules as slot
    generation, expressed per date.
    """
    if end_date < start_date:
        raise InvalidInputError(
            "end_date",
            f"{format_date(end_date)} is before start date {format_date(start_date)}",
        )

    today = clock.now().in_timezone(timezone).date()
    horizon = today.add(days=policy.max_advance_days)

    disabled: List[Date] = []
    current = start_date
    while current <= end_date:
        if (
            current < today
            or current > horizon
            or not calendar.is_open_on(current)
            or blocked_reason(current, blackout) is not None
        ):
            disabled.append(current)
        current = current.add(days=1)

    return disabled

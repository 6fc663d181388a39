"""
Core business logic for generating bookable time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import logging
from typing import Iterable, List

from pendulum import Date, DateTime

from .blackout import is_date_blocked
from .booking_window import check_instant, earliest_bookable
from .clock import Clock
from .conflicts import has_conflict
from .models import (
    BlackoutSet,
    BookingPolicy,
    BusinessCalendar,
    ExistingAppointment,
    Service,
    TimeSlot,
    WeekdayHours,
)
from .timeutils import combine, minutes_to_time

logger = logging.getLogger(__name__)


class SlotGenerator:
    """
    Produces the slot list for one service on one day.

    Algorithm:
    1. Closed weekday or blacked-out date -> no slots
    2. Build the interval-aligned grid from opening time up to (not including) closing
    3. Drop candidates outside the booking window
    4. Drop candidates where service plus buffer would run past closing
    5. On today's date, drop candidates at or before now + minimum advance
    6. Mark each survivor available unless it collides with an existing appointment
    """

    def __init__(
        self,
        calendar: BusinessCalendar,
        policy: BookingPolicy,
        blackout: BlackoutSet,
        timezone: str,
    ):
        self.calendar = calendar
        self.policy = policy
        self.blackout = blackout
        self.timezone = timezone

    def generate_slots(
        self,
        day: Date,
        service: Service,
        existing_appointments: Iterable[ExistingAppointment],
        clock: Clock,
    ) -> List[TimeSlot]:
        """
        Generate the chronological slot list for a date.

        Args:
            day: Local calendar date in the business timezone
            service: Service being booked
            existing_appointments: Storage snapshot for the date
            clock: Source of "now"; the same instant is used for every rule

        Returns:
            List of TimeSlot objects, empty when the day cannot be booked
        """
        hours = self.calendar.for_date(day)

        if not hours.is_open:
            logger.debug("No slots on %s: closed on this weekday", day)
            return []

        if is_date_blocked(day, self.blackout):
            logger.debug("No slots on %s: date is blacked out", day)
            return []

        now = clock.now()
        appointments = list(existing_appointments)
        occupied_minutes = service.duration_minutes + self.policy.buffer_minutes

        slots: List[TimeSlot] = []
        for minutes in self._build_candidate_grid(hours):
            start = minutes_to_time(minutes)
            scheduled = combine(day, start, self.timezone)

            window = check_instant(
                scheduled,
                now,
                self.policy.min_advance_minutes,
                self.policy.max_advance_days,
            )
            if not window.allowed:
                continue

            if not self._fits_before_close(minutes, occupied_minutes, hours):
                continue

            if self._is_today(day, now) and scheduled <= earliest_bookable(
                now, self.policy.min_advance_minutes
            ):
                continue

            available = not has_conflict(
                start,
                occupied_minutes,
                appointments,
                day,
                self.timezone,
            )
            slots.append(TimeSlot(time=start, available=available))

        if not slots:
            logger.debug("No slots on %s for a %d minute service", day, service.duration_minutes)

        return slots

    def _build_candidate_grid(self, hours: WeekdayHours) -> List[int]:
        """
        Candidate starts in minutes since midnight.

        A grid that does not land exactly on closing time simply stops short.
        """
        return list(
            range(hours.open_minutes, hours.close_minutes, self.policy.slot_interval_minutes)
        )

    @staticmethod
    def _fits_before_close(start_minutes: int, occupied_minutes: int, hours: WeekdayHours) -> bool:
        return start_minutes + occupied_minutes <= hours.close_minutes

    def _is_today(self, day: Date, now: DateTime) -> bool:
        return now.in_timezone(self.timezone).date() == day


def generate_slots(
    day: Date,
    service: Service,
    calendar: BusinessCalendar,
    policy: BookingPolicy,
    blackout: BlackoutSet,
    existing_appointments: Iterable[ExistingAppointment],
    clock: Clock,
    timezone: str,
) -> List[TimeSlot]:
    """Functional entry point over SlotGenerator."""
    generator = SlotGenerator(calendar=calendar, policy=policy, blackout=blackout, timezone=timezone)
    return generator.generate_slots(day, service, existing_appointments, clock)

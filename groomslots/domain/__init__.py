"""
Domain layer - Pure business logic without external dependencies.
"""

from .blackout import blocked_reason, is_date_blocked
from .booking_window import WindowCheck, is_within_window
from .clock import Clock, FixedClock, SystemClock
from .conflicts import find_conflicts, has_conflict
from .models import (
    AppointmentStatus,
    BlackoutSet,
    BlockedDate,
    BookingPolicy,
    BusinessCalendar,
    DayAvailability,
    ExistingAppointment,
    SchedulingSettings,
    Service,
    TimeRange,
    TimeSlot,
    Weekday,
    WeekdayHours,
    is_blocking,
)
from .slot_generator import SlotGenerator, generate_slots

__all__ = [
    "AppointmentStatus",
    "BlackoutSet",
    "BlockedDate",
    "BookingPolicy",
    "BusinessCalendar",
    "Clock",
    "DayAvailability",
    "ExistingAppointment",
    "FixedClock",
    "SchedulingSettings",
    "Service",
    "SlotGenerator",
    "SystemClock",
    "TimeRange",
    "TimeSlot",
    "Weekday",
    "WeekdayHours",
    "WindowCheck",
    "blocked_reason",
    "find_conflicts",
    "generate_slots",
    "has_conflict",
    "is_blocking",
    "is_date_blocked",
    "is_within_window",
]

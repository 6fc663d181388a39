"""
Domain models for business hours, booking policy, blackouts and slots.
"""

from dataclasses import dataclass, field
from datetime import time
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from pendulum import Date, DateTime

from .exceptions import InvalidInputError
from .timeutils import (
    MINUTES_PER_DAY,
    format_date,
    format_time,
    parse_instant,
    time_to_minutes,
)

DEFAULT_TIMEZONE = "UTC"
DEFAULT_MIN_ADVANCE_MINUTES = 30
DEFAULT_MAX_ADVANCE_DAYS = 90
DEFAULT_SLOT_INTERVAL_MINUTES = 30


class Weekday(IntEnum):
    """Day of week as exchanged with collaborators: 0=Sunday ... 6=Saturday."""
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def of(cls, day: Date) -> "Weekday":
        return cls(day.isoweekday() % 7)

    @classmethod
    def from_name(cls, name: str) -> "Weekday":
        try:
            return cls[name.upper()]
        except KeyError:
            raise InvalidInputError("weekday", f"unknown weekday name {name!r}") from None

    @property
    def label(self) -> str:
        return self.name.capitalize()


class AppointmentStatus(str, Enum):
    """Lifecycle states owned by the appointment-management side."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @classmethod
    def parse(cls, value: str) -> "AppointmentStatus":
        try:
            return cls(value)
        except ValueError:
            raise InvalidInputError("status", f"unknown appointment status {value!r}") from None


NON_BLOCKING_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})


def is_blocking(status: AppointmentStatus) -> bool:
    """Whether an appointment in this status occupies its time range."""
    return status not in NON_BLOCKING_STATUSES


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching endpoints do not overlap."""
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class WeekdayHours:
    """
    Opening hours for one weekday.

    Invariant: if the day is open, it opens before it closes.
    """
    open: time
    close: time
    is_open: bool = True

    def __post_init__(self):
        if self.is_open and self.open >= self.close:
            raise InvalidInputError(
                "close",
                f"closing time {format_time(self.close)} must be after opening time {format_time(self.open)}",
            )

    @property
    def open_minutes(self) -> int:
        return time_to_minutes(self.open)

    @property
    def close_minutes(self) -> int:
        return time_to_minutes(self.close)


STANDARD_HOURS = WeekdayHours(open=time(9, 0), close=time(17, 0), is_open=True)
CLOSED_DAY = WeekdayHours(open=time(9, 0), close=time(17, 0), is_open=False)


@dataclass(frozen=True)
class BusinessCalendar:
    """Weekly opening hours keyed by weekday. Immutable for the duration of a query."""
    hours: Mapping[Weekday, WeekdayHours]

    def __post_init__(self):
        missing = [day.label for day in Weekday if day not in self.hours]
        if missing:
            raise InvalidInputError("business_hours", f"missing weekdays: {', '.join(missing)}")
        object.__setattr__(self, "hours", MappingProxyType(dict(self.hours)))

    @classmethod
    def default(cls) -> "BusinessCalendar":
        """Monday to Saturday 09:00-17:00, closed on Sunday."""
        hours = {day: STANDARD_HOURS for day in Weekday}
        hours[Weekday.SUNDAY] = CLOSED_DAY
        return cls(hours=hours)

    def for_weekday(self, weekday: Weekday) -> WeekdayHours:
        return self.hours[weekday]

    def for_date(self, day: Date) -> WeekdayHours:
        return self.hours[Weekday.of(day)]

    def is_open_on(self, day: Date) -> bool:
        return self.for_date(day).is_open


@dataclass(frozen=True)
class BookingPolicy:
    """
    Booking window and padding rules.

    ``slot_interval_minutes`` must divide a day evenly so the candidate grid
    stays aligned from one day to the next.
    """
    min_advance_minutes: int = DEFAULT_MIN_ADVANCE_MINUTES
    max_advance_days: int = DEFAULT_MAX_ADVANCE_DAYS
    buffer_minutes: int = 0
    slot_interval_minutes: int = DEFAULT_SLOT_INTERVAL_MINUTES

    def __post_init__(self):
        for name in ("min_advance_minutes", "max_advance_days", "buffer_minutes"):
            if getattr(self, name) < 0:
                raise InvalidInputError(name, f"must not be negative, got {getattr(self, name)}")
        interval = self.slot_interval_minutes
        if interval <= 0 or MINUTES_PER_DAY % interval != 0:
            raise InvalidInputError(
                "slot_interval_minutes",
                f"must be a positive divisor of {MINUTES_PER_DAY}, got {interval}",
            )


@dataclass(frozen=True)
class BlockedDate:
    """A one-off closure, optionally spanning several days (inclusive)."""
    date: Date
    end_date: Optional[Date] = None
    reason: str = ""

    def __post_init__(self):
        if self.end_date is not None and self.end_date < self.date:
            raise InvalidInputError(
                "end_date",
                f"blocked range ends {format_date(self.end_date)} before it starts {format_date(self.date)}",
            )

    def covers(self, day: Date) -> bool:
        return self.date <= day <= (self.end_date or self.date)


@dataclass(frozen=True)
class BlackoutSet:
    """Dates on which no bookings are permitted."""
    explicit_dates: FrozenSet[Date] = frozenset()
    recurring_weekdays: FrozenSet[Weekday] = frozenset()
    blocked_ranges: Tuple[BlockedDate, ...] = ()


@dataclass(frozen=True)
class Service:
    """The bookable service; only its length matters to scheduling."""
    duration_minutes: int
    name: str = ""

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise InvalidInputError(
                "duration_minutes", f"must be positive, got {self.duration_minutes}"
            )


@dataclass(frozen=True)
class ExistingAppointment:
    """Read-only projection of a stored appointment."""
    scheduled_at: DateTime
    duration_minutes: int
    status: AppointmentStatus = AppointmentStatus.CONFIRMED

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise InvalidInputError(
                "duration_minutes", f"must be positive, got {self.duration_minutes}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], timezone: str) -> "ExistingAppointment":
        """
        Build from the storage snapshot shape.

        Accepts both ``scheduledAt``/``durationMinutes`` and the snake_case
        column names used by the database.
        """
        scheduled = data.get("scheduledAt", data.get("scheduled_at"))
        duration = data.get("durationMinutes", data.get("duration_minutes"))
        if scheduled is None:
            raise InvalidInputError("scheduled_at", "missing")
        if not isinstance(duration, int) or isinstance(duration, bool):
            raise InvalidInputError("duration_minutes", f"expected an integer, got {duration!r}")
        return cls(
            scheduled_at=parse_instant(scheduled, timezone),
            duration_minutes=duration,
            status=AppointmentStatus.parse(data.get("status", AppointmentStatus.CONFIRMED.value)),
        )

    @property
    def blocking(self) -> bool:
        return is_blocking(self.status)

    def time_range(self) -> TimeRange:
        return TimeRange(
            start=self.scheduled_at,
            end=self.scheduled_at.add(minutes=self.duration_minutes),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scheduledAt": self.scheduled_at.to_iso8601_string(),
            "durationMinutes": self.duration_minutes,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class TimeSlot:
    """A candidate start time and whether it can still be booked."""
    time: time
    available: bool

    @property
    def label(self) -> str:
        return format_time(self.time)

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.label, "available": self.available}


@dataclass(frozen=True)
class DayAvailability:
    """Slots for one date together with the reason the day is closed, if it is."""
    date: Date
    is_closed: bool
    reason: Optional[str] = None
    slots: List[TimeSlot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": format_date(self.date),
            "is_closed": self.is_closed,
            "reason": self.reason,
            "time_slots": [slot.to_dict() for slot in self.slots],
        }


@dataclass(frozen=True)
class SchedulingSettings:
    """Everything the engine needs besides the appointment snapshot."""
    calendar: BusinessCalendar = field(default_factory=BusinessCalendar.default)
    policy: BookingPolicy = field(default_factory=BookingPolicy)
    blackout: BlackoutSet = field(default_factory=BlackoutSet)
    timezone: str = DEFAULT_TIMEZONE

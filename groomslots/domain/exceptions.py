"""
Domain-specific exception hierarchy for the scheduling engine.
"""

from __future__ import annotations

from typing import Sequence


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class InvalidInputError(SchedulingError, ValueError):
    """Raised for malformed input: bad date/time strings, non-positive durations, unusable intervals."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class ConfigurationError(SchedulingError, ValueError):
    """Raised when a settings document cannot be loaded or fails validation."""


class BookingRejectedError(SchedulingError):
    """Raised when a proposed appointment violates business rules (closed, outside the window, no room)."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class SlotConflictError(SchedulingError):
    """
    Raised when the requested slot was taken between reading availability and writing.

    This is an expected runtime outcome. Callers should re-query availability
    and offer one of ``alternatives`` instead of reporting a generic failure.
    """

    def __init__(self, date: str, time: str, alternatives: Sequence[str] = ()):
        self.date = date
        self.time = time
        self.alternatives = list(alternatives)
        super().__init__(f"Slot {date} {time} is no longer available")

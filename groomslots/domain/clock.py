"""
Time sources. Everything that needs "now" takes one of these explicitly.
"""

from typing import Protocol

import pendulum
from pendulum import DateTime


class Clock(Protocol):
    """Anything that can tell the current instant."""

    def now(self) -> DateTime:
        """Return the current, timezone-aware instant."""


class SystemClock:
    """Wall clock in the business timezone."""

    def __init__(self, timezone: str):
        self.timezone = timezone

    def now(self) -> DateTime:
        return pendulum.now(self.timezone)


class FixedClock:
    """Clock pinned to a single instant, for tests and replays."""

    def __init__(self, instant: DateTime):
        self._instant = instant

    def now(self) -> DateTime:
        return self._instant

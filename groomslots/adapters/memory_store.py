"""
In-memory appointment store honouring the serialized check-and-insert contract.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List

from pendulum import Date

from ..domain.models import ExistingAppointment


class InMemoryAppointmentStore:
    """
    Keeps appointments in a list and serializes writers per local date.

    Suitable for tests, demos and single-process deployments. One lock is kept
    per date ever serialized and the map is never pruned.
    """

    def __init__(self, timezone: str, appointments: Iterable[ExistingAppointment] = ()):
        self.timezone = timezone
        self._appointments: List[ExistingAppointment] = list(appointments)
        self._locks: Dict[Date, asyncio.Lock] = {}

    @asynccontextmanager
    async def serialized(self, day: Date) -> AsyncIterator[None]:
        if day not in self._locks:
            self._locks[day] = asyncio.Lock()
        async with self._locks[day]:
            yield

    async def list_for_date(self, day: Date) -> List[ExistingAppointment]:
        return [
            appointment
            for appointment in self._appointments
            if appointment.scheduled_at.in_timezone(self.timezone).date() == day
        ]

    async def insert(self, appointment: ExistingAppointment) -> None:
        self._appointments.append(appointment)

    def all(self) -> List[ExistingAppointment]:
        return list(self._appointments)

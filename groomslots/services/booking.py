"""
Write-time booking coordination.

The availability list a customer picked from can be stale by the time they
submit. ``BookingCoordinator.book`` re-reads the appointment snapshot inside
the store's serialized section and re-runs the conflict check immediately
before inserting, so two concurrent requests for the same slot cannot both
succeed. The losing request gets a ``SlotConflictError`` carrying the slots
that are still free.
"""

from __future__ import annotations

import logging
from datetime import time
from typing import AsyncContextManager, List, Optional, Protocol

from pendulum import Date

from ..domain.clock import Clock
from ..domain.models import AppointmentStatus, ExistingAppointment, Service, TimeSlot
from ..domain.timeutils import combine, format_date, format_time
from .availability import AvailabilityService
from .settings_provider import SettingsProviderProtocol

logger = logging.getLogger(__name__)


class AppointmentStoreProtocol(Protocol):
    """
    Persistence contract required for safe booking.

    ``serialized(day)`` must make the read in ``list_for_date`` and the write
    in ``insert`` atomic relative to other writers for the same date.
    """

    def serialized(self, day: Date) -> AsyncContextManager[None]:
        """Enter the critical section guarding appointments on ``day``."""

    async def list_for_date(self, day: Date) -> List[ExistingAppointment]:
        """Return every appointment on the local calendar date ``day``."""

    async def insert(self, appointment: ExistingAppointment) -> None:
        """Persist a new appointment."""


class BookingCoordinator:
    """Couples a settings provider and an appointment store to the availability service."""

    def __init__(
        self,
        store: AppointmentStoreProtocol,
        settings_provider: SettingsProviderProtocol,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._settings_provider = settings_provider
        self._clock = clock

    async def available_slots(self, day: Date, service: Service) -> List[TimeSlot]:
        """Read-time availability. Advisory only."""
        availability = await self._availability()
        appointments = await self._store.list_for_date(day)
        return availability.get_available_slots(day, service, appointments)

    async def book(
        self,
        day: Date,
        start: time,
        service: Service,
        status: AppointmentStatus = AppointmentStatus.PENDING,
    ) -> ExistingAppointment:
        """
        Create an appointment if the slot is still free.

        Raises:
            SlotConflictError: Another appointment took the slot first;
                re-query availability and let the user pick again
            BookingRejectedError: The slot breaks a business rule
        """
        availability = await self._availability()
        timezone = availability.settings.timezone

        async with self._store.serialized(day):
            snapshot = await self._store.list_for_date(day)
            availability.ensure_slot_free(day, start, service, snapshot)

            appointment = ExistingAppointment(
                scheduled_at=combine(day, start, timezone),
                duration_minutes=service.duration_minutes,
                status=status,
            )
            await self._store.insert(appointment)

        logger.info(
            "Booked %s %s for %d minutes",
            format_date(day),
            format_time(start),
            service.duration_minutes,
        )
        return appointment

    async def _availability(self) -> AvailabilityService:
        settings = await self._settings_provider.get_settings()
        return AvailabilityService(settings, clock=self._clock)

"""
Tests for the write-time BookingCoordinator.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import time
from typing import List

import pendulum
import pytest

from groomslots.adapters.memory_store import InMemoryAppointmentStore
from groomslots.domain.clock import FixedClock
from groomslots.domain.exceptions import BookingRejectedError, SlotConflictError
from groomslots.domain.models import (
    AppointmentStatus,
    BookingPolicy,
    ExistingAppointment,
    SchedulingSettings,
    Service,
)
from groomslots.services.booking import BookingCoordinator

TZ = "America/New_York"
MONDAY = pendulum.date(2024, 1, 8)
CLOCK = FixedClock(pendulum.datetime(2024, 1, 8, 8, 0, tz=TZ))
SERVICE = Service(duration_minutes=60)


class StubSettingsProvider:
    """Minimal stub matching SettingsProviderProtocol."""

    def __init__(self, settings: SchedulingSettings):
        self._settings = settings
        self.calls = 0

    async def get_settings(self) -> SchedulingSettings:
        self.calls += 1
        return self._settings


def _build_coordinator(appointments: List[ExistingAppointment] = (), store_class=InMemoryAppointmentStore):
    settings = SchedulingSettings(
        policy=BookingPolicy(min_advance_minutes=30, max_advance_days=60),
        timezone=TZ,
    )
    store = store_class(timezone=TZ, appointments=appointments)
    coordinator = BookingCoordinator(store=store, settings_provider=StubSettingsProvider(settings), clock=CLOCK)
    return coordinator, store


def test_book_inserts_appointment():
    coordinator, store = _build_coordinator()

    appointment = asyncio.run(coordinator.book(MONDAY, time(10, 0), SERVICE))

    assert appointment.scheduled_at == pendulum.datetime(2024, 1, 8, 10, 0, tz=TZ)
    assert appointment.status is AppointmentStatus.PENDING
    assert store.all() == [appointment]


def test_book_taken_slot_raises_conflict_with_alternatives():
    taken = ExistingAppointment(scheduled_at=pendulum.datetime(2024, 1, 8, 10, 0, tz=TZ), duration_minutes=60)
    coordinator, store = _build_coordinator([taken])

    with pytest.raises(SlotConflictError) as exc_info:
        asyncio.run(coordinator.book(MONDAY, time(10, 30), SERVICE))

    assert "10:30" not in exc_info.value.alternatives
    assert "11:00" in exc_info.value.alternatives
    assert store.all() == [taken]


def test_book_rejected_by_business_rules():
    coordinator, store = _build_coordinator()
    sunday = pendulum.date(2024, 1, 14)

    with pytest.raises(BookingRejectedError):
        asyncio.run(coordinator.book(sunday, time(10, 0), SERVICE))

    assert store.all() == []


class YieldingStore(InMemoryAppointmentStore):
    """Hands control back to the event loop after reading, like a real database round trip."""

    async def list_for_date(self, day):
        snapshot = await super().list_for_date(day)
        await asyncio.sleep(0)
        return snapshot


class UnserializedStore(YieldingStore):
    """Same store with the critical section removed."""

    @asynccontextmanager
    async def serialized(self, day):
        yield


def _race_for_ten_oclock(coordinator):
    async def race():
        return await asyncio.gather(
            coordinator.book(MONDAY, time(10, 0), SERVICE),
            coordinator.book(MONDAY, time(10, 0), SERVICE),
            return_exceptions=True,
        )

    return asyncio.run(race())


def test_concurrent_requests_for_same_slot_only_one_wins():
    """Two simultaneous bookings for 10:00: one succeeds, the other gets a conflict."""
    coordinator, store = _build_coordinator(store_class=YieldingStore)

    results = _race_for_ten_oclock(coordinator)

    successes = [r for r in results if isinstance(r, ExistingAppointment)]
    conflicts = [r for r in results if isinstance(r, SlotConflictError)]
    assert len(successes) == 1
    assert len(conflicts) == 1
    assert len(store.all()) == 1


def test_without_serialized_section_both_requests_double_book():
    """The interleaving above really happens; only the store lock prevents the double booking."""
    coordinator, store = _build_coordinator(store_class=UnserializedStore)

    results = _race_for_ten_oclock(coordinator)

    assert all(isinstance(r, ExistingAppointment) for r in results)
    assert len(store.all()) == 2


def test_available_slots_reflect_store_contents():
    taken = ExistingAppointment(scheduled_at=pendulum.datetime(2024, 1, 8, 9, 0, tz=TZ), duration_minutes=60)
    coordinator, _ = _build_coordinator([taken])

    slots = asyncio.run(coordinator.available_slots(MONDAY, SERVICE))

    availability = {slot.label: slot.available for slot in slots}
    assert availability["09:00"] is False
    assert availability["09:30"] is False
    assert availability["10:00"] is True


def test_store_reuses_one_lock_per_date():
    store = InMemoryAppointmentStore(timezone=TZ)

    async def enter_twice():
        async with store.serialized(MONDAY):
            first = store._locks[MONDAY]
        async with store.serialized(MONDAY):
            second = store._locks[MONDAY]
        return first, second

    first, second = asyncio.run(enter_twice())

    assert first is second
    assert len(store._locks) == 1

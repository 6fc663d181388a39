"""
Tests for the AvailabilityService composition root.
"""

from datetime import time

import pendulum
import pytest

from groomslots.domain.clock import FixedClock
from groomslots.domain.exceptions import BookingRejectedError, InvalidInputError, SlotConflictError
from groomslots.domain.models import (
    BlackoutSet,
    BlockedDate,
    BookingPolicy,
    BusinessCalendar,
    ExistingAppointment,
    SchedulingSettings,
    Service,
    Weekday,
)
from groomslots.services.availability import AvailabilityService

TZ = "America/New_York"
MONDAY = pendulum.date(2024, 1, 8)
CLOCK = FixedClock(pendulum.datetime(2024, 1, 8, 8, 0, tz=TZ))
SERVICE = Service(duration_minutes=60)


def _service(blackout=None, policy=None) -> AvailabilityService:
    settings = SchedulingSettings(
        calendar=BusinessCalendar.default(),
        policy=policy or BookingPolicy(min_advance_minutes=30, max_advance_days=60),
        blackout=blackout or BlackoutSet(),
        timezone=TZ,
    )
    return AvailabilityService(settings, clock=CLOCK)


def _booked(hour, minute=0, duration=60):
    return ExistingAppointment(
        scheduled_at=pendulum.datetime(2024, 1, 8, hour, minute, tz=TZ),
        duration_minutes=duration,
    )


class TestGetAvailableSlots:

    def test_reference_scenario(self):
        slots = _service().get_available_slots(MONDAY, SERVICE, [])

        assert slots[0].label == "09:00"
        assert slots[-1].label == "16:00"

    def test_blacked_out_date_is_empty(self):
        blackout = BlackoutSet(explicit_dates=frozenset({MONDAY}))

        assert _service(blackout=blackout).get_available_slots(MONDAY, SERVICE, []) == []


class TestDescribeDay:

    def test_closed_weekday_reason(self):
        result = _service().describe_day(pendulum.date(2024, 1, 14), SERVICE, [])

        assert result.is_closed
        assert result.reason == "Closed on Sundays"
        assert result.slots == []

    def test_blocked_range_reason(self):
        blackout = BlackoutSet(
            blocked_ranges=(BlockedDate(date=MONDAY, end_date=MONDAY.add(days=2), reason="Deep clean"),)
        )

        result = _service(blackout=blackout).describe_day(MONDAY.add(days=1), SERVICE, [])

        assert result.is_closed
        assert result.reason == "Deep clean"

    def test_open_day_payload(self):
        result = _service().describe_day(MONDAY, SERVICE, [_booked(10)])
        payload = result.to_dict()

        assert payload["date"] == "2024-01-08"
        assert payload["is_closed"] is False
        assert {"time": "10:00", "available": False} in payload["time_slots"]
        assert {"time": "11:00", "available": True} in payload["time_slots"]


class TestCheckSlot:

    def test_free_slot(self):
        assert _service().is_slot_free(MONDAY, time(11, 0), SERVICE, [_booked(10)])

    def test_conflicting_slot_is_flagged_as_conflict(self):
        result = _service().check_slot(MONDAY, time(9, 30), SERVICE, [_booked(10)])

        assert not result.allowed
        assert result.conflict

    def test_off_grid_walk_in_is_accepted(self):
        assert _service().is_slot_free(MONDAY, time(11, 15), SERVICE, [_booked(10)])

    def test_outside_hours_is_rejected(self):
        result = _service().check_slot(MONDAY, time(8, 45), SERVICE, [])

        assert not result.allowed
        assert not result.conflict
        assert "business hours" in result.reason

    def test_must_finish_before_close(self):
        result = _service().check_slot(MONDAY, time(16, 30), SERVICE, [])

        assert not result.allowed
        assert "17:00" in result.reason

    def test_too_soon_is_rejected(self):
        clock = FixedClock(pendulum.datetime(2024, 1, 8, 9, 45, tz=TZ))
        settings = SchedulingSettings(policy=BookingPolicy(min_advance_minutes=30, max_advance_days=60), timezone=TZ)

        result = AvailabilityService(settings, clock=clock).check_slot(MONDAY, time(10, 15), SERVICE, [])

        assert not result.allowed


class TestEnsureSlotFree:

    def test_conflict_raises_with_alternatives(self):
        existing = [_booked(9, 0, duration=420)]  # 09:00-16:00

        with pytest.raises(SlotConflictError) as exc_info:
            _service().ensure_slot_free(MONDAY, time(10, 0), SERVICE, existing)

        assert exc_info.value.date == "2024-01-08"
        assert exc_info.value.time == "10:00"
        assert exc_info.value.alternatives == ["16:00"]

    def test_rule_violation_raises_rejection(self):
        with pytest.raises(BookingRejectedError, match="Closed on Sundays"):
            _service().ensure_slot_free(pendulum.date(2024, 1, 14), time(10, 0), SERVICE, [])

    def test_free_slot_passes(self):
        _service().ensure_slot_free(MONDAY, time(10, 0), SERVICE, [])


class TestDisabledDates:

    def test_past_closed_blocked_and_beyond_horizon(self):
        blackout = BlackoutSet(
            explicit_dates=frozenset({pendulum.date(2024, 1, 10)}),
            recurring_weekdays=frozenset({Weekday.THURSDAY}),
        )
        service = _service(blackout=blackout, policy=BookingPolicy(max_advance_days=7))

        disabled = service.get_disabled_dates(pendulum.date(2024, 1, 6), pendulum.date(2024, 1, 17))

        assert [d.format("YYYY-MM-DD") for d in disabled] == [
            "2024-01-06",  # past
            "2024-01-07",  # past
            "2024-01-10",  # explicit blackout
            "2024-01-11",  # recurring Thursday
            "2024-01-14",  # Sunday closed
            "2024-01-16",  # beyond the 7 day horizon
            "2024-01-17",
        ]

    def test_today_is_not_disabled(self):
        assert _service().is_date_available(MONDAY)

    def test_reversed_range_is_rejected(self):
        with pytest.raises(InvalidInputError, match="end_date"):
            _service().get_disabled_dates(pendulum.date(2024, 1, 10), pendulum.date(2024, 1, 9))


class TestNextAvailableDate:

    def test_skips_closed_and_blocked_days(self):
        blackout = BlackoutSet(explicit_dates=frozenset({pendulum.date(2024, 1, 13)}))

        found = _service(blackout=blackout).next_available_date(pendulum.date(2024, 1, 13))

        # Saturday blocked, Sunday closed
        assert found == pendulum.date(2024, 1, 15)

    def test_defaults_to_today(self):
        assert _service().next_available_date() == MONDAY

    def test_nothing_within_search_window(self):
        blackout = BlackoutSet(recurring_weekdays=frozenset(Weekday))

        assert _service(blackout=blackout).next_available_date(MONDAY, search_days=10) is None

    def test_search_days_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            _service().next_available_date(MONDAY, search_days=0)

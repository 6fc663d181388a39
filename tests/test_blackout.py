"""
Tests for blackout resolution.
"""

import pendulum

from groomslots.domain.blackout import blocked_reason, is_date_blocked
from groomslots.domain.models import BlackoutSet, BlockedDate, Weekday


class TestBlackoutResolver:
    """A date is blocked by an explicit date, a blocked range, or its weekday."""

    def test_empty_blackout_blocks_nothing(self):
        assert not is_date_blocked(pendulum.date(2024, 1, 8), BlackoutSet())

    def test_explicit_date(self):
        blackout = BlackoutSet(explicit_dates=frozenset({pendulum.date(2024, 12, 25)}))

        assert is_date_blocked(pendulum.date(2024, 12, 25), blackout)
        assert not is_date_blocked(pendulum.date(2024, 12, 26), blackout)

    def test_recurring_weekday(self):
        blackout = BlackoutSet(recurring_weekdays=frozenset({Weekday.TUESDAY}))

        assert is_date_blocked(pendulum.date(2024, 1, 9), blackout)   # Tuesday
        assert is_date_blocked(pendulum.date(2024, 1, 16), blackout)  # next Tuesday
        assert not is_date_blocked(pendulum.date(2024, 1, 10), blackout)
        assert blocked_reason(pendulum.date(2024, 1, 9), blackout) == "Tuesdays are blocked for appointments"

    def test_blocked_range_reports_reason(self):
        blackout = BlackoutSet(
            blocked_ranges=(
                BlockedDate(
                    date=pendulum.date(2024, 7, 1),
                    end_date=pendulum.date(2024, 7, 5),
                    reason="Staff vacation",
                ),
            )
        )

        assert blocked_reason(pendulum.date(2024, 7, 3), blackout) == "Staff vacation"
        assert blocked_reason(pendulum.date(2024, 7, 6), blackout) is None

    def test_single_blocked_date_without_reason(self):
        blackout = BlackoutSet(blocked_ranges=(BlockedDate(date=pendulum.date(2024, 3, 1)),))

        assert blocked_reason(pendulum.date(2024, 3, 1), blackout) == "Date is blocked"
        assert not is_date_blocked(pendulum.date(2024, 3, 2), blackout)

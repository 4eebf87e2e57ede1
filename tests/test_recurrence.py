"""Tests for next-occurrence arithmetic."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from drift.core.recurrence import (
    add_months,
    format_recurrence_days,
    next_due_date,
    parse_recurrence_days,
    resolve_wall_time,
    sunday_index,
)
from drift.core.tasks import Recurrence

MON, WED, FRI = 1, 3, 5


@pytest.fixture
def wednesday():
    return datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def friday():
    return datetime(2025, 1, 17, 9, 30, tzinfo=timezone.utc)


class TestSundayIndex:
    def test_sunday_is_zero(self):
        assert sunday_index(datetime(2025, 1, 19)) == 0

    def test_saturday_is_six(self):
        assert sunday_index(datetime(2025, 1, 18)) == 6

    def test_wednesday(self, wednesday):
        assert sunday_index(wednesday) == WED


class TestRecurrenceDaysFormat:
    def test_parse(self):
        assert parse_recurrence_days("1,3,5") == frozenset({1, 3, 5})

    def test_parse_empty_is_none(self):
        assert parse_recurrence_days("") is None
        assert parse_recurrence_days(None) is None

    def test_format_is_sorted(self):
        assert format_recurrence_days(frozenset({5, 1, 3})) == "1,3,5"

    def test_format_none(self):
        assert format_recurrence_days(None) is None


class TestNextDueDate:
    @pytest.mark.parametrize(
        "recurrence,days",
        [
            (Recurrence.DAILY, None),
            (Recurrence.WEEKLY, None),
            (Recurrence.WEEKLY, frozenset({MON, WED, FRI})),
            (Recurrence.WEEKLY, frozenset({WED})),
            (Recurrence.MONTHLY, None),
            (Recurrence.CUSTOM, None),
        ],
    )
    def test_always_advances(self, wednesday, recurrence, days):
        assert next_due_date(wednesday, recurrence, 1, days) > wednesday

    def test_none_returns_current(self, wednesday):
        assert next_due_date(wednesday, Recurrence.NONE) == wednesday

    def test_daily_interval(self, wednesday):
        assert next_due_date(wednesday, Recurrence.DAILY, 3) == datetime(2025, 1, 18, 9, 30, tzinfo=timezone.utc)

    def test_custom_behaves_like_daily(self, wednesday):
        assert next_due_date(wednesday, Recurrence.CUSTOM, 2) == next_due_date(wednesday, Recurrence.DAILY, 2)

    def test_weekly_without_days(self, wednesday):
        assert next_due_date(wednesday, Recurrence.WEEKLY, 2) == datetime(2025, 1, 29, 9, 30, tzinfo=timezone.utc)

    def test_weekly_next_selected_day_same_week(self, wednesday):
        result = next_due_date(wednesday, Recurrence.WEEKLY, 1, frozenset({MON, WED, FRI}))
        assert result == datetime(2025, 1, 17, 9, 30, tzinfo=timezone.utc)

    def test_weekly_same_week_ignores_interval(self, wednesday):
        result = next_due_date(wednesday, Recurrence.WEEKLY, 3, frozenset({MON, WED, FRI}))
        assert result == datetime(2025, 1, 17, 9, 30, tzinfo=timezone.utc)

    def test_weekly_wraps_to_next_week(self, friday):
        result = next_due_date(friday, Recurrence.WEEKLY, 1, frozenset({MON, WED, FRI}))
        assert result == datetime(2025, 1, 20, 9, 30, tzinfo=timezone.utc)

    def test_weekly_wrap_honors_interval(self, friday):
        result = next_due_date(friday, Recurrence.WEEKLY, 2, frozenset({MON, WED, FRI}))
        assert result == datetime(2025, 1, 27, 9, 30, tzinfo=timezone.utc)

    def test_weekly_single_day_wraps_full_week(self, wednesday):
        result = next_due_date(wednesday, Recurrence.WEEKLY, 1, frozenset({WED}))
        assert result == datetime(2025, 1, 22, 9, 30, tzinfo=timezone.utc)

    def test_monthly_clamps_to_month_end(self):
        jan31 = datetime(2025, 1, 31, 8, 0, tzinfo=timezone.utc)
        assert next_due_date(jan31, Recurrence.MONTHLY) == datetime(2025, 2, 28, 8, 0, tzinfo=timezone.utc)

    def test_monthly_leap_year(self):
        jan31 = datetime(2024, 1, 31, tzinfo=timezone.utc)
        assert next_due_date(jan31, Recurrence.MONTHLY) == datetime(2024, 2, 29, tzinfo=timezone.utc)

    def test_monthly_crosses_year(self):
        nov = datetime(2025, 11, 15, tzinfo=timezone.utc)
        assert next_due_date(nov, Recurrence.MONTHLY, 3) == datetime(2026, 2, 15, tzinfo=timezone.utc)

    def test_interval_below_one_treated_as_one(self, wednesday):
        assert next_due_date(wednesday, Recurrence.DAILY, 0) == datetime(2025, 1, 16, 9, 30, tzinfo=timezone.utc)


class TestAddMonths:
    def test_keeps_day_when_possible(self):
        assert add_months(datetime(2025, 3, 10), 1) == datetime(2025, 4, 10)

    def test_clamps_thirty_first(self):
        assert add_months(datetime(2025, 3, 31), 1) == datetime(2025, 4, 30)


class TestResolveWallTime:
    def test_spring_forward_gap_moves_to_real_time(self):
        toronto = ZoneInfo("America/Toronto")
        resolved = resolve_wall_time(datetime(2026, 3, 8, 2, 30, tzinfo=toronto))
        assert (resolved.hour, resolved.minute) == (3, 30)
        assert resolved.utcoffset().total_seconds() == -4 * 3600

    def test_existing_time_is_unchanged(self, wednesday):
        assert resolve_wall_time(wednesday) == wednesday

    def test_naive_is_left_alone(self):
        naive = datetime(2026, 3, 8, 2, 30)
        assert resolve_wall_time(naive) is naive

"""
Tests for DateService.

Tests cover:
1. Daily and weekly period windows
2. Due dates
3. Completability within a period
"""
import pytest
from datetime import date, datetime, timedelta
from unittest.mock import patch

from levelup.exceptions import ValidationException
from levelup.models import UserGoal
from levelup.services.date_service import DateService


class TestPeriodBounds:
    """Tests for period_bounds"""

    def test_daily_is_calendar_day(self):
        start, end = DateService.period_bounds("daily", datetime(2026, 1, 7, 15, 30))

        assert start == datetime(2026, 1, 7)
        assert end == datetime(2026, 1, 8)

    def test_weekly_starts_monday(self):
        # Wednesday 7 January 2026
        start, end = DateService.period_bounds("weekly", datetime(2026, 1, 7, 15, 30))

        assert start == datetime(2026, 1, 5)
        assert end == datetime(2026, 1, 12)

    def test_weekly_on_sunday_night(self):
        start, _ = DateService.period_bounds("weekly", datetime(2026, 1, 11, 23, 59))

        assert start == datetime(2026, 1, 5)

    def test_unknown_cadence_rejected(self):
        with pytest.raises(ValidationException):
            DateService.period_bounds("monthly", datetime(2026, 1, 7))

    def test_period_start_date(self):
        assert DateService.period_start_date("weekly", datetime(2026, 1, 9, 8)) == date(2026, 1, 5)

    def test_due_date_is_period_end(self):
        assert DateService.due_date_for("daily", datetime(2026, 1, 9, 8)) == datetime(2026, 1, 10)


class TestCanComplete:
    """Tests for can_complete"""

    def test_never_completed(self, monday):
        goal = UserGoal(active=True, cadence="daily", last_completed_at=None)

        assert DateService.can_complete(goal, monday) is True

    def test_completed_today(self, monday):
        goal = UserGoal(active=True, cadence="daily", last_completed_at=monday - timedelta(hours=2))

        assert DateService.can_complete(goal, monday) is False

    def test_completed_yesterday(self, monday):
        goal = UserGoal(active=True, cadence="daily", last_completed_at=monday - timedelta(days=1))

        assert DateService.can_complete(goal, monday) is True

    def test_weekly_blocks_rest_of_week(self, monday):
        goal = UserGoal(active=True, cadence="weekly", last_completed_at=monday)

        assert DateService.can_complete(goal, monday + timedelta(days=6)) is False
        assert DateService.can_complete(goal, monday + timedelta(days=7)) is True

    def test_archived_goal(self, monday):
        goal = UserGoal(active=False, cadence="daily", last_completed_at=None)

        assert DateService.can_complete(goal, monday) is False

    def test_now_uses_current_time(self):
        with patch('levelup.services.date_service.datetime') as mock_dt:
            mock_dt.now.return_value = datetime(2026, 1, 30, 10, 0, 0)
            result = DateService.now()

        assert result == datetime(2026, 1, 30, 10, 0, 0)

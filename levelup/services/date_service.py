"""
Date calculation service.
Handles cadence periods (daily / weekly windows) for user goals.
"""
from datetime import datetime, timedelta, date
from typing import Optional

from levelup.constants import CADENCE_DAILY, CADENCE_WEEKLY, CADENCES
from levelup.exceptions import ValidationException


class DateService:
    """Service for cadence window calculations"""

    @staticmethod
    def now() -> datetime:
        return datetime.now()

    @staticmethod
    def normalize_to_midnight(dt: datetime) -> datetime:
        """
        Normalize datetime to midnight (remove time component).

        Args:
            dt: Datetime to normalize

        Returns:
            Datetime set to midnight
        """
        return datetime.combine(dt.date(), datetime.min.time())

    @staticmethod
    def period_bounds(cadence: str, now: datetime) -> tuple[datetime, datetime]:
        """
        Get the [start, end) window of the cadence period containing `now`.

        Daily periods are calendar days. Weekly periods are ISO weeks
        starting on Monday at midnight.

        Args:
            cadence: "daily" or "weekly"
            now: Reference moment

        Returns:
            Tuple of (period_start, period_end) datetimes
        """
        if cadence not in CADENCES:
            raise ValidationException("cadence", f"must be one of {', '.join(CADENCES)}")

        day_start = DateService.normalize_to_midnight(now)
        if cadence == CADENCE_DAILY:
            return day_start, day_start + timedelta(days=1)

        week_start = day_start - timedelta(days=day_start.weekday())
        return week_start, week_start + timedelta(days=7)

    @staticmethod
    def period_start_date(cadence: str, now: datetime) -> date:
        """First calendar day of the period containing `now`"""
        start, _ = DateService.period_bounds(cadence, now)
        return start.date()

    @staticmethod
    def due_date_for(cadence: str, now: datetime) -> datetime:
        """End of the period containing `now`"""
        _, end = DateService.period_bounds(cadence, now)
        return end

    @staticmethod
    def completed_in_current_period(
        last_completed_at: Optional[datetime],
        cadence: str,
        now: datetime
    ) -> bool:
        """True when the last completion falls inside the current period"""
        if last_completed_at is None:
            return False
        start, end = DateService.period_bounds(cadence, now)
        return start <= last_completed_at.replace(tzinfo=None) < end

    @staticmethod
    def can_complete(user_goal, now: datetime) -> bool:
        """
        Whether a user goal may be completed at `now`.

        Archived goals never can. Otherwise it depends only on whether a
        completion already happened in the current cadence period, so the
        goal reopens by itself once the period has passed.
        """
        if not user_goal.active:
            return False
        return not DateService.completed_in_current_period(
            user_goal.last_completed_at, user_goal.cadence, now
        )

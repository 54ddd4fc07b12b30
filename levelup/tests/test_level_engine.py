"""
Tests for the XP level curve.

Tests cover:
1. Per-level increments and cumulative thresholds
2. Total XP -> level/progress resolution
3. Applying XP gains to a user record
"""
import pytest

from levelup.models import User
from levelup.exceptions import ValidationException, InvariantViolationException
from levelup.services.level_engine import (
    xp_to_next,
    xp_threshold_for_level,
    level_and_progress_for_total_xp,
    apply_xp_gain,
)


class TestXpToNext:
    """Tests for xp_to_next"""

    @pytest.mark.parametrize("level,expected", [
        (1, 51),
        (2, 103),
        (3, 157),
        (4, 212),
        (7, 383),
        (10, 563),
    ])
    def test_known_values(self, level, expected):
        assert xp_to_next(level) == expected

    def test_strictly_increasing(self):
        values = [xp_to_next(level) for level in range(1, 200)]
        assert all(b > a for a, b in zip(values, values[1:]))

    def test_rejects_level_zero(self):
        with pytest.raises(ValidationException):
            xp_to_next(0)

    def test_rejects_non_integer(self):
        with pytest.raises(ValidationException):
            xp_to_next(2.5)


class TestThresholds:
    """Tests for xp_threshold_for_level"""

    def test_level_one_starts_at_zero(self):
        assert xp_threshold_for_level(1) == 0

    def test_cumulative_sums(self):
        assert xp_threshold_for_level(2) == 51
        assert xp_threshold_for_level(3) == 154
        assert xp_threshold_for_level(4) == 311
        assert xp_threshold_for_level(5) == 523

    def test_threshold_resolves_to_its_level(self):
        for level in range(1, 30):
            progress = level_and_progress_for_total_xp(xp_threshold_for_level(level))
            assert progress.level == level
            assert progress.current == 0


class TestLevelAndProgress:
    """Tests for level_and_progress_for_total_xp"""

    def test_zero_xp(self):
        progress = level_and_progress_for_total_xp(0)

        assert progress.level == 1
        assert progress.current == 0
        assert progress.span == 51
        assert progress.percent == 0.0

    def test_exact_boundary_shows_empty_bar(self):
        progress = level_and_progress_for_total_xp(51)

        assert progress.level == 2
        assert progress.current == 0
        assert progress.percent == 0.0

    def test_one_below_boundary(self):
        progress = level_and_progress_for_total_xp(50)

        assert progress.level == 1
        assert progress.current == 50
        assert progress.xp_remaining == 1

    def test_mid_level_percent(self):
        progress = level_and_progress_for_total_xp(343)

        assert progress.level == 4
        assert progress.current == 32
        assert progress.span == 212
        assert progress.percent == 15.09

    def test_progress_stays_in_range(self):
        for total in range(0, 5000, 37):
            progress = level_and_progress_for_total_xp(total)
            assert 0 <= progress.current < progress.span
            assert 0.0 <= progress.percent <= 100.0
            assert xp_threshold_for_level(progress.level) <= total

    def test_level_is_monotonic(self):
        levels = [level_and_progress_for_total_xp(total).level for total in range(0, 3000)]
        assert levels == sorted(levels)

    def test_negative_total_rejected(self):
        with pytest.raises(ValidationException):
            level_and_progress_for_total_xp(-1)

    def test_as_dict(self):
        data = level_and_progress_for_total_xp(343).as_dict()

        assert data["xp_remaining"] == 180
        assert data["total_xp"] == 343


class TestApplyXpGain:
    """Tests for apply_xp_gain"""

    def test_gain_without_level_up(self):
        user = User(xp=10, level=1)

        result = apply_xp_gain(user, 20)

        assert user.xp == 30
        assert user.level == 1
        assert result.leveled_up is False
        assert result.levels_gained == 0

    def test_gain_crossing_one_level(self):
        user = User(xp=40, level=1)

        result = apply_xp_gain(user, 23)

        assert result.new_total_xp == 63
        assert result.new_level == 2
        assert result.leveled_up is True
        assert result.levels_gained == 1

    def test_gain_crossing_several_levels(self):
        user = User(xp=0, level=1)

        result = apply_xp_gain(user, 311)

        assert result.new_level == 4
        assert result.levels_gained == 3

    def test_stale_cached_level_is_repaired(self):
        # Cached level 7 is inconsistent with 320 XP (level 4)
        user = User(xp=320, level=7)

        result = apply_xp_gain(user, 23)

        assert result.new_total_xp == 343
        assert result.new_level == 4
        assert result.leveled_up is False
        assert user.level == 4

    def test_zero_gain_is_idempotent(self):
        user = User(xp=343, level=4)

        result = apply_xp_gain(user, 0)

        assert user.xp == 343
        assert user.level == 4
        assert result.leveled_up is False

    def test_negative_gain_rejected(self):
        user = User(xp=100, level=2)

        with pytest.raises(ValidationException):
            apply_xp_gain(user, -5)

        assert user.xp == 100

    def test_negative_stored_xp_is_invariant_violation(self):
        user = User(xp=-3, level=1)

        with pytest.raises(InvariantViolationException):
            apply_xp_gain(user, 10)

"""
XP progression engine.
Maps total XP to level/progress along the level curve and applies XP gains.

The curve is incremental: xp_to_next(L) is the XP needed to go from level L
to L + 1, and the cumulative XP needed to reach level L is the sum of the
increments below it. Display and gain paths both go through
level_and_progress_for_total_xp so they can never disagree.
"""
import logging
import math
from dataclasses import dataclass
from decimal import Decimal

from levelup.constants import XP_LINEAR_FACTOR, XP_EXPONENT, MIN_LEVEL
from levelup.exceptions import ValidationException, InvariantViolationException
from levelup.services.math_utils import round_half_up, clamp

logger = logging.getLogger("levelup.level_engine")


@dataclass(frozen=True)
class LevelProgress:
    level: int
    current: int  # XP earned inside the current level
    span: int     # XP needed to clear the current level
    percent: float
    total_xp: int

    @property
    def xp_remaining(self) -> int:
        return self.span - self.current

    def as_dict(self) -> dict:
        return {
            "level": self.level,
            "current": self.current,
            "span": self.span,
            "percent": self.percent,
            "total_xp": self.total_xp,
            "xp_remaining": self.xp_remaining,
        }


@dataclass(frozen=True)
class XpGainResult:
    gained_xp: int
    new_total_xp: int
    new_level: int
    leveled_up: bool
    levels_gained: int


def _require_int(field: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationException(field, "must be an integer")


def xp_to_next(level: int) -> int:
    """
    XP needed to go from `level` to `level + 1`.

    Example:
        >>> xp_to_next(1)
        51
        >>> xp_to_next(4)
        212
    """
    _require_int("level", level)
    if level < MIN_LEVEL:
        raise ValidationException("level", f"must be >= {MIN_LEVEL}")
    return math.floor(XP_LINEAR_FACTOR * level + level ** XP_EXPONENT)


def xp_threshold_for_level(level: int) -> int:
    """
    Cumulative XP required to reach `level` starting from 0 XP at level 1.

    Example:
        >>> xp_threshold_for_level(1)
        0
        >>> xp_threshold_for_level(3)
        154
    """
    _require_int("level", level)
    if level < MIN_LEVEL:
        raise ValidationException("level", f"must be >= {MIN_LEVEL}")
    return sum(xp_to_next(k) for k in range(MIN_LEVEL, level))


def level_and_progress_for_total_xp(total_xp: int) -> LevelProgress:
    """
    Resolve a total XP amount into level and in-level progress.

    Walks the curve one level at a time, subtracting each increment while the
    remainder covers it. The loop is bounded because xp_to_next is strictly
    increasing.

    Args:
        total_xp: Total accumulated XP (>= 0)

    Returns:
        LevelProgress with 0 <= current < span and 0 <= percent <= 100
    """
    _require_int("total_xp", total_xp)
    if total_xp < 0:
        raise ValidationException("total_xp", "must be >= 0")

    level = MIN_LEVEL
    remaining = total_xp
    span = xp_to_next(level)
    while remaining >= span:
        remaining -= span
        level += 1
        span = xp_to_next(level)

    percent = round_half_up(Decimal(100) * remaining / span, 2)
    return LevelProgress(
        level=level,
        current=remaining,
        span=span,
        percent=clamp(percent, 0.0, 100.0),
        total_xp=total_xp,
    )


def apply_xp_gain(user, gained: int) -> XpGainResult:
    """
    Add XP to a user record and recompute its level.

    Updates user.xp and user.level in place; the caller's session commit
    persists them. The previous level is derived from the stored XP rather
    than read from the cached level column.

    Args:
        user: Object with integer `xp` and `level` attributes
        gained: XP to add (>= 0)

    Returns:
        XpGainResult describing the new state

    Raises:
        ValidationException: gained is negative or not an integer
        InvariantViolationException: stored XP is negative or the derived level decreased
    """
    _require_int("gained", gained)
    if gained < 0:
        raise ValidationException("gained", "XP gain cannot be negative")

    previous_xp = user.xp or 0
    if previous_xp < 0:
        logger.error(f"User {getattr(user, 'id', None)} has negative stored XP: {previous_xp}")
        raise InvariantViolationException(f"stored xp is negative ({previous_xp})")

    before = level_and_progress_for_total_xp(previous_xp)
    after = level_and_progress_for_total_xp(previous_xp + gained)

    if after.level < before.level:
        logger.error(
            f"Level decreased for user {getattr(user, 'id', None)}: "
            f"{before.level} -> {after.level}"
        )
        raise InvariantViolationException(
            f"level decreased from {before.level} to {after.level}"
        )

    if user.level is not None and user.level != before.level:
        logger.warning(
            f"Repairing cached level for user {getattr(user, 'id', None)}: "
            f"stored {user.level}, derived {before.level} from {previous_xp} XP"
        )

    user.xp = after.total_xp
    user.level = after.level

    levels_gained = after.level - before.level
    return XpGainResult(
        gained_xp=gained,
        new_total_xp=after.total_xp,
        new_level=after.level,
        leveled_up=levels_gained > 0,
        levels_gained=levels_gained,
    )

"""
Priority scoring engine.
Turns questionnaire answers or a manual ordering into ranked category
priorities, and maps a priority rank to the XP bonus multiplier.

Everything here is pure: no database access, no ambient user lookup.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from levelup.constants import (
    RANK_BONUS_MULTIPLIERS,
    DEFAULT_BONUS_MULTIPLIER,
    MAX_PRIORITY_SCORE,
    MIN_ONBOARDING_ANSWERS,
    ANSWER_VALUE_MIN,
    ANSWER_VALUE_MAX,
)
from levelup.exceptions import ValidationException
from levelup.services.math_utils import round_half_up, clamp

logger = logging.getLogger("levelup.priority_engine")


@dataclass(frozen=True)
class Answer:
    question_id: int
    value: int


@dataclass(frozen=True)
class CategoryWeight:
    category_id: int
    weight: float


@dataclass(frozen=True)
class RankedCategory:
    category_id: int
    score: float
    rank: int


def validate_answers(
    answers: Sequence[Answer],
    min_answers: int = MIN_ONBOARDING_ANSWERS
) -> None:
    """
    Check a questionnaire submission before any scoring or persistence.

    Raises:
        ValidationException: value outside 1..5, duplicate question,
            or fewer than `min_answers` answers
    """
    seen = set()
    for answer in answers:
        if isinstance(answer.value, bool) or not isinstance(answer.value, int):
            raise ValidationException("value", f"answer to question {answer.question_id} must be an integer")
        if not ANSWER_VALUE_MIN <= answer.value <= ANSWER_VALUE_MAX:
            raise ValidationException(
                "value",
                f"answer to question {answer.question_id} must be between "
                f"{ANSWER_VALUE_MIN} and {ANSWER_VALUE_MAX}"
            )
        if answer.question_id in seen:
            raise ValidationException("question_id", f"question {answer.question_id} answered twice")
        seen.add(answer.question_id)

    if len(answers) < min_answers:
        raise ValidationException(
            "answers",
            f"at least {min_answers} answered questions required, got {len(answers)}"
        )


def score_from_answers(
    answers: Iterable[Answer],
    question_weights: Mapping[int, Sequence[CategoryWeight]],
    category_ids: Iterable[int] = ()
) -> Dict[int, float]:
    """
    Accumulate value * weight per category.

    Every category mentioned in the weight table or in `category_ids` starts
    at 0, so categories without contributing answers still appear.

    Args:
        answers: Answered questions (values 1..5)
        question_weights: question_id -> category weights
        category_ids: Extra categories to include with a 0 score

    Returns:
        category_id -> raw score
    """
    raw: Dict[int, float] = {category_id: 0.0 for category_id in category_ids}
    for weights in question_weights.values():
        for entry in weights:
            raw.setdefault(entry.category_id, 0.0)

    for answer in answers:
        weights = question_weights.get(answer.question_id)
        if not weights:
            # Calibration or free-text questions carry no category weights
            logger.debug(f"Question {answer.question_id} has no category weights, skipped")
            continue
        for entry in weights:
            raw[entry.category_id] += answer.value * entry.weight

    return raw


def normalize_scores(raw_scores: Mapping[int, float]) -> Dict[int, float]:
    """
    Rescale raw scores linearly so the maximum maps to 100 and 0 stays 0.

    All-zero (or all non-positive) input yields 0 for every category.
    Results are rounded to 2 decimals and clamped to [0, 100].
    """
    if not raw_scores:
        return {}

    top = max(raw_scores.values())
    if top <= 0:
        return {category_id: 0.0 for category_id in raw_scores}

    return {
        category_id: clamp(round_half_up(MAX_PRIORITY_SCORE * raw / top, 2), 0.0, MAX_PRIORITY_SCORE)
        for category_id, raw in raw_scores.items()
    }


def rank_categories(scores: Mapping[int, float]) -> List[RankedCategory]:
    """Order by score descending, ties by category_id ascending; ranks are 1-based."""
    ordered = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    return [
        RankedCategory(category_id=category_id, score=score, rank=position)
        for position, (category_id, score) in enumerate(ordered, start=1)
    ]


def bonus_multiplier_for_rank(rank: Optional[int]) -> float:
    """
    XP multiplier for a priority rank.

    Rank 1 -> 1.5, rank 2 -> 1.25, anything else (including unranked) -> 1.0.
    """
    if rank is None:
        return DEFAULT_BONUS_MULTIPLIER
    return RANK_BONUS_MULTIPLIERS.get(rank, DEFAULT_BONUS_MULTIPLIER)


def effective_xp(base_xp: int, rank: Optional[int]) -> int:
    """
    Apply the rank bonus to an unmultiplied base XP.

    This is the only place the multiplier is applied; previews and
    completions both call it so they always agree.
    """
    if isinstance(base_xp, bool) or not isinstance(base_xp, int) or base_xp < 0:
        raise ValidationException("base_xp", "must be a non-negative integer")
    return round_half_up(base_xp * bonus_multiplier_for_rank(rank))


def apply_manual_order(ordered_category_ids: Sequence[int]) -> Dict[int, int]:
    """
    Rank categories by their position in a user-supplied ordering.

    Categories left out of the sequence get no rank (multiplier 1.0).

    Raises:
        ValidationException: duplicate category ids
    """
    ranks: Dict[int, int] = {}
    for position, category_id in enumerate(ordered_category_ids, start=1):
        if category_id in ranks:
            raise ValidationException("ordered_category_ids", f"category {category_id} listed twice")
        ranks[category_id] = position
    return ranks


def synthesize_scores(ordered_category_ids: Sequence[int]) -> Dict[int, float]:
    """
    Evenly spaced descending scores for a manual ordering.

    For n categories the i-th (0-based) gets 100 * (n - i) / n, so
    rank_categories reproduces the given order exactly.
    """
    ranks = apply_manual_order(ordered_category_ids)
    total = len(ranks)
    return {
        category_id: round_half_up(MAX_PRIORITY_SCORE * (total - rank + 1) / total, 2)
        for category_id, rank in ranks.items()
    }

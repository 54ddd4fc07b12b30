"""
Priority management service.
Reads and replaces a user's ranked category priorities.
"""
import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from levelup.repositories.priority_repository import PriorityRepository
from levelup.repositories.user_repository import UserRepository, CategoryRepository
from levelup.exceptions import (
    UserNotFoundException, CategoryNotFoundException, ValidationException
)
from levelup.locks import user_lock
from levelup.services.priority_engine import (
    RankedCategory,
    rank_categories,
    apply_manual_order,
    synthesize_scores,
    bonus_multiplier_for_rank,
)

logger = logging.getLogger("levelup.priorities")


class PriorityService:
    """Service for user category priorities"""

    def __init__(self, db: Session):
        self.db = db
        self.priority_repo = PriorityRepository()
        self.user_repo = UserRepository()
        self.category_repo = CategoryRepository()

    def _ranked(self, user_id: int) -> tuple[List[RankedCategory], Dict[int, str]]:
        rows = self.priority_repo.get_for_user(self.db, user_id)
        names = {row.category_id: row.category.name for row in rows if row.category}
        ranked = rank_categories({row.category_id: row.score for row in rows})
        return ranked, names

    def get_priorities(self, user_id: int) -> List[dict]:
        """
        Ranked priorities of a user with category names and bonus multipliers.

        Returns an empty list for users without priorities yet.
        """
        if not self.user_repo.get_by_id(self.db, user_id):
            raise UserNotFoundException(user_id)

        ranked, names = self._ranked(user_id)
        return [
            {
                "category_id": entry.category_id,
                "category_name": names.get(entry.category_id, ""),
                "score": entry.score,
                "rank": entry.rank,
                "multiplier": bonus_multiplier_for_rank(entry.rank),
            }
            for entry in ranked
        ]

    def get_rank_map(self, user_id: int) -> Dict[int, int]:
        """category_id -> rank for every ranked category of the user"""
        ranked, _ = self._ranked(user_id)
        return {entry.category_id: entry.rank for entry in ranked}

    def get_rank_for_category(self, user_id: int, category_id: int) -> Optional[int]:
        """Rank of one category, None when unranked"""
        return self.get_rank_map(user_id).get(category_id)

    def replace_priorities(self, user_id: int, scores: Dict[int, float]) -> None:
        """
        Stage a full replacement of the user's priorities.

        The caller owns the transaction and must commit (or roll back).
        """
        self.priority_repo.replace_for_user(self.db, user_id, scores)

    def reorder(self, user_id: int, ordered_category_ids: Sequence[int]) -> Dict[int, int]:
        """
        Replace priorities from a manual ordering.

        Allowed whether or not onboarding is done; it never flips the
        onboarding flag. Categories left out become unranked.

        Args:
            user_id: User whose priorities change
            ordered_category_ids: Distinct category IDs, most important first

        Returns:
            category_id -> rank
        """
        if not ordered_category_ids:
            raise ValidationException("ordered_category_ids", "at least one category required")

        ranks = apply_manual_order(ordered_category_ids)

        known = {c.id for c in self.category_repo.get_by_ids(self.db, list(ranks))}
        for category_id in ordered_category_ids:
            if category_id not in known:
                raise CategoryNotFoundException(category_id)

        with user_lock(user_id):
            try:
                if not self.user_repo.get_for_update(self.db, user_id):
                    raise UserNotFoundException(user_id)
                self.replace_priorities(user_id, synthesize_scores(ordered_category_ids))
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        logger.info(f"User {user_id} reordered priorities: {list(ordered_category_ids)}")
        return ranks

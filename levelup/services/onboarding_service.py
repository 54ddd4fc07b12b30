"""
Onboarding questionnaire service.
Serves the questions and turns a submission into the user's priority set.

A user moves from "not onboarded" to "onboarded with priorities" exactly once
through this service. Later changes go through PriorityService.reorder.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Sequence

from sqlalchemy.orm import Session

from levelup.models import OnboardingQuestion
from levelup.repositories.priority_repository import OnboardingRepository
from levelup.repositories.user_repository import UserRepository, CategoryRepository
from levelup.constants import SUPPORTED_LANGUAGES, MIN_ONBOARDING_ANSWERS
from levelup.exceptions import (
    UserNotFoundException, QuestionNotFoundException,
    ConflictException, ValidationException
)
from levelup.locks import user_lock
from levelup.services.priority_engine import (
    Answer,
    CategoryWeight,
    validate_answers,
    score_from_answers,
    normalize_scores,
)
from levelup.services.priority_service import PriorityService

logger = logging.getLogger("levelup.onboarding")


class OnboardingService:
    """Service for the onboarding questionnaire"""

    def __init__(self, db: Session):
        self.db = db
        self.onboarding_repo = OnboardingRepository()
        self.user_repo = UserRepository()
        self.category_repo = CategoryRepository()
        self.priority_service = PriorityService(db)

    @staticmethod
    def _check_language(language: str) -> None:
        if language not in SUPPORTED_LANGUAGES:
            raise ValidationException("language", f"must be one of {', '.join(SUPPORTED_LANGUAGES)}")

    def get_questions(self, user_id: int, language: str) -> List[OnboardingQuestion]:
        """
        Active questions for a language.

        Raises:
            ConflictException: user already completed onboarding
        """
        self._check_language(language)
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            raise UserNotFoundException(user_id)
        if user.onboarding_done:
            raise ConflictException("Onboarding already completed")
        return self.onboarding_repo.get_active_questions(self.db, language)

    def _load_weights(self, question_ids: List[int]) -> Dict[int, List[CategoryWeight]]:
        weights = defaultdict(list)
        for row in self.onboarding_repo.get_weights(self.db, question_ids):
            weights[row.question_id].append(
                CategoryWeight(category_id=row.category_id, weight=row.weight)
            )
        return dict(weights)

    def submit_answers(self, user_id: int, language: str, answers: Sequence) -> List[dict]:
        """
        Score a questionnaire submission and store the resulting priorities.

        All-or-nothing: on any error nothing is written.

        Args:
            user_id: Submitting user
            language: Questionnaire language
            answers: Objects with question_id and value (1..5)

        Returns:
            Ranked priorities (see PriorityService.get_priorities)

        Raises:
            ValidationException: fewer than 12 answers, bad value, duplicate question
            NotFoundException: unknown user or question
            ConflictException: onboarding already completed
        """
        self._check_language(language)
        parsed = [Answer(question_id=a.question_id, value=a.value) for a in answers]
        validate_answers(parsed, MIN_ONBOARDING_ANSWERS)

        question_ids = [a.question_id for a in parsed]

        with user_lock(user_id):
            try:
                user = self.user_repo.get_for_update(self.db, user_id)
                if not user:
                    raise UserNotFoundException(user_id)
                if user.onboarding_done:
                    raise ConflictException("Onboarding already completed")

                existing = self.onboarding_repo.get_existing_ids(self.db, question_ids)
                for question_id in question_ids:
                    if question_id not in existing:
                        raise QuestionNotFoundException(question_id)

                weights = self._load_weights(question_ids)
                unweighted = [qid for qid in question_ids if qid not in weights]
                if unweighted:
                    logger.info(
                        f"User {user_id}: {len(unweighted)} answered questions carry no "
                        f"category weights: {unweighted}"
                    )

                category_ids = [c.id for c in self.category_repo.get_all(self.db)]
                scores = normalize_scores(
                    score_from_answers(parsed, weights, category_ids=category_ids)
                )

                self.onboarding_repo.add_submission(
                    self.db, user_id, language,
                    [(a.question_id, a.value) for a in parsed]
                )
                self.priority_service.replace_priorities(user_id, scores)
                user.onboarding_done = True
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        logger.info(f"User {user_id} completed onboarding with {len(parsed)} answers")
        return self.priority_service.get_priorities(user_id)

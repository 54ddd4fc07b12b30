"""
Priority and onboarding repositories - Data access for UserPriority,
onboarding questions, weights, submissions and answers.
"""
from typing import Dict, List
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import and_

from levelup.models import (
    UserPriority, OnboardingQuestion, OnboardingQuestionWeight,
    UserOnboardingSubmission, OnboardingAnswer
)


class PriorityRepository:
    """Repository for UserPriority data access"""

    @staticmethod
    def get_for_user(db: Session, user_id: int) -> List[UserPriority]:
        """Get all priority rows of a user (unordered)"""
        return db.query(UserPriority).options(
            joinedload(UserPriority.category)
        ).filter(UserPriority.user_id == user_id).all()

    @staticmethod
    def replace_for_user(db: Session, user_id: int, scores: Dict[int, float]) -> None:
        """
        Replace the user's priority set with `scores`.

        Does not commit: the caller commits so the delete and the inserts land
        in the same transaction.
        """
        db.query(UserPriority).filter(
            UserPriority.user_id == user_id
        ).delete(synchronize_session="fetch")
        # Flush the delete before inserting rows with the same unique keys
        db.flush()
        for category_id, score in scores.items():
            db.add(UserPriority(user_id=user_id, category_id=category_id, score=score))
        db.flush()


class OnboardingRepository:
    """Repository for onboarding questionnaire data access"""

    @staticmethod
    def get_active_questions(db: Session, language: str) -> List[OnboardingQuestion]:
        """Get active questions for a language in display order"""
        return db.query(OnboardingQuestion).filter(
            and_(
                OnboardingQuestion.language == language,
                OnboardingQuestion.is_active == True
            )
        ).order_by(OnboardingQuestion.sort_order, OnboardingQuestion.id).all()

    @staticmethod
    def get_existing_ids(db: Session, question_ids: List[int]) -> set:
        """Return which of the given question IDs exist"""
        if not question_ids:
            return set()
        rows = db.query(OnboardingQuestion.id).filter(
            OnboardingQuestion.id.in_(question_ids)
        ).all()
        return {row[0] for row in rows}

    @staticmethod
    def get_weights(db: Session, question_ids: List[int]) -> List[OnboardingQuestionWeight]:
        """Get category weights attached to the given questions"""
        if not question_ids:
            return []
        return db.query(OnboardingQuestionWeight).filter(
            OnboardingQuestionWeight.question_id.in_(question_ids)
        ).all()

    @staticmethod
    def add_submission(
        db: Session,
        user_id: int,
        language: str,
        answers: List[tuple]
    ) -> UserOnboardingSubmission:
        """
        Stage a submission with its answers (list of (question_id, value)).

        Does not commit.
        """
        submission = UserOnboardingSubmission(
            user_id=user_id,
            language=language,
            answer_count=len(answers)
        )
        for question_id, value in answers:
            submission.answers.append(
                OnboardingAnswer(user_id=user_id, question_id=question_id, value=value)
            )
        db.add(submission)
        db.flush()
        return submission

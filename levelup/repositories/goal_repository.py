"""
Goal repository - Data access layer for goal templates, user goals and completions.
"""
from datetime import datetime, date
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_

from levelup.models import GoalTemplate, UserGoal, UserGoalCompletion
from levelup.constants import (
    VISIBILITY_PUBLIC, GOAL_STATUS_ACTIVE, GOAL_STATUS_ARCHIVED
)


class GoalTemplateRepository:
    """Repository for GoalTemplate data access"""

    @staticmethod
    def get_by_id(db: Session, template_id: int) -> Optional[GoalTemplate]:
        """Get template by ID"""
        return db.query(GoalTemplate).filter(GoalTemplate.id == template_id).first()

    @staticmethod
    def get_catalog(
        db: Session,
        user_id: Optional[int] = None,
        category_id: Optional[int] = None
    ) -> List[GoalTemplate]:
        """Get enabled templates: public ones plus private ones owned by user_id"""
        visible = GoalTemplate.visibility == VISIBILITY_PUBLIC
        if user_id is not None:
            visible = or_(visible, GoalTemplate.owner_user_id == user_id)

        query = db.query(GoalTemplate).filter(
            and_(
                GoalTemplate.enabled == True,
                visible
            )
        )
        if category_id is not None:
            query = query.filter(GoalTemplate.category_id == category_id)
        return query.order_by(GoalTemplate.category_id, GoalTemplate.id).all()

    @staticmethod
    def find_by_title(db: Session, category_id: int, title: str) -> Optional[GoalTemplate]:
        """Get public template by category and title"""
        return db.query(GoalTemplate).filter(
            and_(
                GoalTemplate.category_id == category_id,
                GoalTemplate.title == title,
                GoalTemplate.owner_user_id.is_(None)
            )
        ).first()

    @staticmethod
    def create(db: Session, template: GoalTemplate) -> GoalTemplate:
        """Create new template"""
        db.add(template)
        db.commit()
        db.refresh(template)
        return template


class UserGoalRepository:
    """Repository for UserGoal data access"""

    @staticmethod
    def get_for_user(db: Session, user_id: int, user_goal_id: int) -> Optional[UserGoal]:
        """Get user goal by ID, scoped to its owner"""
        return db.query(UserGoal).filter(
            and_(
                UserGoal.id == user_goal_id,
                UserGoal.user_id == user_id
            )
        ).first()

    @staticmethod
    def get_by_template(db: Session, user_id: int, template_id: int) -> Optional[UserGoal]:
        """Get the user's subscription to a template"""
        return db.query(UserGoal).filter(
            and_(
                UserGoal.user_id == user_id,
                UserGoal.template_id == template_id
            )
        ).first()

    @staticmethod
    def get_all_for_user(db: Session, user_id: int, status: str) -> List[UserGoal]:
        """Get user goals filtered by status (active, archived, all)"""
        query = db.query(UserGoal).filter(UserGoal.user_id == user_id)
        if status == GOAL_STATUS_ACTIVE:
            query = query.filter(UserGoal.active == True)
        elif status == GOAL_STATUS_ARCHIVED:
            query = query.filter(UserGoal.active == False)
        return query.order_by(UserGoal.id).all()

    @staticmethod
    def get_expired_completed(db: Session, now: datetime) -> List[UserGoal]:
        """Get completed goals whose period has ended"""
        return db.query(UserGoal).filter(
            and_(
                UserGoal.completed == True,
                UserGoal.due_date.isnot(None),
                UserGoal.due_date <= now
            )
        ).all()

    @staticmethod
    def create(db: Session, user_goal: UserGoal) -> UserGoal:
        """Create new user goal"""
        db.add(user_goal)
        db.commit()
        db.refresh(user_goal)
        return user_goal

    @staticmethod
    def update(db: Session, user_goal: UserGoal) -> UserGoal:
        """Update existing user goal"""
        db.commit()
        db.refresh(user_goal)
        return user_goal

    @staticmethod
    def delete(db: Session, user_goal: UserGoal) -> None:
        """Delete user goal and its completion history"""
        db.delete(user_goal)
        db.commit()


class CompletionRepository:
    """Repository for UserGoalCompletion data access"""

    @staticmethod
    def get_for_period(
        db: Session,
        user_goal_id: int,
        period_start: date
    ) -> Optional[UserGoalCompletion]:
        """Get completion recorded for a goal period"""
        return db.query(UserGoalCompletion).filter(
            and_(
                UserGoalCompletion.user_goal_id == user_goal_id,
                UserGoalCompletion.period_start == period_start
            )
        ).first()

    @staticmethod
    def get_history(db: Session, user_id: int, limit: int = 50) -> List[UserGoalCompletion]:
        """Get most recent completions for a user"""
        return db.query(UserGoalCompletion).filter(
            UserGoalCompletion.user_id == user_id
        ).order_by(UserGoalCompletion.completed_at.desc()).limit(limit).all()

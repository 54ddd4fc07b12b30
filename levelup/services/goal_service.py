"""
Goal management service.
Handles the template catalog, user goal subscriptions and goal completion.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from levelup.models import GoalTemplate, UserGoal, UserGoalCompletion
from levelup.schemas import GoalTemplateCreate, UserGoalCreate
from levelup.repositories.goal_repository import (
    GoalTemplateRepository, UserGoalRepository, CompletionRepository
)
from levelup.repositories.user_repository import UserRepository, CategoryRepository
from levelup.constants import (
    BASE_XP_BY_CATEGORY, DEFAULT_BASE_XP, CADENCES, CADENCE_DAILY,
    VISIBILITY_PRIVATE, GOAL_STATUS_ACTIVE, GOAL_STATUS_ARCHIVED, GOAL_STATUS_ALL,
    EVENT_XP_CHANGED, EVENT_LEVEL_UP
)
from levelup.exceptions import (
    UserNotFoundException, CategoryNotFoundException, TemplateNotFoundException,
    UserGoalNotFoundException, ConflictException, ValidationException
)
from levelup.locks import user_lock
from levelup.services.date_service import DateService
from levelup.services.level_engine import apply_xp_gain, level_and_progress_for_total_xp
from levelup.services.priority_engine import bonus_multiplier_for_rank, effective_xp
from levelup.services.priority_service import PriorityService

logger = logging.getLogger("levelup.goals")


class GoalTemplateService:
    """Service for the goal template catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.template_repo = GoalTemplateRepository()
        self.category_repo = CategoryRepository()
        self.user_repo = UserRepository()
        self.priority_service = PriorityService(db)

    def list_catalog(
        self,
        user_id: Optional[int] = None,
        category_id: Optional[int] = None
    ) -> List[GoalTemplate]:
        """Enabled templates visible to the user, optionally for one category"""
        return self.template_repo.get_catalog(self.db, user_id, category_id)

    @staticmethod
    def suggest_base_xp(category_name: Optional[str], cadence: str) -> int:
        """
        Suggested unmultiplied reward for a new template.

        Example:
            >>> GoalTemplateService.suggest_base_xp("sport", "weekly")
            45
        """
        if cadence not in CADENCES:
            raise ValidationException("cadence", f"must be one of {', '.join(CADENCES)}")
        table = BASE_XP_BY_CATEGORY.get((category_name or "").lower(), DEFAULT_BASE_XP)
        return table[cadence]

    def create_template(self, template_data: GoalTemplateCreate) -> GoalTemplate:
        """Create a catalog or private template"""
        category = self.category_repo.get_by_id(self.db, template_data.category_id)
        if not category:
            raise CategoryNotFoundException(template_data.category_id)

        if template_data.owner_user_id is not None:
            if not self.user_repo.get_by_id(self.db, template_data.owner_user_id):
                raise UserNotFoundException(template_data.owner_user_id)
        elif template_data.visibility == VISIBILITY_PRIVATE:
            raise ValidationException("owner_user_id", "required for private templates")

        data = template_data.model_dump()
        if data["base_xp"] is None:
            data["base_xp"] = self.suggest_base_xp(category.name, template_data.frequency)

        template = self.template_repo.create(self.db, GoalTemplate(**data))
        logger.info(f"Created template {template.id} '{template.title}' ({category.name})")
        return template

    def preview_xp(self, user_id: int, category_id: int, base_xp: int) -> dict:
        """
        XP a completion in `category_id` would award the user right now.

        Uses the same rounding as completion, so the preview always matches
        the XP actually granted while priorities stay unchanged.
        """
        if not self.user_repo.get_by_id(self.db, user_id):
            raise UserNotFoundException(user_id)
        if not self.category_repo.get_by_id(self.db, category_id):
            raise CategoryNotFoundException(category_id)

        rank = self.priority_service.get_rank_for_category(user_id, category_id)
        return {
            "category_id": category_id,
            "base_xp": base_xp,
            "rank": rank,
            "multiplier": bonus_multiplier_for_rank(rank),
            "effective_xp": effective_xp(base_xp, rank),
        }


class UserGoalService:
    """Service for user goal subscriptions and completion"""

    def __init__(self, db: Session):
        self.db = db
        self.user_goal_repo = UserGoalRepository()
        self.template_repo = GoalTemplateRepository()
        self.completion_repo = CompletionRepository()
        self.user_repo = UserRepository()
        self.priority_service = PriorityService(db)

    def _require_user(self, user_id: int) -> None:
        if not self.user_repo.get_by_id(self.db, user_id):
            raise UserNotFoundException(user_id)

    def get_user_goal(self, user_id: int, user_goal_id: int) -> UserGoal:
        """Get a user's goal or raise UserGoalNotFoundException"""
        user_goal = self.user_goal_repo.get_for_user(self.db, user_id, user_goal_id)
        if not user_goal:
            raise UserGoalNotFoundException(user_goal_id)
        return user_goal

    @staticmethod
    def base_xp_for(user_goal: UserGoal) -> int:
        """Unmultiplied reward: per-user override, else the template's"""
        if user_goal.xp_reward_override is not None:
            return user_goal.xp_reward_override
        return user_goal.template.base_xp

    def to_response(self, user_goal: UserGoal, rank: Optional[int], now: datetime) -> dict:
        template = user_goal.template
        base_xp = self.base_xp_for(user_goal)
        return {
            "id": user_goal.id,
            "user_id": user_goal.user_id,
            "template_id": user_goal.template_id,
            "title": template.title,
            "description": template.description,
            "category_id": template.category_id,
            "category_name": template.category.name if template.category else None,
            "cadence": user_goal.cadence,
            "active": user_goal.active,
            "completed": user_goal.completed,
            "can_complete": DateService.can_complete(user_goal, now),
            "due_date": user_goal.due_date,
            "last_completed_at": user_goal.last_completed_at,
            "base_xp": base_xp,
            "xp_reward_override": user_goal.xp_reward_override,
            "rank": rank,
            "effective_xp": effective_xp(base_xp, rank),
        }

    def describe(self, user_goal: UserGoal, now: Optional[datetime] = None) -> dict:
        """Response dict for a single goal"""
        rank = self.priority_service.get_rank_for_category(
            user_goal.user_id, user_goal.template.category_id
        )
        return self.to_response(user_goal, rank, now or DateService.now())

    def list_user_goals(
        self,
        user_id: int,
        status: str = GOAL_STATUS_ACTIVE,
        now: Optional[datetime] = None
    ) -> List[dict]:
        """User goals filtered by status with completability and bonus XP"""
        if status not in (GOAL_STATUS_ACTIVE, GOAL_STATUS_ARCHIVED, GOAL_STATUS_ALL):
            raise ValidationException("status", "must be one of active, archived, all")
        self._require_user(user_id)

        now = now or DateService.now()
        rank_map = self.priority_service.get_rank_map(user_id)
        return [
            self.to_response(goal, rank_map.get(goal.template.category_id), now)
            for goal in self.user_goal_repo.get_all_for_user(self.db, user_id, status)
        ]

    def subscribe(
        self,
        user_id: int,
        goal_data: UserGoalCreate,
        now: Optional[datetime] = None
    ) -> UserGoal:
        """Subscribe a user to a template"""
        self._require_user(user_id)

        template = self.template_repo.get_by_id(self.db, goal_data.template_id)
        if not template or not template.enabled:
            raise TemplateNotFoundException(goal_data.template_id)
        if template.visibility == VISIBILITY_PRIVATE and template.owner_user_id != user_id:
            raise TemplateNotFoundException(goal_data.template_id)

        if self.user_goal_repo.get_by_template(self.db, user_id, template.id):
            raise ConflictException("Already subscribed to this goal")

        cadence = goal_data.cadence or template.frequency or CADENCE_DAILY
        user_goal = UserGoal(
            user_id=user_id,
            template_id=template.id,
            active=True,
            completed=False,
            cadence=cadence,
            due_date=DateService.due_date_for(cadence, now or DateService.now()),
            xp_reward_override=goal_data.xp_reward_override
        )
        user_goal = self.user_goal_repo.create(self.db, user_goal)
        logger.info(f"User {user_id} subscribed to template {template.id} ({cadence})")
        return user_goal

    def archive(self, user_id: int, user_goal_id: int) -> UserGoal:
        """Archive a goal; it stays in history but cannot be completed"""
        user_goal = self.get_user_goal(user_id, user_goal_id)
        user_goal.active = False
        return self.user_goal_repo.update(self.db, user_goal)

    def unarchive(self, user_id: int, user_goal_id: int) -> UserGoal:
        """Reactivate an archived goal"""
        user_goal = self.get_user_goal(user_id, user_goal_id)
        user_goal.active = True
        return self.user_goal_repo.update(self.db, user_goal)

    def schedule(
        self,
        user_id: int,
        user_goal_id: int,
        cadence: str,
        now: Optional[datetime] = None
    ) -> UserGoal:
        """Change a goal's cadence and start a fresh period"""
        if cadence not in CADENCES:
            raise ValidationException("cadence", f"must be one of {', '.join(CADENCES)}")
        user_goal = self.get_user_goal(user_id, user_goal_id)
        user_goal.cadence = cadence
        user_goal.completed = False
        user_goal.due_date = DateService.due_date_for(cadence, now or DateService.now())
        return self.user_goal_repo.update(self.db, user_goal)

    def delete(self, user_id: int, user_goal_id: int) -> None:
        """Unsubscribe; completion history of the goal goes with it, XP stays"""
        user_goal = self.get_user_goal(user_id, user_goal_id)
        self.user_goal_repo.delete(self.db, user_goal)
        logger.info(f"User {user_id} deleted goal {user_goal_id}")

    def complete(
        self,
        user_id: int,
        user_goal_id: int,
        now: Optional[datetime] = None
    ) -> dict:
        """
        Complete a goal for the current period and award XP.

        The reward is the base XP times the rank bonus of the goal's category,
        rounded half-up. XP, level, the completion record and the goal state
        are committed together while the user's write lock is held.

        Args:
            user_id: Owner of the goal
            user_goal_id: Goal to complete
            now: Completion moment (defaults to current time)

        Returns:
            Completion breakdown with new XP/level, progress and events

        Raises:
            NotFoundException: unknown user or goal
            ConflictException: goal archived or already completed this period
        """
        now = now or DateService.now()

        with user_lock(user_id):
            try:
                user = self.user_repo.get_for_update(self.db, user_id)
                if not user:
                    raise UserNotFoundException(user_id)
                user_goal = self.get_user_goal(user_id, user_goal_id)

                if not user_goal.active:
                    raise ConflictException("Archived goals cannot be completed")
                if not DateService.can_complete(user_goal, now):
                    raise ConflictException("Goal already completed for this period")

                period_start = DateService.period_start_date(user_goal.cadence, now)
                if self.completion_repo.get_for_period(self.db, user_goal.id, period_start):
                    raise ConflictException("Goal already completed for this period")

                base_xp = self.base_xp_for(user_goal)
                rank = self.priority_service.get_rank_for_category(
                    user_id, user_goal.template.category_id
                )
                multiplier = bonus_multiplier_for_rank(rank)
                gained = effective_xp(base_xp, rank)

                result = apply_xp_gain(user, gained)

                self.db.add(UserGoalCompletion(
                    user_goal_id=user_goal.id,
                    user_id=user_id,
                    period_start=period_start,
                    base_xp=base_xp,
                    multiplier=multiplier,
                    xp_awarded=gained,
                    completed_at=now
                ))
                user_goal.completed = True
                user_goal.last_completed_at = now
                user_goal.due_date = DateService.due_date_for(user_goal.cadence, now)

                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        events = [EVENT_XP_CHANGED]
        if result.leveled_up:
            events.append(EVENT_LEVEL_UP)
            logger.info(
                f"User {user_id} leveled up to {result.new_level} "
                f"(+{result.levels_gained})"
            )
        logger.info(
            f"User {user_id} completed goal {user_goal_id}: "
            f"{base_xp} x {multiplier} = {gained} XP (total {result.new_total_xp})"
        )

        return {
            "user_goal_id": user_goal_id,
            "gained_xp": gained,
            "base_xp": base_xp,
            "multiplier": multiplier,
            "new_total_xp": result.new_total_xp,
            "new_level": result.new_level,
            "leveled_up": result.leveled_up,
            "levels_gained": result.levels_gained,
            "progress": level_and_progress_for_total_xp(result.new_total_xp).as_dict(),
            "events": events,
        }

    def get_completion_history(self, user_id: int, limit: int = 50) -> List[UserGoalCompletion]:
        """Most recent completions of a user"""
        self._require_user(user_id)
        return self.completion_repo.get_history(self.db, user_id, limit)

    def rollover_expired(self, now: Optional[datetime] = None) -> int:
        """
        Reopen completed goals whose period has ended.

        Completability is derived from the last completion, so this only keeps
        the stored `completed` flag and due date in step with the calendar.

        Returns:
            Number of goals rolled over
        """
        now = now or DateService.now()
        expired = self.user_goal_repo.get_expired_completed(self.db, now)
        for user_goal in expired:
            user_goal.completed = False
            user_goal.due_date = DateService.due_date_for(user_goal.cadence, now)
        if expired:
            self.db.commit()
        return len(expired)

"""
User management service.
Handles registration, profile updates, XP progress display and the leaderboard.
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from levelup.models import User
from levelup.schemas import UserCreate, UserUpdate
from levelup.repositories.user_repository import UserRepository
from levelup.auth import get_password_hash
from levelup.constants import LEADERBOARD_DEFAULT_LIMIT
from levelup.exceptions import UserNotFoundException, ConflictException
from levelup.services.level_engine import LevelProgress, level_and_progress_for_total_xp

logger = logging.getLogger("levelup.users")


class UserService:
    """Service for user accounts and progression display"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()

    def get_user(self, user_id: int) -> User:
        """Get user or raise UserNotFoundException"""
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            raise UserNotFoundException(user_id)
        return user

    def create_user(self, user_data: UserCreate) -> User:
        """Register a new user at level 1 with 0 XP"""
        clash = self.user_repo.find_by_username_or_email(
            self.db, user_data.username, user_data.email
        )
        if clash:
            raise ConflictException("Username or email already registered")

        user = User(
            username=user_data.username,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            level=1,
            xp=0,
            onboarding_done=False
        )
        user = self.user_repo.create(self.db, user)
        logger.info(f"User {user.id} registered ({user.username})")
        return user

    def update_user(self, user_id: int, user_update: UserUpdate) -> User:
        """Update username/email; progression fields are not editable here"""
        user = self.get_user(user_id)
        update_data = user_update.model_dump(exclude_unset=True)

        clash = self.user_repo.find_by_username_or_email(
            self.db,
            update_data.get("username"),
            update_data.get("email"),
            exclude_id=user_id
        )
        if clash:
            raise ConflictException("Username or email already registered")

        for key, value in update_data.items():
            setattr(user, key, value)
        return self.user_repo.update(self.db, user)

    def get_xp_progress(self, user_id: int) -> LevelProgress:
        """Progress bar data derived from the user's authoritative XP"""
        user = self.get_user(user_id)
        return level_and_progress_for_total_xp(user.xp or 0)

    def get_leaderboard(self, limit: int = LEADERBOARD_DEFAULT_LIMIT) -> List[User]:
        """Top users by XP"""
        return self.user_repo.get_leaderboard(self.db, limit)

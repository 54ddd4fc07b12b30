"""
User repository - Data access layer for User and Category models.
"""
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import or_

from levelup.models import User, Category


class UserRepository:
    """Repository for User data access"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_for_update(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID with a row lock held until the transaction ends"""
        return db.query(User).filter(User.id == user_id).with_for_update().first()

    @staticmethod
    def find_by_username_or_email(
        db: Session,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[int] = None
    ) -> Optional[User]:
        """Find a user clashing on username or email"""
        clauses = []
        if username:
            clauses.append(User.username == username)
        if email:
            clauses.append(User.email == email)
        if not clauses:
            return None
        query = db.query(User).filter(or_(*clauses))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first()

    @staticmethod
    def get_leaderboard(db: Session, limit: int) -> List[User]:
        """Top users by XP, then level"""
        return db.query(User).order_by(
            User.xp.desc(), User.level.desc(), User.id.asc()
        ).limit(limit).all()

    @staticmethod
    def create(db: Session, user: User) -> User:
        """Create new user"""
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update(db: Session, user: User) -> User:
        """Update existing user"""
        db.commit()
        db.refresh(user)
        return user


class CategoryRepository:
    """Repository for Category data access"""

    @staticmethod
    def get_all(db: Session) -> List[Category]:
        """Get all categories ordered by ID"""
        return db.query(Category).order_by(Category.id).all()

    @staticmethod
    def get_by_id(db: Session, category_id: int) -> Optional[Category]:
        """Get category by ID"""
        return db.query(Category).filter(Category.id == category_id).first()

    @staticmethod
    def get_by_ids(db: Session, category_ids: List[int]) -> List[Category]:
        """Get categories matching the given IDs"""
        if not category_ids:
            return []
        return db.query(Category).filter(Category.id.in_(category_ids)).all()

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Float, Date, Text,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from datetime import datetime

from levelup.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(80), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)

    # Progression. level is a cache of xp (derivable via the level engine)
    level = Column(Integer, nullable=False, default=1)
    xp = Column(Integer, nullable=False, default=0)  # Total accumulated, never decreases

    onboarding_done = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    goals = relationship("UserGoal", back_populates="user", cascade="all, delete-orphan")
    priorities = relationship("UserPriority", back_populates="user", cascade="all, delete-orphan")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)

    templates = relationship("GoalTemplate", back_populates="category")


class GoalTemplate(Base):
    __tablename__ = "goal_templates"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    base_xp = Column(Integer, nullable=False, default=30)  # Unmultiplied reward
    frequency = Column(String(20), nullable=False, default="daily")  # daily, weekly
    enabled = Column(Boolean, nullable=False, default=True, index=True)

    # Shared catalog vs private template
    visibility = Column(String(20), nullable=False, default="public")  # public, private
    owner_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    category = relationship("Category", back_populates="templates")


class UserGoal(Base):
    __tablename__ = "user_goals"
    __table_args__ = (
        UniqueConstraint("user_id", "template_id", name="user_goals_user_template_unique"),
        Index("ix_user_goals_user_active", "user_id", "active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    template_id = Column(Integer, ForeignKey("goal_templates.id"), nullable=False, index=True)

    active = Column(Boolean, nullable=False, default=True)  # False = archived
    completed = Column(Boolean, nullable=False, default=False)  # Completed in current period
    cadence = Column(String(20), nullable=False, default="daily")  # daily, weekly
    due_date = Column(DateTime, nullable=True)  # End of current period
    last_completed_at = Column(DateTime, nullable=True)
    xp_reward_override = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="goals")
    template = relationship("GoalTemplate")
    completions = relationship(
        "UserGoalCompletion", back_populates="user_goal", cascade="all, delete-orphan"
    )


class UserGoalCompletion(Base):
    __tablename__ = "user_goal_completions"
    __table_args__ = (
        UniqueConstraint("user_goal_id", "period_start", name="user_goal_completions_period_unique"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_goal_id = Column(Integer, ForeignKey("user_goals.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    period_start = Column(Date, nullable=False)

    # Reward breakdown
    base_xp = Column(Integer, nullable=False)
    multiplier = Column(Float, nullable=False, default=1.0)
    xp_awarded = Column(Integer, nullable=False)

    completed_at = Column(DateTime, default=datetime.utcnow)

    user_goal = relationship("UserGoal", back_populates="completions")


class UserPriority(Base):
    __tablename__ = "user_priorities"
    __table_args__ = (
        UniqueConstraint("user_id", "category_id", name="user_priorities_user_category_unique"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    score = Column(Float, nullable=False, default=0.0)  # 0-100
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="priorities")
    category = relationship("Category")


class OnboardingQuestion(Base):
    __tablename__ = "onboarding_questions"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False)  # Same code across languages
    language = Column(String(5), nullable=False, default="fr", index=True)
    text = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    weights = relationship(
        "OnboardingQuestionWeight", back_populates="question", cascade="all, delete-orphan"
    )


class OnboardingQuestionWeight(Base):
    __tablename__ = "onboarding_question_weights"
    __table_args__ = (
        UniqueConstraint("question_id", "category_id", name="onboarding_weights_question_category_unique"),
    )

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(Integer, ForeignKey("onboarding_questions.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    weight = Column(Float, nullable=False, default=1.0)

    question = relationship("OnboardingQuestion", back_populates="weights")


class UserOnboardingSubmission(Base):
    __tablename__ = "user_onboarding_submissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    language = Column(String(5), nullable=False, default="fr")
    answer_count = Column(Integer, nullable=False, default=0)
    submitted_at = Column(DateTime, default=datetime.utcnow)

    answers = relationship(
        "OnboardingAnswer", back_populates="submission", cascade="all, delete-orphan"
    )


class OnboardingAnswer(Base):
    __tablename__ = "onboarding_answers"
    __table_args__ = (
        UniqueConstraint("submission_id", "question_id", name="onboarding_answers_submission_question_unique"),
    )

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("user_onboarding_submissions.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("onboarding_questions.id"), nullable=False)
    value = Column(Integer, nullable=False)  # 1-5

    submission = relationship("UserOnboardingSubmission", back_populates="answers")

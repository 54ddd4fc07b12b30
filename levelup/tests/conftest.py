"""
Pytest configuration and fixtures

Every test gets its own in-memory SQLite database, so nothing leaks between tests.
"""
import os
import tempfile
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Keep application logs out of /var/log while testing
os.environ.setdefault("LEVELUP_LOG_DIR", tempfile.mkdtemp(prefix="levelup-logs-"))
os.environ.setdefault("LEVELUP_SCHEDULER_ENABLED", "false")

from levelup.database import Base
from levelup.models import (
    User, Category, GoalTemplate, OnboardingQuestion, OnboardingQuestionWeight
)


@pytest.fixture(scope="function")
def db_session():
    """Session bound to a fresh in-memory database"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSession()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def categories(db_session):
    """sport, freelance and mindset categories keyed by name"""
    created = {}
    for name in ("sport", "freelance", "mindset"):
        category = Category(name=name)
        db_session.add(category)
        created[name] = category
    db_session.commit()
    return created


@pytest.fixture
def user(db_session):
    user = User(
        username="alice",
        email="alice@example.com",
        password_hash="not-a-real-hash",
        level=1,
        xp=0,
        onboarding_done=False
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def questions(db_session, categories):
    """
    14 French questions: 1-6 weigh on sport, 7-10 on freelance,
    11 on mindset, 12-14 carry no weights.
    """
    created = []
    for index in range(1, 15):
        question = OnboardingQuestion(
            code=f"q{index}",
            language="fr",
            text=f"Question {index}",
            is_active=True,
            sort_order=index
        )
        if index <= 6:
            weighted = categories["sport"]
        elif index <= 10:
            weighted = categories["freelance"]
        elif index == 11:
            weighted = categories["mindset"]
        else:
            weighted = None
        if weighted is not None:
            question.weights.append(
                OnboardingQuestionWeight(category_id=weighted.id, weight=1.0)
            )
        db_session.add(question)
        created.append(question)
    db_session.commit()
    return created


@pytest.fixture
def sport_template(db_session, categories):
    template = GoalTemplate(
        category_id=categories["sport"].id,
        title="30 minutes of exercise",
        base_xp=15,
        frequency="daily",
        enabled=True,
        visibility="public"
    )
    db_session.add(template)
    db_session.commit()
    db_session.refresh(template)
    return template


@pytest.fixture
def monday():
    """Monday 5 January 2026, 10:00"""
    return datetime(2026, 1, 5, 10, 0, 0)

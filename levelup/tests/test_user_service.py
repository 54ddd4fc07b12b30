"""
Tests for UserService.
"""
import bcrypt
import pytest

from levelup.exceptions import ConflictException, NotFoundException
from levelup.models import User
from levelup.schemas import UserCreate, UserUpdate
from levelup.services.user_service import UserService


def test_create_user_starts_at_level_one(db_session):
    user = UserService(db_session).create_user(
        UserCreate(username="bob", email="bob@example.com", password="s3cret-pass")
    )

    assert user.level == 1
    assert user.xp == 0
    assert user.onboarding_done is False
    assert bcrypt.checkpw(b"s3cret-pass", user.password_hash.encode("utf-8"))


def test_duplicate_username_conflicts(db_session, user):
    with pytest.raises(ConflictException):
        UserService(db_session).create_user(
            UserCreate(username="alice", email="other@example.com", password="s3cret-pass")
        )


def test_update_to_taken_email_conflicts(db_session, user):
    other = UserService(db_session).create_user(
        UserCreate(username="carol", email="carol@example.com", password="s3cret-pass")
    )

    with pytest.raises(ConflictException):
        UserService(db_session).update_user(other.id, UserUpdate(email="alice@example.com"))


def test_update_username(db_session, user):
    updated = UserService(db_session).update_user(user.id, UserUpdate(username="alice2"))

    assert updated.username == "alice2"
    assert updated.email == "alice@example.com"


def test_get_unknown_user(db_session):
    with pytest.raises(NotFoundException):
        UserService(db_session).get_user(123)


def test_xp_progress_ignores_cached_level(db_session, user):
    user.xp = 343
    user.level = 7
    db_session.commit()

    progress = UserService(db_session).get_xp_progress(user.id)

    assert progress.level == 4
    assert progress.percent == 15.09


def test_leaderboard_order(db_session):
    for name, xp, level in (("low", 10, 1), ("high", 500, 5), ("mid", 200, 3), ("tie", 200, 3)):
        db_session.add(User(username=name, email=f"{name}@example.com",
                            password_hash="x", xp=xp, level=level))
    db_session.commit()

    board = UserService(db_session).get_leaderboard(limit=3)

    assert [u.username for u in board] == ["high", "mid", "tie"]

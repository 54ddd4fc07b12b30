"""
Tests for per-user write serialization.

Tests cover:
1. Concurrent completions for one user never lose XP
2. Concurrent priority reorders never mix two orderings
3. The lock registry only keeps locks that are in use
"""
import gc
import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from levelup import locks
from levelup.database import Base
from levelup.models import Category, GoalTemplate, User, UserGoal, UserGoalCompletion
from levelup.services.goal_service import UserGoalService
from levelup.services.level_engine import level_and_progress_for_total_xp
from levelup.services.priority_engine import apply_manual_order
from levelup.services.priority_service import PriorityService

WORKERS = 8


@pytest.fixture
def session_factory(tmp_path):
    """Sessions on a file-backed database shared by several threads"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'levelup.db'}",
        connect_args={"check_same_thread": False, "timeout": 30}
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture
def player(session_factory):
    """User with one daily goal per worker, each worth 10 XP"""
    db = session_factory()
    category = Category(name="sport")
    user = User(username="racer", email="racer@example.com", password_hash="x", level=1, xp=0)
    db.add_all([category, user])
    db.commit()

    goal_ids = []
    for index in range(WORKERS):
        template = GoalTemplate(category_id=category.id, title=f"Goal {index}", base_xp=10)
        db.add(template)
        db.commit()
        goal = UserGoal(user_id=user.id, template_id=template.id, cadence="daily")
        db.add(goal)
        db.commit()
        goal_ids.append(goal.id)

    user_id = user.id
    db.close()
    return user_id, goal_ids


def run_in_threads(targets):
    """Start all targets together and collect exceptions"""
    errors = []
    barrier = threading.Barrier(len(targets))

    def wrap(target):
        def run():
            barrier.wait()
            try:
                target()
            except Exception as e:
                errors.append(e)
        return run

    threads = [threading.Thread(target=wrap(t)) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return errors


class TestConcurrentCompletions:
    """Completions of different goals racing for the same user"""

    def test_no_xp_is_lost(self, session_factory, player, monday):
        user_id, goal_ids = player

        def complete(goal_id):
            def target():
                db = session_factory()
                try:
                    UserGoalService(db).complete(user_id, goal_id, now=monday)
                finally:
                    db.close()
            return target

        errors = run_in_threads([complete(goal_id) for goal_id in goal_ids])

        assert errors == []
        db = session_factory()
        try:
            user = db.query(User).filter(User.id == user_id).one()
            assert user.xp == WORKERS * 10
            assert user.level == level_and_progress_for_total_xp(WORKERS * 10).level
            assert db.query(UserGoalCompletion).count() == WORKERS
        finally:
            db.close()


class TestConcurrentReorders:
    """Reorders racing for the same user"""

    def test_final_priorities_match_one_ordering(self, session_factory):
        db = session_factory()
        categories = [Category(name=name) for name in ("sport", "freelance", "mindset")]
        user = User(username="sorter", email="sorter@example.com", password_hash="x")
        db.add_all(categories + [user])
        db.commit()
        ids = [c.id for c in categories]
        user_id = user.id
        db.close()

        orderings = [ids, list(reversed(ids)), ids[1:], [ids[2], ids[0]]]

        def reorder(order):
            def target():
                session = session_factory()
                try:
                    PriorityService(session).reorder(user_id, order)
                finally:
                    session.close()
            return target

        errors = run_in_threads([reorder(orderings[i % len(orderings)]) for i in range(WORKERS)])

        assert errors == []
        db = session_factory()
        try:
            rank_map = PriorityService(db).get_rank_map(user_id)
        finally:
            db.close()
        assert rank_map in [apply_manual_order(order) for order in orderings]


class TestLockRegistry:
    """Tests for the per-user lock registry"""

    def test_lock_is_dropped_after_release(self):
        with locks.user_lock(4242):
            assert 4242 in locks._user_locks

        gc.collect()
        assert 4242 not in locks._user_locks

    def test_same_user_shares_one_lock_while_held(self):
        with locks.user_lock(7):
            assert locks._get_lock(7) is locks._user_locks[7]

    def test_blocks_second_holder(self):
        acquired = threading.Event()
        release = threading.Event()

        def holder():
            with locks.user_lock(99):
                acquired.set()
                release.wait(timeout=5)

        thread = threading.Thread(target=holder)
        thread.start()
        acquired.wait(timeout=5)

        lock = locks._get_lock(99)
        assert lock.acquire(blocking=False) is False

        release.set()
        thread.join(timeout=5)
        assert lock.acquire(blocking=False) is True
        lock.release()

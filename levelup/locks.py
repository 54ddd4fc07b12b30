"""
Per-user write serialization.

XP/level updates and priority replacement for one user must not interleave.
Within a process this registry hands out one lock per user id; across
processes the services also take a row lock on the user (SELECT ... FOR UPDATE).
"""
import threading
import weakref
from contextlib import contextmanager

# In-memory registry (one process). Multi-instance deployments rely on the row lock.
# Entries live only while some caller holds a reference to the lock.
_user_locks = weakref.WeakValueDictionary()
_registry_lock = threading.Lock()


def _get_lock(user_id: int) -> threading.Lock:
    with _registry_lock:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _user_locks[user_id] = lock
        return lock


@contextmanager
def user_lock(user_id: int):
    """Hold the write lock for `user_id` for the duration of the block."""
    lock = _get_lock(user_id)
    with lock:
        yield

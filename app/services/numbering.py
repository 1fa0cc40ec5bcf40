# app/services/numbering.py
import threading
from typing import Dict

# Version numbers are assigned under a per-test lock so concurrent batches
# for the same test cannot compute the same "next" number. One entry per
# live test; entries are dropped when the test is deleted.
_numbering_locks: Dict[int, threading.Lock] = {}
_numbering_locks_guard = threading.Lock()


def numbering_lock(test_id: int) -> threading.Lock:
    with _numbering_locks_guard:
        return _numbering_locks.setdefault(test_id, threading.Lock())


def forget_numbering_lock(test_id: int) -> None:
    with _numbering_locks_guard:
        _numbering_locks.pop(test_id, None)


def tracked_test_ids():
    with _numbering_locks_guard:
        return set(_numbering_locks)

"""Per-user mutual exclusion for read-modify-write updates."""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class _UserLock:
    __slots__ = ("lock", "__weakref__")
    
    def __init__(self):
        self.lock = threading.RLock()


class UserLocks:
    """
    One re-entrant lock per user id, created on demand.

    Entries disappear once no thread holds or waits on them. This only
    serializes writers inside one process; services pair it with a row lock
    so separate worker processes are covered by the database.
    """
    
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, _UserLock]" = weakref.WeakValueDictionary()
    
    def _lock_for(self, user_id: str) -> _UserLock:
        with self._guard:
            entry = self._locks.get(user_id)
            if entry is None:
                entry = _UserLock()
                self._locks[user_id] = entry
            return entry
    
    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        entry = self._lock_for(user_id)
        with entry.lock:
            yield
    
    def __len__(self) -> int:
        return len(self._locks)


# Process-wide registry used by the API
user_locks = UserLocks()

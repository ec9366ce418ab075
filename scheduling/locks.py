import threading
from contextlib import contextmanager


class KeyedLocks:
    """One re-entrant lock per queue key, created on first use."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, key: str):
        lock = self._lock_for(key)
        with lock:
            yield

"""In-process locks keyed by arbitrary hashable values."""

import threading
from collections.abc import Hashable


class KeyedLock:
    """Hand out one re-entrant lock per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.RLock] = {}

    def get(self, key: Hashable) -> threading.RLock:
        """Return the lock for a key, creating it on first use."""
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock


__all__ = ["KeyedLock"]

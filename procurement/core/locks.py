from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class KeyedLock:
    """Advisory mutual exclusion per key (one lock per order number)."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str, timeout: float = 10) -> Iterator[bool]:
        lock = self._lock_for(key)
        acquired = lock.acquire(timeout=max(0.0, float(timeout)))
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()


send_locks = KeyedLock()


__all__ = ["KeyedLock", "send_locks"]

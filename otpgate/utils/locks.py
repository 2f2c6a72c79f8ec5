"""
otpgate/utils/locks.py

Purpose: Per-key mutual exclusion

Operations on one phone (or one rate-limit key) must be atomic while
operations on different keys proceed independently. Keys are hashed onto
a fixed set of lock stripes, so memory stays bounded no matter how many
keys pass through.
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class KeyedLock:
    """
    Striped locks keyed by string.

    Usage:
        locks = KeyedLock()
        with locks.hold(phone):
            ...
    """

    def __init__(self, stripes: int = 64):
        if stripes <= 0:
            raise ValueError("stripes must be positive")
        self._locks = [threading.Lock() for _ in range(stripes)]

    def _lock_for(self, key: str) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield

"""Tracks identifiers whose external lookup is currently running."""

from __future__ import annotations

import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class InFlightTracker:
    """Set of keys with an outstanding external lookup.

    ``try_acquire`` checks and marks in one step under a lock, so two
    concurrent first-time lookups for the same key cannot both pass.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()
        self._lock = threading.Lock()

    def try_acquire(self, key: str) -> bool:
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._keys.discard(key)

    @asynccontextmanager
    async def guard(self, key: str) -> AsyncIterator[bool]:
        """Yield whether *key* was acquired; release it on exit if so."""
        acquired = self.try_acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)

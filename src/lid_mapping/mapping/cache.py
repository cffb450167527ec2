"""In-memory expiring cache for resolved mappings."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Iterator

from cachetools import TTLCache

logger = logging.getLogger(__name__)


class MappingCache:
    """Bounded LRU cache with per-entry time-to-live.

    Keys are ``"pn:{user}"`` / ``"lid:{user}"`` and values are the bare user
    of the opposite namespace. Backed by ``cachetools.TTLCache``; every
    operation takes a single lock so coroutines and threads can share it.

    Expired entries are dropped lazily on access. ``start()`` additionally runs
    a sweep every ``ttl_resolution`` seconds until ``close()``.
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        ttl: float = 7 * 24 * 60 * 60,
        ttl_resolution: float = 60.0,
        update_age_on_get: bool = True,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        if ttl <= 0:
            raise ValueError("ttl must be > 0")
        self._data: TTLCache[str, str] = TTLCache(maxsize=max_entries, ttl=ttl, timer=timer)
        self._lock = threading.Lock()
        self._ttl_resolution = ttl_resolution
        self._update_age_on_get = update_age_on_get
        self._sweeper: asyncio.Task[None] | None = None
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> str | None:
        """Return the cached value, counting a hit or a miss."""
        with self._lock:
            value = self._data.get(key)
            if value is None:
                self.misses += 1
                self._data.expire()
                return None
            self.hits += 1
            if self._update_age_on_get:
                # Re-inserting restarts the entry's TTL.
                self._data[key] = value
            return value

    def peek(self, key: str) -> str | None:
        """Return the cached value without touching counters or age."""
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def keys(self) -> Iterator[str]:
        """Iterate over a snapshot of the live keys."""
        with self._lock:
            self._data.expire()
            snapshot = list(self._data.keys())
        return iter(snapshot)

    def expire(self) -> int:
        """Drop every expired entry now. Returns the number removed."""
        with self._lock:
            return len(self._data.expire())

    @property
    def size(self) -> int:
        with self._lock:
            self._data.expire()
            return len(self._data)

    @property
    def max_entries(self) -> int:
        return int(self._data.maxsize)

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        return self.size

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Start the periodic expiry sweep on the running event loop."""
        if self.running or self._ttl_resolution <= 0:
            return
        self._sweeper = asyncio.get_running_loop().create_task(
            self._sweep_loop(), name="lid-mapping-cache-sweep"
        )

    async def close(self) -> None:
        """Stop the expiry sweep, if running."""
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is None:
            return
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._ttl_resolution)
            removed = self.expire()
            if removed:
                logger.debug("Expired %d cached mappings", removed)

"""In-memory KeyValueStore."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from contextvars import ContextVar
from typing import Any

from lid_mapping.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """Dict-backed ``KeyValueStore`` with all-or-nothing transactions.

    Writes made inside ``transaction`` are buffered and applied only after
    ``work`` returns. A transaction started from inside another one (same
    task context) joins the outer one. ``get`` sees the current
    transaction's pending writes.
    """

    def __init__(self, initial: Mapping[str, Mapping[str, str]] | None = None) -> None:
        self._collections: dict[str, dict[str, str]] = {
            name: dict(values) for name, values in (initial or {}).items()
        }
        self._lock = asyncio.Lock()
        self._pending: ContextVar[dict[str, dict[str, str]] | None] = ContextVar(
            f"kv-pending-{id(self)}", default=None
        )
        self.get_calls = 0
        self.commits = 0

    async def get(self, collection: str, keys: Sequence[str]) -> dict[str, str | None]:
        self.get_calls += 1
        committed = self._collections.get(collection, {})
        pending = (self._pending.get() or {}).get(collection, {})
        result: dict[str, str | None] = {}
        for key in keys:
            result[key] = pending[key] if key in pending else committed.get(key)
        return result

    async def set(self, data: Mapping[str, Mapping[str, str]]) -> None:
        pending = self._pending.get()
        if pending is None:
            raise StorageError("set() must be called inside a transaction")
        for collection, values in data.items():
            pending.setdefault(collection, {}).update(values)

    async def transaction(
        self, work: Callable[[], Awaitable[Any]], collection: str
    ) -> Any:
        if self._pending.get() is not None:
            return await work()

        async with self._lock:
            buffer: dict[str, dict[str, str]] = {}
            token = self._pending.set(buffer)
            try:
                result = await work()
            finally:
                self._pending.reset(token)
            for name, values in buffer.items():
                self._collections.setdefault(name, {}).update(values)
            self.commits += 1
            logger.debug(
                "Committed transaction on %s (%d keys)",
                collection,
                sum(len(v) for v in buffer.values()),
            )
            return result

    def snapshot(self, collection: str) -> dict[str, str]:
        """Copy of the committed contents of *collection*."""
        return copy.deepcopy(self._collections.get(collection, {}))

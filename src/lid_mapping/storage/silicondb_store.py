"""KeyValueStore persisted in SiliconDB."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from lid_mapping.core.exceptions import StorageError

logger = logging.getLogger(__name__)

# Prefix for all system-scoped key-value documents.
_PREFIX = "_system/_kv/"

NODE_TYPE_KV = "kv_entry"


def _ext_id(collection: str, key: str) -> str:
    return f"{_PREFIX}{collection}/{key}"


class SiliconDBKeyValueStore:
    """Persist collection entries as SiliconDB documents.

    Each ``(collection, key)`` pair becomes one document under
    ``_system/_kv/{collection}/{key}`` whose metadata carries the value.
    SiliconDB has no multi-document transaction, so a transaction buffers its
    writes, flushes them after ``work`` returns, and restores the previous
    values if the flush fails part-way.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        language: str = "english",
        auto_embedder: bool = False,
        embedder_model: str = "base",
        db: Any = None,
    ) -> None:
        if db is None:
            if db_path is None:
                raise ValueError("db_path is required when no db handle is given")
            try:
                from silicondb import SiliconDB
            except ImportError as e:
                raise ImportError(
                    "SiliconDB is required. Install with: pip install silicondb"
                ) from e

            db = SiliconDB(
                path=str(db_path),
                language=language,
                auto_embedder=auto_embedder,
                embedder_model=embedder_model,
            )
        self._db = db
        self._lock = asyncio.Lock()
        self._pending: ContextVar[dict[str, dict[str, str]] | None] = ContextVar(
            f"silicondb-kv-pending-{id(self)}", default=None
        )

    # ------------------------------------------------------------------
    # Document helpers
    # ------------------------------------------------------------------

    def _read(self, collection: str, key: str) -> str | None:
        doc = self._db.get(_ext_id(collection, key))
        if not doc:
            return None
        value = (doc.get("metadata") or {}).get("value")
        return value if isinstance(value, str) else None

    def _write(self, collection: str, key: str, value: str) -> None:
        ext_id = _ext_id(collection, key)
        metadata = {"collection": collection, "key": key, "value": value}
        try:
            self._db.update(external_id=ext_id, text=value, metadata=metadata)
        except Exception:
            self._db.ingest(
                external_id=ext_id,
                text=value,
                metadata=metadata,
                node_type=NODE_TYPE_KV,
            )

    def _remove(self, collection: str, key: str) -> None:
        try:
            self._db.delete(_ext_id(collection, key))
        except Exception:
            logger.warning("Could not remove %s/%s during rollback", collection, key)

    def _restore(self, collection: str, key: str, value: str) -> None:
        try:
            self._write(collection, key, value)
        except Exception:
            logger.warning("Could not restore %s/%s during rollback", collection, key)

    # ------------------------------------------------------------------
    # KeyValueStore
    # ------------------------------------------------------------------

    async def get(self, collection: str, keys: Sequence[str]) -> dict[str, str | None]:
        pending = (self._pending.get() or {}).get(collection, {})
        result: dict[str, str | None] = {}
        for key in keys:
            if key in pending:
                result[key] = pending[key]
                continue
            try:
                result[key] = self._read(collection, key)
            except Exception as e:
                raise StorageError(f"Failed to read {collection}/{key}: {e}") from e
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
            self._flush(buffer, collection)
            return result

    def _flush(self, buffer: dict[str, dict[str, str]], collection: str) -> None:
        previous: list[tuple[str, str, str | None]] = []
        try:
            for name, values in buffer.items():
                for key, value in values.items():
                    previous.append((name, key, self._read(name, key)))
                    self._write(name, key, value)
        except Exception as e:
            logger.error("Transaction on %s failed, rolling back", collection, exc_info=True)
            for name, key, old in reversed(previous):
                if old is None:
                    self._remove(name, key)
                else:
                    self._restore(name, key, old)
            raise StorageError(f"Transaction on {collection} failed: {e}") from e

    def close(self) -> None:
        """Close the underlying SiliconDB handle."""
        self._db.close()

"""Protocols (interfaces) for LID mapping collaborators."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Transactional, collection-scoped string key-value storage."""

    async def get(self, collection: str, keys: Sequence[str]) -> dict[str, str | None]:
        """Fetch values for *keys*; missing keys map to None."""
        ...

    async def set(self, data: Mapping[str, Mapping[str, str]]) -> None:
        """Write ``{collection: {key: value}}``. Only valid inside a transaction."""
        ...

    async def transaction(
        self, work: Callable[[], Awaitable[Any]], collection: str
    ) -> Any:
        """Run *work* and commit its writes as a unit, or none of them."""
        ...


@dataclass(frozen=True)
class LookupResult:
    """One answer from the external directory lookup."""

    exists: bool
    resolved_id: str | None = None


# Called with the original JID; returns directory answers, or None when the
# directory has nothing to say.
ExternalLookup = Callable[[str], Awaitable["Sequence[LookupResult] | None"]]

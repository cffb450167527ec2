"""Data types for the LID mapping store."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

REVERSE_SUFFIX = "_reverse"


@dataclass(frozen=True)
class MappingPair:
    """A LID and a PN JID that identify the same account.

    Callers may put the two JIDs in either field; validation only requires
    one of each namespace.
    """

    lid: str
    pn: str

    @classmethod
    def coerce(cls, value: MappingPair | Mapping[str, Any]) -> MappingPair:
        """Accept a ``MappingPair`` or a ``{"lid": ..., "pn": ...}`` mapping."""
        if isinstance(value, MappingPair):
            return value
        return cls(lid=value.get("lid"), pn=value.get("pn"))  # type: ignore[arg-type]


@dataclass(frozen=True)
class MappingKey:
    """Key of a persisted mapping record.

    Forward records are keyed by the bare PN user; reverse records by the bare
    LID user plus ``_reverse``. Decoded users never contain ``_`` (it
    separates the agent), so the two kinds cannot collide.
    """

    user: str
    reverse: bool = False

    @classmethod
    def forward(cls, pn_user: str) -> MappingKey:
        return cls(pn_user, reverse=False)

    @classmethod
    def backward(cls, lid_user: str) -> MappingKey:
        return cls(lid_user, reverse=True)

    def encode(self) -> str:
        return f"{self.user}{REVERSE_SUFFIX}" if self.reverse else self.user


@dataclass
class StoreResult:
    """Outcome of ``store_mappings``."""

    stored: int
    batch_id: str


@dataclass
class CacheStats:
    """Cache counters, for observability only."""

    size: int
    hits: int
    misses: int
    hit_ratio: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "hits": self.hits,
            "misses": self.misses,
            "hit_ratio": round(self.hit_ratio, 4),
        }

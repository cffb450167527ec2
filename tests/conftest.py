"""Pytest fixtures for lid-mapping tests.

Provides fixtures for:
- A controllable monotonic timer for TTL testing
- In-memory key-value store with access counters
- A scripted external directory lookup
- LIDMappingStore instances wired to the above
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest

from lid_mapping.config import MappingConfig
from lid_mapping.core.protocols import LookupResult
from lid_mapping.mapping.cache import MappingCache
from lid_mapping.mapping.resolver import LIDMappingStore
from lid_mapping.storage.memory import InMemoryKeyValueStore


class FakeTimer:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDirectory:
    """Scripted directory lookup with call tracking.

    ``answers`` maps a queried JID to the JID it resolves to. JIDs listed in
    ``failures`` raise, and every call waits ``latency`` seconds first.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self.answers: dict[str, str] = {}
        self.failures: set[str] = set()
        self.latency = latency
        self.calls: list[str] = []

    async def __call__(self, jid: str) -> Sequence[LookupResult] | None:
        self.calls.append(jid)
        if self.latency:
            await asyncio.sleep(self.latency)
        if jid in self.failures:
            raise RuntimeError(f"directory unavailable for {jid}")
        resolved = self.answers.get(jid)
        if resolved is None:
            return [LookupResult(exists=False)]
        return [LookupResult(exists=True, resolved_id=resolved)]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fake_timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def config() -> MappingConfig:
    return MappingConfig(inflight_wait_seconds=0.1, external_timeout_seconds=1.0)


@pytest.fixture
def mapping_store(
    kv_store: InMemoryKeyValueStore,
    directory: FakeDirectory,
    config: MappingConfig,
    fake_timer: FakeTimer,
) -> LIDMappingStore:
    cache = MappingCache(
        max_entries=config.cache_max_entries,
        ttl=config.cache_ttl_seconds,
        ttl_resolution=config.cache_ttl_resolution_seconds,
        timer=fake_timer,
    )
    return LIDMappingStore(kv_store, lookup=directory, config=config, cache=cache)

"""Tests for MappingCache — TTL, LRU eviction and counters."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from lid_mapping.mapping.cache import MappingCache


@pytest.fixture
def cache(fake_timer):
    return MappingCache(max_entries=3, ttl=60, ttl_resolution=0.01, timer=fake_timer)


class TestBasics:
    def test_get_unknown_returns_none(self, cache):
        assert cache.get("pn:1") is None

    def test_set_and_get(self, cache):
        cache.set("pn:1", "100")
        assert cache.get("pn:1") == "100"

    def test_delete(self, cache):
        cache.set("pn:1", "100")
        assert cache.delete("pn:1") is True
        assert cache.delete("pn:1") is False
        assert cache.get("pn:1") is None

    def test_clear(self, cache):
        cache.set("pn:1", "100")
        cache.set("lid:100", "1")
        cache.clear()
        assert cache.size == 0

    def test_keys_is_a_snapshot(self, cache):
        cache.set("pn:1", "100")
        cache.set("lid:100", "1")
        keys = cache.keys()
        cache.delete("pn:1")
        assert sorted(keys) == ["lid:100", "pn:1"]

    def test_rejects_bad_bounds(self):
        with pytest.raises(ValueError):
            MappingCache(max_entries=0)
        with pytest.raises(ValueError):
            MappingCache(ttl=0)


class TestExpiry:
    def test_entry_expires_after_ttl(self, cache, fake_timer):
        cache.set("pn:1", "100")
        fake_timer.advance(61)
        assert cache.get("pn:1") is None
        assert cache.size == 0

    def test_read_refreshes_age(self, cache, fake_timer):
        cache.set("pn:1", "100")
        fake_timer.advance(40)
        assert cache.get("pn:1") == "100"
        fake_timer.advance(40)
        assert cache.get("pn:1") == "100"

    def test_peek_does_not_refresh_age(self, cache, fake_timer):
        cache.set("pn:1", "100")
        fake_timer.advance(40)
        assert cache.peek("pn:1") == "100"
        fake_timer.advance(40)
        assert cache.peek("pn:1") is None

    def test_no_refresh_when_disabled(self, fake_timer):
        cache = MappingCache(max_entries=3, ttl=60, update_age_on_get=False, timer=fake_timer)
        cache.set("pn:1", "100")
        fake_timer.advance(40)
        assert cache.get("pn:1") == "100"
        fake_timer.advance(40)
        assert cache.get("pn:1") is None

    def test_expired_keys_are_not_listed(self, cache, fake_timer):
        cache.set("pn:1", "100")
        fake_timer.advance(30)
        cache.set("pn:2", "200")
        fake_timer.advance(31)
        assert list(cache.keys()) == ["pn:2"]

    def test_expire_reports_removed_count(self, cache, fake_timer):
        cache.set("pn:1", "100")
        cache.set("pn:2", "200")
        fake_timer.advance(61)
        assert cache.expire() == 2


class TestEviction:
    def test_least_recently_used_is_evicted(self, cache):
        cache.set("a", "1")
        cache.set("b", "2")
        cache.set("c", "3")
        cache.get("a")
        cache.set("d", "4")
        assert cache.peek("b") is None
        assert cache.peek("a") == "1"
        assert cache.size == 3

    def test_max_entries(self, cache):
        assert cache.max_entries == 3


class TestCounters:
    def test_hits_and_misses(self, cache):
        cache.set("pn:1", "100")
        cache.get("pn:1")
        cache.get("pn:1")
        cache.get("pn:2")
        assert cache.hits == 2
        assert cache.misses == 1
        assert cache.hit_ratio == pytest.approx(2 / 3)

    def test_hit_ratio_empty(self, cache):
        assert cache.hit_ratio == 0.0

    def test_peek_does_not_count(self, cache):
        cache.peek("pn:1")
        assert cache.misses == 0


class TestThreadSafety:
    def test_concurrent_get_set_delete(self, fake_timer):
        cache = MappingCache(max_entries=50, ttl=60, timer=fake_timer)
        rounds = 2000

        def worker(n: int) -> None:
            for i in range(rounds):
                key = f"pn:{(n * 7 + i) % 80}"
                cache.set(key, str(i))
                cache.get(key)
                if i % 3 == 0:
                    cache.delete(key)

        with ThreadPoolExecutor(max_workers=8) as pool:
            for future in [pool.submit(worker, n) for n in range(8)]:
                future.result()

        assert cache.size <= 50
        assert cache.hits + cache.misses == 8 * rounds


class TestSweep:
    @pytest.mark.asyncio
    async def test_start_and_close(self, cache, fake_timer):
        cache.set("pn:1", "100")
        cache.start()
        assert cache.running
        fake_timer.advance(61)
        await asyncio.sleep(0.05)
        # Nothing left for a manual pass: the sweep already removed it.
        assert cache.expire() == 0
        assert cache.peek("pn:1") is None
        await cache.close()
        assert not cache.running

    @pytest.mark.asyncio
    async def test_close_without_start(self, cache):
        await cache.close()
        assert not cache.running

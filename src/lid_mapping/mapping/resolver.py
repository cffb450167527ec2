"""LIDMappingStore — bidirectional LID <-> PN resolution.

Lookups go cache -> persistent store -> external directory lookup. Anything
learned from the directory is written back through ``store_mappings``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import Any
from uuid import uuid4

from lid_mapping.config import MappingConfig
from lid_mapping.core.exceptions import (
    ExternalLookupError,
    StoreTransactionError,
    ValidationError,
)
from lid_mapping.core.protocols import ExternalLookup, KeyValueStore
from lid_mapping.jid import Namespace, jid_decode, jid_encode, namespace_of
from lid_mapping.mapping.cache import MappingCache
from lid_mapping.mapping.inflight import InFlightTracker
from lid_mapping.mapping.types import CacheStats, MappingKey, MappingPair, StoreResult

logger = logging.getLogger(__name__)

PairInput = MappingPair | Mapping[str, Any]


def _cache_key(namespace: Namespace, user: str) -> str:
    return f"{namespace.cache_prefix}{user}"


def _record_key(namespace: Namespace, user: str) -> str:
    """Persistent key of the record whose source user is in *namespace*."""
    if namespace is Namespace.PN:
        return MappingKey.forward(user).encode()
    return MappingKey.backward(user).encode()


def parse_pair(pair: PairInput) -> tuple[str, str]:
    """Validate a pair and return its bare ``(lid_user, pn_user)``.

    Either field may hold either namespace as long as there is one of each.

    Raises:
        ValidationError: When the namespaces are wrong or a side won't decode.
    """
    try:
        candidate = MappingPair.coerce(pair)
    except AttributeError as e:
        raise ValidationError(f"Not a mapping pair: {pair!r}") from e

    first, second = candidate.lid, candidate.pn
    ns_first, ns_second = namespace_of(first), namespace_of(second)
    if ns_first is None or ns_second is None or ns_first is ns_second:
        raise ValidationError(f"Invalid LID-PN mapping: {first}, {second}")

    lid_jid, pn_jid = (first, second) if ns_first is Namespace.LID else (second, first)
    lid_decoded = jid_decode(lid_jid)
    pn_decoded = jid_decode(pn_jid)
    if lid_decoded is None:
        raise ValidationError("Undecodable LID", jid=lid_jid)
    if pn_decoded is None:
        raise ValidationError("Undecodable PN", jid=pn_jid)
    return lid_decoded.user, pn_decoded.user


class LIDMappingStore:
    """Keeps PN and LID identities of the same account mapped to each other.

    The cache is created here and lives as long as the store; call
    ``start()`` to run its periodic expiry and ``close()`` to stop it.
    ``lookup`` is the optional directory query used when nothing local is
    known.
    """

    def __init__(
        self,
        keys: KeyValueStore,
        lookup: ExternalLookup | None = None,
        config: MappingConfig | None = None,
        cache: MappingCache | None = None,
    ) -> None:
        self.config = config or MappingConfig()
        self.keys = keys
        self._lookup = lookup
        self.cache = cache or MappingCache(
            max_entries=self.config.cache_max_entries,
            ttl=self.config.cache_ttl_seconds,
            ttl_resolution=self.config.cache_ttl_resolution_seconds,
            update_age_on_get=self.config.cache_update_age_on_get,
        )
        self.inflight = InFlightTracker()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self.cache.start()

    async def close(self) -> None:
        await self.cache.close()

    async def __aenter__(self) -> LIDMappingStore:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Batch store
    # ------------------------------------------------------------------

    async def store_mappings(
        self,
        pairs: Iterable[PairInput],
        *,
        force_update: bool = False,
        skip_cache: bool = False,
        batch_id: str | None = None,
    ) -> StoreResult:
        """Validate and persist LID-PN pairs in one transaction.

        Invalid pairs are logged and skipped. Unless *force_update*, pairs
        that are already mapped identically are skipped too.

        Raises:
            StoreTransactionError: If reading existing mappings or the commit
                fails. The cache is left untouched in that case.
        """
        batch_id = batch_id or uuid4().hex
        pairs = list(pairs)
        batch: list[tuple[str, str]] = []
        records: dict[str, str] = {}
        seen: set[tuple[str, str]] = set()

        for pair in pairs:
            try:
                lid_user, pn_user = parse_pair(pair)
            except ValidationError as e:
                logger.warning("Skipping mapping: %s", e)
                continue

            if (lid_user, pn_user) in seen:
                continue
            try:
                exists = not force_update and await self._mapping_exists(pn_user, lid_user)
            except Exception as e:
                logger.error("Failed to check existing mapping for %s (batch %s)", pn_user, batch_id, exc_info=True)
                raise StoreTransactionError(batch_id, f"Failed to read existing mapping for {pn_user}: {e}") from e
            if exists:
                logger.debug("Mapping %s -> %s already exists, skipping", pn_user, lid_user)
                continue

            seen.add((lid_user, pn_user))
            batch.append((lid_user, pn_user))
            records[MappingKey.forward(pn_user).encode()] = lid_user
            records[MappingKey.backward(lid_user).encode()] = pn_user

        if not batch:
            logger.debug("No valid mappings to store (batch %s)", batch_id)
            return StoreResult(stored=0, batch_id=batch_id)

        logger.debug(
            "Processing mapping batch %s: %d valid of %d",
            batch_id, len(batch), len(pairs),
        )

        collection = self.config.collection

        async def work() -> None:
            await self.keys.set({collection: records})

        try:
            await self.keys.transaction(work, collection)
        except Exception as e:
            logger.error("Failed to store mapping batch %s", batch_id, exc_info=True)
            raise StoreTransactionError(batch_id, f"Failed to store mapping batch {batch_id}: {e}") from e

        if not skip_cache:
            for lid_user, pn_user in batch:
                self.cache.set(_cache_key(Namespace.PN, pn_user), lid_user)
                self.cache.set(_cache_key(Namespace.LID, lid_user), pn_user)

        logger.debug("Stored %d mappings (batch %s)", len(batch), batch_id)
        return StoreResult(stored=len(batch), batch_id=batch_id)

    async def _mapping_exists(self, pn_user: str, lid_user: str) -> bool:
        """True if *pn_user* is already mapped to *lid_user* (cache, then store)."""
        cached = self.cache.peek(_cache_key(Namespace.PN, pn_user))
        if cached is not None:
            return cached == lid_user
        key = MappingKey.forward(pn_user).encode()
        stored = await self.keys.get(self.config.collection, [key])
        return stored.get(key) == lid_user

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def get_lid_for_pn(
        self,
        pn: str,
        *,
        skip_external: bool = False,
        device_aware: bool = True,
        use_cache: bool = True,
    ) -> str | None:
        """Resolve a PN JID to the device-specific LID JID, or None."""
        return await self.resolve(
            pn, Namespace.LID,
            skip_external=skip_external, device_aware=device_aware, use_cache=use_cache,
        )

    async def get_pn_for_lid(
        self,
        lid: str,
        *,
        skip_external: bool = False,
        device_aware: bool = True,
        use_cache: bool = True,
    ) -> str | None:
        """Resolve a LID JID to the device-specific PN JID, or None."""
        return await self.resolve(
            lid, Namespace.PN,
            skip_external=skip_external, device_aware=device_aware, use_cache=use_cache,
        )

    async def resolve(
        self,
        jid: str,
        target: Namespace,
        *,
        skip_external: bool = False,
        device_aware: bool = True,
        use_cache: bool = True,
    ) -> str | None:
        """Translate *jid* into the *target* namespace.

        The result carries the device of *jid* (or 0), never one learned from
        the directory.
        """
        source = target.opposite
        if not source.contains(jid):
            logger.warning("Invalid %s JID format: %s", source.name, jid)
            return None

        decoded = jid_decode(jid)
        if decoded is None:
            logger.warning("Undecodable %s JID: %s", source.name, jid)
            return None

        user = decoded.user
        device = (decoded.device or 0) if device_aware else 0
        cache_key = _cache_key(source, user)

        resolved = self.cache.get(cache_key) if use_cache else None
        origin = "cache"

        if not resolved:
            resolved = await self._get_from_store(_record_key(source, user))
            origin = "store"
            if resolved and use_cache:
                self.cache.set(cache_key, resolved)

        if not resolved and not skip_external:
            resolved = await self._resolve_external(jid, source, user)
            origin = "external"

        if not resolved:
            logger.debug("No %s mapping found for %s", target.name, jid)
            return None

        result = jid_encode(resolved, target.server, device)
        logger.debug("Resolved %s -> %s (%s)", jid, result, origin)
        return result

    async def _get_from_store(self, key: str) -> str | None:
        try:
            stored = await self.keys.get(self.config.collection, [key])
        except Exception:
            logger.error("Failed to read mapping %s from store", key, exc_info=True)
            return None
        value = stored.get(key)
        return value if isinstance(value, str) and value else None

    async def _resolve_external(self, jid: str, source: Namespace, user: str) -> str | None:
        """Ask the directory about *jid*, at most once concurrently per user."""
        lookup = self._lookup
        if lookup is None:
            return None

        cache_key = _cache_key(source, user)
        async with self.inflight.guard(cache_key) as acquired:
            if not acquired:
                logger.debug("External lookup for %s already in progress", cache_key)
                await asyncio.sleep(self.config.inflight_wait_seconds)
                return self.cache.peek(cache_key)

            try:
                return await self._fetch_and_store(lookup, jid, source)
            except ExternalLookupError:
                logger.error("External lookup failed for %s", jid, exc_info=True)
                return None
            except Exception:
                logger.error("Could not persist mapping learned for %s", jid, exc_info=True)
                return None

    async def _fetch_and_store(
        self, lookup: ExternalLookup, jid: str, source: Namespace
    ) -> str | None:
        logger.debug("Fetching %s mapping for %s from directory", source.opposite.name, jid)
        try:
            call = lookup(jid)
            timeout = self.config.external_timeout_seconds
            results = await (asyncio.wait_for(call, timeout) if timeout is not None else call)
        except asyncio.TimeoutError as e:
            raise ExternalLookupError(jid, f"External lookup timed out for {jid}") from e
        except Exception as e:
            raise ExternalLookupError(jid, f"External lookup failed for {jid}: {e}") from e

        result = results[0] if results else None
        if result is None or not result.exists or not result.resolved_id:
            return None

        candidate = result.resolved_id
        if not source.opposite.contains(candidate):
            logger.warning("Directory returned %s for %s, expected a %s JID", candidate, jid, source.opposite.name)
            return None
        decoded = jid_decode(candidate)
        if decoded is None:
            return None

        pair = MappingPair(lid=candidate, pn=jid) if source is Namespace.PN else MappingPair(lid=jid, pn=candidate)
        await self.store_mappings([pair], skip_cache=False)
        return decoded.user

    # ------------------------------------------------------------------
    # Bulk resolution
    # ------------------------------------------------------------------

    async def resolve_many(
        self,
        jids: Iterable[str],
        target: Namespace,
        **options: bool,
    ) -> dict[str, str | None]:
        """Resolve every distinct JID concurrently. Failures map to None."""
        distinct = list(dict.fromkeys(jids))
        outcomes = await asyncio.gather(
            *(self.resolve(jid, target, **options) for jid in distinct),
            return_exceptions=True,
        )
        results: dict[str, str | None] = {}
        for jid, outcome in zip(distinct, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Bulk resolution failed for %s", jid, exc_info=outcome)
                results[jid] = None
            else:
                results[jid] = outcome
        return results

    async def bulk_resolve_pns(self, pns: Iterable[str], **options: bool) -> dict[str, str | None]:
        return await self.resolve_many(pns, Namespace.LID, **options)

    async def bulk_resolve_lids(self, lids: Iterable[str], **options: bool) -> dict[str, str | None]:
        return await self.resolve_many(lids, Namespace.PN, **options)

    # ------------------------------------------------------------------
    # Cache administration
    # ------------------------------------------------------------------

    def preload_mappings(self, mappings: Iterable[PairInput]) -> int:
        """Seed the cache with known pairs, bypassing the store."""
        loaded = 0
        for pair in mappings:
            try:
                lid_user, pn_user = parse_pair(pair)
            except ValidationError as e:
                logger.debug("Not preloading: %s", e)
                continue
            self.cache.set(_cache_key(Namespace.PN, pn_user), lid_user)
            self.cache.set(_cache_key(Namespace.LID, lid_user), pn_user)
            loaded += 1
        logger.debug("Preloaded %d mappings into cache", loaded)
        return loaded

    def clear_cache(self, pattern: str | None = None) -> int:
        """Clear the whole cache, or only keys containing *pattern*."""
        if not pattern:
            cleared = self.cache.size
            self.cache.clear()
            logger.debug("Cleared entire mapping cache")
            return cleared

        cleared = 0
        for key in self.cache.keys():
            if pattern in key and self.cache.delete(key):
                cleared += 1
        logger.debug("Cleared %d cache entries matching %r", cleared, pattern)
        return cleared

    def get_cache_stats(self) -> CacheStats:
        return CacheStats(
            size=self.cache.size,
            hits=self.cache.hits,
            misses=self.cache.misses,
            hit_ratio=self.cache.hit_ratio,
        )

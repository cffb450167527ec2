"""LID Mapping - bidirectional PN <-> LID identity resolution.

Keeps the phone-number (PN) and linked-identity (LID) JIDs of the same
account mapped to each other:
- In-memory LRU cache with TTL in front of a transactional key-value store
- Batch storage with validation and idempotent skips
- Directory lookup fallback with per-identifier de-duplication
- Concurrent bulk resolution

Example:
    >>> from lid_mapping import LIDMappingStore, InMemoryKeyValueStore, MappingPair
    >>>
    >>> async with LIDMappingStore(InMemoryKeyValueStore()) as store:
    ...     await store.store_mappings([
    ...         MappingPair(lid="123456@lid", pn="15551234567@s.whatsapp.net"),
    ...     ])
    ...     await store.get_lid_for_pn("15551234567:3@s.whatsapp.net")
    '123456:3@lid'
"""

from lid_mapping.config import MappingConfig
from lid_mapping.core.exceptions import (
    ExternalLookupError,
    MappingError,
    StorageError,
    StoreTransactionError,
    ValidationError,
)
from lid_mapping.core.protocols import ExternalLookup, KeyValueStore, LookupResult
from lid_mapping.jid import Namespace
from lid_mapping.mapping import (
    CacheStats,
    InFlightTracker,
    LIDMappingStore,
    MappingCache,
    MappingKey,
    MappingPair,
    StoreResult,
)
from lid_mapping.storage import InMemoryKeyValueStore, SiliconDBKeyValueStore

__version__ = "0.1.0"

__all__ = [
    "CacheStats",
    "ExternalLookup",
    "ExternalLookupError",
    "InFlightTracker",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "LIDMappingStore",
    "LookupResult",
    "MappingCache",
    "MappingConfig",
    "MappingError",
    "MappingKey",
    "MappingPair",
    "Namespace",
    "SiliconDBKeyValueStore",
    "StorageError",
    "StoreResult",
    "StoreTransactionError",
    "ValidationError",
]

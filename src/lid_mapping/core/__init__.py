"""Core exceptions and protocols."""

from lid_mapping.core.exceptions import (
    ExternalLookupError,
    MappingError,
    StorageError,
    StoreTransactionError,
    ValidationError,
)
from lid_mapping.core.protocols import ExternalLookup, KeyValueStore, LookupResult

__all__ = [
    "ExternalLookup",
    "ExternalLookupError",
    "KeyValueStore",
    "LookupResult",
    "MappingError",
    "StorageError",
    "StoreTransactionError",
    "ValidationError",
]

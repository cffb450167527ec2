"""LID <-> PN mapping — cache, in-flight tracking and resolution."""

from lid_mapping.mapping.cache import MappingCache
from lid_mapping.mapping.inflight import InFlightTracker
from lid_mapping.mapping.resolver import LIDMappingStore, parse_pair
from lid_mapping.mapping.types import CacheStats, MappingKey, MappingPair, StoreResult

__all__ = [
    "CacheStats",
    "InFlightTracker",
    "LIDMappingStore",
    "MappingCache",
    "MappingKey",
    "MappingPair",
    "StoreResult",
    "parse_pair",
]

"""Persistent key-value store implementations."""

from lid_mapping.storage.memory import InMemoryKeyValueStore
from lid_mapping.storage.silicondb_store import SiliconDBKeyValueStore

__all__ = ["InMemoryKeyValueStore", "SiliconDBKeyValueStore"]

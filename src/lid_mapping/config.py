"""Configuration for the LID mapping store."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields

DEFAULT_COLLECTION = "lid-mapping"


@dataclass
class MappingConfig:
    """Tuning knobs for :class:`~lid_mapping.mapping.resolver.LIDMappingStore`.

    Defaults keep up to 10k mappings in memory for a week, checked once a minute.
    """

    collection: str = DEFAULT_COLLECTION

    # Cache
    cache_max_entries: int = 10_000
    cache_ttl_seconds: float = 7 * 24 * 60 * 60
    cache_ttl_resolution_seconds: float = 60.0
    cache_update_age_on_get: bool = True

    # External lookup
    inflight_wait_seconds: float = 0.1
    external_timeout_seconds: float | None = 30.0

    @classmethod
    def from_env(cls, prefix: str = "LID_MAPPING_") -> MappingConfig:
        """Build a config from ``{prefix}{FIELD_NAME}`` environment variables.

        Unset variables keep their defaults. ``external_timeout_seconds`` accepts
        ``none`` to disable the timeout.
        """
        config = cls()
        for f in fields(cls):
            raw = os.environ.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            current = getattr(config, f.name)
            if f.name == "external_timeout_seconds":
                value: object = None if raw.strip().lower() in ("", "none") else float(raw)
            elif isinstance(current, bool):
                value = raw.strip().lower() in ("1", "true", "yes", "on")
            elif isinstance(current, int):
                value = int(raw)
            elif isinstance(current, float):
                value = float(raw)
            else:
                value = raw
            setattr(config, f.name, value)
        return config

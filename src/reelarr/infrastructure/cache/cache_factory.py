"""Create the configured cache adapter."""

from __future__ import annotations

from typing import Literal

import structlog

from reelarr.domain.ports.cache import CachePort
from reelarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from reelarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["diskcache", "memory"]


def create_cache(
    backend: CacheBackend = "diskcache",
    *,
    directory: str = "./.cache/reelarr",
    ttl_seconds: int = 3600,
    max_concurrent: int = 10,
) -> CachePort:
    """Return a ``CachePort`` for *backend*.

    Raises:
        ValueError: If *backend* is unknown.
    """
    log.info("cache_factory_create", backend=backend, ttl=ttl_seconds)
    if backend == "diskcache":
        return DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    if backend == "memory":
        return MemoryCacheAdapter(ttl_seconds=ttl_seconds)
    raise ValueError(
        f"Unknown cache backend: {backend!r}. Must be 'diskcache' or 'memory'."
    )

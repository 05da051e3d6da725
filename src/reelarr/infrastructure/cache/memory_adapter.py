"""Process-local cache adapter with per-entry expiry."""

from __future__ import annotations

import time
from typing import Any

_EVICT_INTERVAL = 500


class _CacheEntry:
    """Time-bounded cache entry."""

    __slots__ = ("value", "expires_at")

    def __init__(self, value: Any, ttl: int) -> None:
        self.value = value
        self.expires_at = time.monotonic() + ttl

    @property
    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class MemoryCacheAdapter:
    """Dict-backed ``CachePort``; contents are lost on restart."""

    def __init__(self, ttl_seconds: int = 3600, max_entries: int = 10_000) -> None:
        self.default_ttl = ttl_seconds
        self._max_entries = max_entries
        self._entries: dict[str, _CacheEntry] = {}
        self._writes = 0

    async def __aenter__(self) -> MemoryCacheAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._entries.clear()

    async def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired:
            del self._entries[key]
            return None
        return entry.value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        self._entries[key] = _CacheEntry(value, ttl if ttl is not None else self.default_ttl)
        self._writes += 1
        if self._writes % _EVICT_INTERVAL == 0:
            self._evict_expired()
        if len(self._entries) > self._max_entries:
            # dicts keep insertion order; drop the oldest
            excess = len(self._entries) - self._max_entries
            for k in list(self._entries)[:excess]:
                del self._entries[k]

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def clear(self) -> None:
        self._entries.clear()

    def _evict_expired(self) -> None:
        expired = [k for k, v in self._entries.items() if v.is_expired]
        for k in expired:
            del self._entries[k]

"""Base-URL resolver backed by a remote ``{id: {name, url}}`` document.

Mirror sites of scraper providers rotate domains frequently, so their
base URLs are kept in one JSON document that can be updated without a
release.  The whole document is cached in memory for a fixed TTL and
replaced atomically on refresh.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from reelarr.infrastructure.common.headers import get_headers

log = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 3600.0


class ProviderUrlEntry(BaseModel):
    """One entry of the URL document."""

    name: str = ""
    url: str


@dataclass(frozen=True)
class _UrlSnapshot:
    entries: Mapping[str, ProviderUrlEntry]
    fetched_at: float


class DocumentFetchError(Exception):
    """The URL document could not be loaded or was not a JSON object."""


class BaseUrlResolver:
    """Resolves provider keys to base URLs with a whole-map TTL cache.

    Fetch problems never propagate: a failed refresh keeps the previous
    snapshot under a fresh timestamp, and a failure before any successful
    fetch stores an empty one.  Concurrent cache misses are coalesced into
    a single fetch.

    Args:
        source: ``http(s)://`` URL or local path of the JSON document.
        http_client: Shared client used for remote documents.
        ttl_seconds: Snapshot lifetime.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        source: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._http = http_client
        self._ttl = ttl_seconds
        self._clock = clock
        self._snapshot: _UrlSnapshot | None = None
        self._refresh_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def resolve(self, provider_id: str) -> str:
        """Return the base URL for *provider_id*, or ``""`` if unknown."""
        snapshot = await self._current()
        entry = snapshot.entries.get(provider_id)
        if entry is None:
            log.warning("base_url_not_found", provider=provider_id)
            return ""
        return entry.url

    async def resolve_all(self) -> dict[str, str]:
        """Return a copy of the full ``{id: url}`` mapping."""
        snapshot = await self._current()
        return {key: entry.url for key, entry in snapshot.entries.items()}

    def invalidate(self) -> None:
        """Drop the snapshot; the next lookup fetches again."""
        self._snapshot = None
        log.debug("base_url_cache_invalidated")

    async def prefetch(self) -> int:
        """Warm the cache; returns the number of known providers."""
        snapshot = await self._current()
        log.info("base_urls_prefetched", count=len(snapshot.entries))
        return len(snapshot.entries)

    # ------------------------------------------------------------------
    # Snapshot management
    # ------------------------------------------------------------------

    def _is_fresh(self, snapshot: _UrlSnapshot | None) -> bool:
        return snapshot is not None and (self._clock() - snapshot.fetched_at) < self._ttl

    async def _current(self) -> _UrlSnapshot:
        snapshot = self._snapshot
        if snapshot is not None and self._is_fresh(snapshot):
            return snapshot

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited
            snapshot = self._snapshot
            if snapshot is not None and self._is_fresh(snapshot):
                return snapshot
            return await self._refresh()

    async def _refresh(self) -> _UrlSnapshot:
        try:
            document = await self._load_document()
        except DocumentFetchError as exc:
            if self._snapshot is not None:
                log.warning(
                    "base_url_refresh_failed_keeping_stale",
                    source=self._source,
                    error=str(exc),
                )
                # Re-stamp so a dead source is retried once per TTL, not per call.
                self._snapshot = _UrlSnapshot(
                    entries=self._snapshot.entries, fetched_at=self._clock()
                )
                return self._snapshot
            log.warning(
                "base_url_initial_fetch_failed",
                source=self._source,
                error=str(exc),
            )
            self._snapshot = _UrlSnapshot(entries={}, fetched_at=self._clock())
            return self._snapshot

        self._snapshot = _UrlSnapshot(
            entries=_parse_entries(document), fetched_at=self._clock()
        )
        log.info(
            "base_urls_refreshed",
            source=self._source,
            count=len(self._snapshot.entries),
        )
        return self._snapshot

    async def _load_document(self) -> dict[str, Any]:
        if self._source.startswith(("http://", "https://")):
            raw = await self._fetch_remote()
        else:
            try:
                raw = await asyncio.to_thread(
                    Path(self._source).expanduser().read_text, encoding="utf-8"
                )
            except OSError as exc:
                raise DocumentFetchError(f"unreadable file: {exc}") from exc

        try:
            document = json.loads(raw)
        except ValueError as exc:
            raise DocumentFetchError("invalid json") from exc
        if not isinstance(document, dict):
            raise DocumentFetchError(
                f"document must be an object, got {type(document).__name__}"
            )
        return document

    async def _fetch_remote(self) -> str:
        if self._http is None:
            raise DocumentFetchError("no http client configured")
        try:
            resp = await self._http.get(self._source, headers=get_headers("json"))
        except httpx.TimeoutException as exc:
            raise DocumentFetchError("timeout") from exc
        except httpx.HTTPError as exc:
            raise DocumentFetchError(f"{type(exc).__name__}: {exc}") from exc
        if resp.status_code >= 400:
            raise DocumentFetchError(f"http {resp.status_code}")
        return resp.text


def _parse_entries(document: Mapping[str, Any]) -> dict[str, ProviderUrlEntry]:
    entries: dict[str, ProviderUrlEntry] = {}
    for key, raw in document.items():
        try:
            entry = ProviderUrlEntry.model_validate(raw)
        except ValidationError:
            log.warning("base_url_entry_invalid", provider=key)
            continue
        if not entry.url:
            log.warning("base_url_entry_empty", provider=key)
            continue
        entries[key] = ProviderUrlEntry(name=entry.name, url=entry.url.rstrip("/"))
    return entries

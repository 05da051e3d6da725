"""Registry that dispatches landing URLs to per-host extractors."""

from __future__ import annotations

import asyncio
import time
from urllib.parse import urlparse

import structlog

from reelarr.domain.entities.media import Stream
from reelarr.domain.ports.extractor import ExtractorPort
from reelarr.domain.providers.exceptions import OperationCancelledError

log = structlog.get_logger(__name__)

_CACHE_TTL_HIT = 3600  # 1 hour when streams were found
_CACHE_TTL_MISS = 900  # 15 minutes for empty results

_EVICT_INTERVAL = 1000
_MAX_CACHE_SIZE = 10_000


def extract_domain(url: str) -> str:
    """Second-level label of the URL's host (``"hubcloud"`` for
    ``https://www.hubcloud.ink/drive/x``); ``""`` when unparseable.
    """
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return ""
    parts = hostname.split(".")
    return parts[-2] if len(parts) >= 2 else ""


class _CacheEntry:
    """Time-bounded cache entry for extraction results."""

    __slots__ = ("value", "expires_at")

    def __init__(self, value: list[Stream], ttl: int) -> None:
        self.value = value
        self.expires_at = time.monotonic() + ttl

    @property
    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class ExtractorRegistry:
    """Routes a URL to the extractor registered for its host.

    Hosts without a dedicated extractor go to the *fallback* (the generic
    page scraper).  Results are cached in memory per URL.
    """

    def __init__(
        self,
        extractors: list[ExtractorPort] | None = None,
        *,
        fallback: ExtractorPort | None = None,
        timeout: float = 20.0,
    ) -> None:
        self._extractors: dict[str, ExtractorPort] = {}
        self._domain_map: dict[str, ExtractorPort] = {}
        self._fallback = fallback
        self._timeout = timeout
        self._cache: dict[str, _CacheEntry] = {}
        self._calls = 0
        for extractor in extractors or []:
            self.register(extractor)

    def register(self, extractor: ExtractorPort) -> None:
        """Register *extractor* under its name and ``supported_domains``."""
        self._extractors[extractor.name] = extractor
        domains: frozenset[str] | None = getattr(extractor, "supported_domains", None)
        for domain in domains or ():
            self._domain_map[domain] = extractor
        log.debug("extractor_registered", extractor=extractor.name)

    @property
    def names(self) -> list[str]:
        return list(self._extractors)

    def get(self, name: str) -> ExtractorPort | None:
        return self._extractors.get(name)

    def has_dedicated(self, url: str) -> bool:
        """True when a host-specific extractor (not the fallback) handles *url*."""
        domain = extract_domain(url)
        return domain in self._extractors or domain in self._domain_map

    def find(self, url: str, hint: str = "") -> ExtractorPort | None:
        """Extractor for *url*: host match first, then *hint*, then fallback."""
        domain = extract_domain(url)
        extractor = self._extractors.get(domain) or self._domain_map.get(domain)
        if extractor is None and hint:
            extractor = self._extractors.get(hint) or self._domain_map.get(hint)
        return extractor or self._fallback

    async def extract(
        self,
        url: str,
        *,
        hint: str = "",
        cancel: asyncio.Event | None = None,
    ) -> list[Stream]:
        """Resolve *url* to streams; never raises for upstream failures."""
        self._calls += 1
        if self._calls % _EVICT_INTERVAL == 0:
            self._evict_expired()

        cached = self._cache.get(url)
        if cached is not None and not cached.is_expired:
            log.debug("extractor_cache_hit", url=url)
            return list(cached.value)

        extractor = self.find(url, hint)
        if extractor is None:
            log.info("extractor_not_found", url=url, hint=hint)
            return []

        streams = await self._try_extractor(extractor, url, cancel)
        if cancel is None or not cancel.is_set():
            self._cache_result(url, streams)
        return streams

    async def _try_extractor(
        self,
        extractor: ExtractorPort,
        url: str,
        cancel: asyncio.Event | None,
    ) -> list[Stream]:
        try:
            streams = await asyncio.wait_for(
                extractor.extract(url, cancel), timeout=self._timeout
            )
        except TimeoutError:
            log.warning("extractor_timeout", extractor=extractor.name, url=url)
            return []
        except OperationCancelledError:
            return []
        except Exception:
            log.exception("extractor_error", extractor=extractor.name, url=url)
            return []

        if streams:
            log.info("extractor_success", extractor=extractor.name, count=len(streams))
        else:
            log.info("extractor_empty", extractor=extractor.name, url=url)
        return streams

    def _cache_result(self, url: str, streams: list[Stream]) -> None:
        ttl = _CACHE_TTL_HIT if streams else _CACHE_TTL_MISS
        self._cache[url] = _CacheEntry(list(streams), ttl)
        if len(self._cache) > _MAX_CACHE_SIZE:
            excess = len(self._cache) - _MAX_CACHE_SIZE
            for key in list(self._cache)[:excess]:
                del self._cache[key]

    def _evict_expired(self) -> None:
        expired = [k for k, v in self._cache.items() if v.is_expired]
        for k in expired:
            del self._cache[k]
        log.debug("extractor_cache_evict", size=len(self._cache))

    def clear_cache(self) -> None:
        self._cache.clear()

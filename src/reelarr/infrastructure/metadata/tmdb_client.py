"""TMDB API client: async httpx implementation with caching."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from reelarr.domain.entities.media import ContentKind
from reelarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"
_IMAGE_BASE = "https://image.tmdb.org/t/p"

# Cache TTLs (seconds)
_TTL_DETAILS = 86_400  # 24 hours
_TTL_LISTING = 21_600  # 6 hours
_TTL_SEARCH = 3_600  # 1 hour


class HttpxTmdbClient:
    """Async TMDB v3 client using httpx + CachePort.

    Implements ``MetadataSourcePort``.  Every public method returns the
    raw JSON payload, or ``None`` when TMDB could not be reached or
    answered with an error.
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        language: str = "en-US",
        base_url: str = _BASE_URL,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._cache = cache
        self._language = language
        self._base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _params(self, **extra: Any) -> dict[str, Any]:
        return {"api_key": self._api_key, "language": self._language, **extra}

    async def _get(self, path: str, **extra: Any) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(url, params=self._params(**extra))
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                return None
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError:
            log.warning("tmdb_http_error", path=path, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            return None
        except ValueError:
            log.warning("tmdb_invalid_json", path=path)
            return None
        if not isinstance(data, dict):
            log.warning("tmdb_unexpected_payload", path=path)
            return None
        return data

    async def _cached_get(
        self, cache_key: str, ttl: int, path: str, **extra: Any
    ) -> dict[str, Any] | None:
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached
        data = await self._get(path, **extra)
        if data is not None:
            await self._cache.set(cache_key, data, ttl=ttl)
        return data

    # ------------------------------------------------------------------
    # Public API (MetadataSourcePort)
    # ------------------------------------------------------------------

    async def trending(self, kind: ContentKind, page: int = 1) -> dict[str, Any] | None:
        return await self._cached_get(
            f"tmdb:trending:{kind}:{page}",
            _TTL_LISTING,
            f"/trending/{kind}/week",
            page=page,
        )

    async def popular(self, kind: ContentKind, page: int = 1) -> dict[str, Any] | None:
        return await self._cached_get(
            f"tmdb:popular:{kind}:{page}", _TTL_LISTING, f"/{kind}/popular", page=page
        )

    async def top_rated(
        self, kind: ContentKind, page: int = 1
    ) -> dict[str, Any] | None:
        return await self._cached_get(
            f"tmdb:top_rated:{kind}:{page}",
            _TTL_LISTING,
            f"/{kind}/top_rated",
            page=page,
        )

    async def discover_by_genre(
        self, kind: ContentKind, genre_id: str, page: int = 1
    ) -> dict[str, Any] | None:
        return await self._cached_get(
            f"tmdb:discover:{kind}:{genre_id}:{page}",
            _TTL_LISTING,
            f"/discover/{kind}",
            with_genres=genre_id,
            page=page,
        )

    async def details(self, kind: ContentKind, tmdb_id: str) -> dict[str, Any] | None:
        """Title details with credits and videos appended."""
        return await self._cached_get(
            f"tmdb:details:{kind}:{tmdb_id}",
            _TTL_DETAILS,
            f"/{kind}/{tmdb_id}",
            append_to_response="credits,videos",
        )

    async def season(self, tmdb_id: str, season_number: int) -> dict[str, Any] | None:
        return await self._cached_get(
            f"tmdb:season:{tmdb_id}:{season_number}",
            _TTL_DETAILS,
            f"/tv/{tmdb_id}/season/{season_number}",
        )

    async def search(self, query: str, page: int = 1) -> dict[str, Any] | None:
        """Multi search across movies and TV shows."""
        return await self._cached_get(
            f"tmdb:search:{query.lower()}:{page}",
            _TTL_SEARCH,
            "/search/multi",
            query=query,
            page=page,
        )

    def image_url(self, path: str | None, size: str = "w500") -> str:
        if not path:
            return ""
        return f"{_IMAGE_BASE}/{size}{path}"

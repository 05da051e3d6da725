"""Shared HTTP fetch utility.

Wraps the application's single ``httpx.AsyncClient`` (which carries the
``RetryTransport``) with browser-like headers, cooperative cancellation,
uniform error mapping to ``FetchError`` and an optional short-TTL
response cache for GET bodies.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import structlog

from reelarr.domain.ports.cache import CachePort
from reelarr.domain.providers.exceptions import FetchError

from .cancellation import run_cancellable
from .headers import HeaderProfile, get_headers
from .retry_transport import RetryTransport

log = structlog.get_logger(__name__)

_DEFAULT_RESPONSE_TTL = 300  # 5 minutes


class HttpFetcher:
    """Thin request helper shared by providers and extractors.

    Methods raise ``FetchError`` on transport failures and non-2xx
    responses; callers decide whether that is fatal.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        cache: CachePort | None = None,
        response_ttl: int = _DEFAULT_RESPONSE_TTL,
    ) -> None:
        self._client = client
        self._cache = cache
        self._response_ttl = response_ttl

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    # ------------------------------------------------------------------
    # Core request
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        profile: HeaderProfile = "html",
        cancel: asyncio.Event | None = None,
        follow_redirects: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request; transport errors become ``FetchError``.

        The status code is not checked here.
        """
        merged = get_headers(profile)
        if headers:
            merged.update(headers)
        try:
            return await run_cancellable(
                self._client.request(
                    method,
                    url,
                    headers=merged,
                    follow_redirects=follow_redirects,
                    **kwargs,
                ),
                cancel,
            )
        except httpx.TimeoutException as exc:
            raise FetchError(url, "timeout") from exc
        except httpx.InvalidURL as exc:
            raise FetchError(url, f"invalid url: {exc}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

    @staticmethod
    def _check_status(response: httpx.Response, url: str) -> None:
        if response.status_code >= 400:
            raise FetchError(
                url, f"http {response.status_code}", status=response.status_code
            )

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    async def get_text(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        cancel: asyncio.Event | None = None,
        use_cache: bool = False,
        **kwargs: Any,
    ) -> str:
        """GET *url* and return the decoded body.

        With *use_cache*, successful bodies are kept for the configured
        response TTL and served without a network round trip.
        """
        cache_key = f"http:get:{url}"
        if use_cache and self._cache is not None:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                log.debug("http_cache_hit", url=url)
                return cached

        response = await self.request(
            "GET", url, headers=headers, cancel=cancel, **kwargs
        )
        self._check_status(response, url)
        text = response.text

        if use_cache and self._cache is not None:
            await self._cache.set(cache_key, text, ttl=self._response_ttl)
        return text

    async def get_page(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        cancel: asyncio.Event | None = None,
    ) -> tuple[str, str]:
        """GET *url* following redirects; return ``(final_url, body)``."""
        response = await self.request(
            "GET", url, headers=headers, cancel=cancel, follow_redirects=True
        )
        self._check_status(response, url)
        return str(response.url), response.text

    async def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Any:
        response = await self.request(
            "GET",
            url,
            params=params,
            headers=headers,
            profile="json",
            cancel=cancel,
        )
        self._check_status(response, url)
        return self._decode_json(response, url)

    async def post_json(
        self,
        url: str,
        payload: Any,
        *,
        headers: dict[str, str] | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Any:
        response = await self.request(
            "POST",
            url,
            json=payload,
            headers=headers,
            profile="json",
            cancel=cancel,
        )
        self._check_status(response, url)
        return self._decode_json(response, url)

    async def head_location(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        cancel: asyncio.Event | None = None,
    ) -> str | None:
        """HEAD *url* without following redirects; return ``Location``."""
        response = await self.request(
            "HEAD",
            url,
            headers=headers,
            cancel=cancel,
            follow_redirects=False,
        )
        return response.headers.get("location")

    @staticmethod
    def _decode_json(response: httpx.Response, url: str) -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise FetchError(url, "invalid json") from exc


def build_http_client(
    *,
    timeout: float,
    user_agent: str,
    follow_redirects: bool = True,
    max_retries: int = 2,
    backoff_base: float = 0.5,
    max_backoff: float = 10.0,
) -> httpx.AsyncClient:
    """Create the shared ``httpx.AsyncClient`` wrapped in ``RetryTransport``."""
    transport = RetryTransport(
        wrapped=httpx.AsyncHTTPTransport(),
        max_retries=max_retries,
        backoff_base=backoff_base,
        max_backoff=max_backoff,
    )
    return httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": user_agent},
        follow_redirects=follow_redirects,
    )

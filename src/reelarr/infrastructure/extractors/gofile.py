"""GoFile extractor: lists downloadable files via the GoFile content API.

URLs follow the pattern ``https://gofile.io/d/{contentId}``.

An ephemeral guest token is obtained via
``POST https://api.gofile.io/accounts`` and then used as Bearer token for
``GET https://api.gofile.io/contents/{contentId}``.
"""

from __future__ import annotations

import asyncio
import re
import time
from typing import Any
from urllib.parse import urlparse

import structlog

from reelarr.domain.entities.media import Stream, StreamKind
from reelarr.domain.providers.exceptions import FetchError, OperationCancelledError
from reelarr.infrastructure.common.http_fetch import HttpFetcher

from ._common import guess_quality

log = structlog.get_logger(__name__)

_CONTENT_ID_RE = re.compile(r"^/d/([A-Za-z0-9]+)/?$")

_API_BASE = "https://api.gofile.io"
_SITE_HEADERS = {"Origin": "https://gofile.io", "Referer": "https://gofile.io/"}

# Guest tokens last about 30 minutes
_TOKEN_TTL = 25 * 60


def extract_content_id(url: str) -> str | None:
    parsed = urlparse(url)
    if "gofile" not in (parsed.hostname or ""):
        return None
    match = _CONTENT_ID_RE.search(parsed.path)
    return match.group(1) if match else None


class GoFileExtractor:
    supported_domains = frozenset({"gofile"})

    def __init__(self, fetcher: HttpFetcher, *, api_base: str = _API_BASE) -> None:
        self._fetcher = fetcher
        self._api_base = api_base.rstrip("/")
        self._token: str | None = None
        self._token_ts = 0.0

    @property
    def name(self) -> str:
        return "gofile"

    async def _guest_token(self, cancel: asyncio.Event | None) -> str | None:
        """Obtain or reuse the cached guest token."""
        now = time.monotonic()
        if self._token and (now - self._token_ts) < _TOKEN_TTL:
            return self._token

        data = await self._call("POST", f"{self._api_base}/accounts", cancel, json={})
        if data is None:
            return None
        token = (data.get("data") or {}).get("token")
        if not token:
            log.warning("gofile_token_missing")
            return None

        self._token = token
        self._token_ts = now
        log.debug("gofile_token_acquired")
        return token

    async def _call(
        self,
        method: str,
        url: str,
        cancel: asyncio.Event | None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any] | None:
        """Issue one API call; ``None`` unless the API reports ``status: ok``."""
        try:
            resp = await self._fetcher.request(
                method,
                url,
                headers={**_SITE_HEADERS, **(headers or {})},
                profile="json",
                cancel=cancel,
                **kwargs,
            )
        except FetchError as exc:
            log.warning("gofile_request_failed", url=url, error=str(exc))
            return None

        if resp.status_code == 404:
            log.info("gofile_content_not_found", url=url)
            return None
        if resp.status_code != 200:
            log.warning("gofile_http_error", url=url, status=resp.status_code)
            return None
        try:
            data = resp.json()
        except ValueError:
            log.warning("gofile_invalid_json", url=url)
            return None
        if not isinstance(data, dict) or data.get("status") != "ok":
            log.info("gofile_api_not_ok", url=url)
            return None
        return data

    async def extract(
        self, url: str, cancel: asyncio.Event | None = None
    ) -> list[Stream]:
        content_id = extract_content_id(url)
        if not content_id:
            log.warning("gofile_invalid_url", url=url)
            return []

        try:
            token = await self._guest_token(cancel)
            if not token:
                return []
            data = await self._call(
                "GET",
                f"{self._api_base}/contents/{content_id}",
                cancel,
                headers={"Authorization": f"Bearer {token}"},
            )
        except OperationCancelledError:
            return []
        if data is None:
            return []

        children = (data.get("data") or {}).get("children") or {}
        streams: list[Stream] = []
        for child in children.values():
            link = child.get("link") if isinstance(child, dict) else None
            if not link:
                continue
            name = str(child.get("name") or "")
            streams.append(
                Stream(
                    server_label="GoFile",
                    url=link,
                    kind=StreamKind.DIRECT,
                    quality=guess_quality(name),
                    extra_headers={"Cookie": f"accountToken={token}"},
                )
            )
        log.debug("gofile_extract_done", content_id=content_id, count=len(streams))
        return streams

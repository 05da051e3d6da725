"""Token-exchange extractor for filepress-style hosts.

Two POSTs against the host's API: the first trades the file id for a
one-time token, the second trades the token for the stream URL.
"""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import urlparse

import structlog

from reelarr.domain.entities.media import Stream, StreamKind
from reelarr.domain.providers.exceptions import FetchError, OperationCancelledError
from reelarr.infrastructure.common.http_fetch import HttpFetcher

from ._common import guess_quality

log = structlog.get_logger(__name__)


def split_file_link(link: str) -> tuple[str, str] | None:
    """``https://host/file/<id>`` -> ``("https://host", "<id>")``."""
    parsed = urlparse(link)
    segments = [s for s in parsed.path.split("/") if s]
    if not parsed.scheme or not parsed.netloc or not segments:
        return None
    prefix = "/".join(segments[:-2])
    base = f"{parsed.scheme}://{parsed.netloc}"
    if prefix:
        base = f"{base}/{prefix}"
    return base, segments[-1]


class TokenExchangeExtractor:
    """Generic two-step token exchange.

    Args:
        fetcher: Shared HTTP fetcher.
        token_path: API path returning ``{"status": true, "data": token}``.
        stream_path: API path returning ``{"data": [url, ...]}``.
        method: Value of the ``method`` field both calls send.
        label: Server label of produced streams.
    """

    supported_domains = frozenset({"filepress", "filebee"})

    def __init__(
        self,
        fetcher: HttpFetcher,
        *,
        token_path: str = "/api/file/downlaod/",
        stream_path: str = "/api/file/downlaod2/",
        method: str = "indexDownlaod",
        label: str = "filepress",
    ) -> None:
        self._fetcher = fetcher
        self._token_path = token_path
        self._stream_path = stream_path
        self._method = method
        self._label = label

    @property
    def name(self) -> str:
        return self._label

    def _payload(self, value: str) -> dict[str, Any]:
        return {"id": value, "method": self._method, "captchaValue": None}

    async def extract(
        self, url: str, cancel: asyncio.Event | None = None
    ) -> list[Stream]:
        parts = split_file_link(url)
        if parts is None:
            log.warning("token_exchange_invalid_url", url=url)
            return []
        base, file_id = parts
        headers = {"Referer": base}

        try:
            first = await self._fetcher.post_json(
                f"{base}{self._token_path}",
                self._payload(file_id),
                headers=headers,
                cancel=cancel,
            )
            token = first.get("data") if isinstance(first, dict) else None
            if not (isinstance(first, dict) and first.get("status")) or not token:
                log.info("token_exchange_rejected", url=url, step=1)
                return []

            second = await self._fetcher.post_json(
                f"{base}{self._stream_path}",
                self._payload(str(token)),
                headers=headers,
                cancel=cancel,
            )
        except OperationCancelledError:
            return []
        except FetchError as exc:
            log.warning("token_exchange_failed", url=url, error=str(exc))
            return []

        data = second.get("data") if isinstance(second, dict) else None
        if not isinstance(data, list) or not data or not isinstance(data[0], str):
            log.info("token_exchange_rejected", url=url, step=2)
            return []

        return [
            Stream(
                server_label=self._label,
                url=data[0],
                kind=StreamKind.DIRECT,
                quality=guess_quality(data[0]),
                extra_headers={"Referer": base},
            )
        ]

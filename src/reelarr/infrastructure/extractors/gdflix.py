"""GDFlix landing pages: Google Drive mirrors and direct file buttons."""

from __future__ import annotations

import asyncio

import structlog

from reelarr.domain.entities.media import Stream, StreamKind
from reelarr.domain.providers.exceptions import FetchError, OperationCancelledError
from reelarr.infrastructure.common.html_selectors import (
    absolute_url,
    extract_all_attrs,
    parse_html,
)
from reelarr.infrastructure.common.http_fetch import HttpFetcher

from ._common import dedupe_streams, guess_quality

log = structlog.get_logger(__name__)


class GDFlixExtractor:
    supported_domains = frozenset({"gdflix"})

    def __init__(self, fetcher: HttpFetcher) -> None:
        self._fetcher = fetcher

    @property
    def name(self) -> str:
        return "gdflix"

    async def extract(
        self, url: str, cancel: asyncio.Event | None = None
    ) -> list[Stream]:
        try:
            final_url, html = await self._fetcher.get_page(url, cancel=cancel)
        except OperationCancelledError:
            return []
        except FetchError as exc:
            log.warning("gdflix_fetch_failed", url=url, error=str(exc))
            return []

        soup = parse_html(html)
        streams: list[Stream] = []

        for href in extract_all_attrs(soup, 'a[href*="drive.google.com"]', "href"):
            streams.append(
                Stream(server_label="Google Drive", url=href, kind=StreamKind.IFRAME)
            )

        for href in extract_all_attrs(soup, ".download-btn, .btn-download", "href"):
            if ".mkv" not in href and ".mp4" not in href:
                continue
            target = absolute_url(href, final_url)
            streams.append(
                Stream(
                    server_label="GDFlix Direct",
                    url=target,
                    kind=StreamKind.DIRECT,
                    quality=guess_quality(target),
                )
            )

        log.debug("gdflix_extract_done", url=url, count=len(streams))
        return dedupe_streams(streams)

"""Generic extractor: scrape playable sources straight off a page."""

from __future__ import annotations

import asyncio
import re

import structlog

from reelarr.domain.entities.media import Stream, StreamKind
from reelarr.domain.providers.exceptions import FetchError, OperationCancelledError
from reelarr.infrastructure.common.html_selectors import absolute_url, parse_html
from reelarr.infrastructure.common.http_fetch import HttpFetcher

from ._common import dedupe_streams, guess_quality
from .packed import extract_packed_sources

log = structlog.get_logger(__name__)

_M3U8_RE = re.compile(r"""(https?://[^\s"'<>]+\.m3u8[^\s"'<>]*)""")
_MP4_RE = re.compile(r"""(https?://[^\s"'<>]+\.mp4[^\s"'<>]*)""")

# iframes are only trusted when their src hints at a known CDN
_DEFAULT_IFRAME_KEYWORDS = ("cloud", "hub")


def _kind_for(url: str, mime: str = "") -> StreamKind:
    if "m3u8" in mime.lower() or ".m3u8" in url.lower() or "mpegurl" in mime.lower():
        return StreamKind.SEGMENTED
    return StreamKind.DIRECT


def extract_from_html(
    html: str,
    page_url: str,
    *,
    label: str = "Direct",
    iframe_keywords: tuple[str, ...] = _DEFAULT_IFRAME_KEYWORDS,
) -> list[Stream]:
    """Collect streams from ``<source>``, ``<video>``, CDN iframes and inline URLs.

    Relative and protocol-relative URLs are made absolute against
    *page_url*; the result is deduplicated by URL.
    """
    soup = parse_html(html)
    streams: list[Stream] = []

    for tag in soup.select("source[src]"):
        src = absolute_url(str(tag["src"]), page_url)
        streams.append(
            Stream(
                server_label=f"{label} Source",
                url=src,
                kind=_kind_for(src, str(tag.get("type") or "")),
                quality=guess_quality(src),
            )
        )

    for tag in soup.select("video[src]"):
        src = absolute_url(str(tag["src"]), page_url)
        streams.append(
            Stream(
                server_label=f"{label} Video",
                url=src,
                kind=_kind_for(src),
                quality=guess_quality(src),
            )
        )

    for tag in soup.select("iframe[src]"):
        src = str(tag["src"])
        if not any(keyword in src for keyword in iframe_keywords):
            continue
        streams.append(
            Stream(
                server_label=f"{label} Embed",
                url=absolute_url(src, page_url),
                kind=StreamKind.IFRAME,
            )
        )

    for url in _M3U8_RE.findall(html):
        streams.append(
            Stream(
                server_label=f"{label} HLS",
                url=url,
                kind=StreamKind.SEGMENTED,
                quality=guess_quality(url),
            )
        )

    for url in _MP4_RE.findall(html):
        streams.append(
            Stream(
                server_label=f"{label} MP4",
                url=url,
                kind=StreamKind.DIRECT,
                quality=guess_quality(url),
            )
        )

    for url in extract_packed_sources(html):
        streams.append(
            Stream(
                server_label=f"{label} Player",
                url=url,
                kind=_kind_for(url),
                quality=guess_quality(url),
            )
        )

    return dedupe_streams(streams)


class GenericExtractor:
    """Fetches a page once and scrapes every directly playable source."""

    def __init__(
        self,
        fetcher: HttpFetcher,
        *,
        iframe_keywords: tuple[str, ...] = _DEFAULT_IFRAME_KEYWORDS,
    ) -> None:
        self._fetcher = fetcher
        self._iframe_keywords = iframe_keywords

    @property
    def name(self) -> str:
        return "generic"

    async def extract(
        self, url: str, cancel: asyncio.Event | None = None
    ) -> list[Stream]:
        try:
            final_url, html = await self._fetcher.get_page(
                url, headers={"Referer": url}, cancel=cancel
            )
        except OperationCancelledError:
            log.debug("generic_extract_cancelled", url=url)
            return []
        except FetchError as exc:
            log.warning("generic_extract_fetch_failed", url=url, error=str(exc))
            return []

        streams = extract_from_html(
            html, final_url, iframe_keywords=self._iframe_keywords
        )
        log.debug("generic_extract_done", url=url, count=len(streams))
        return streams

"""Redirect-chain extractor for hubcloud-style file landing pages.

The landing page hides the real download page behind a JavaScript
redirect (``var url = '...'``), sometimes base64-wrapped in an ``r=``
parameter.  The download page then lists one button per CDN mirror;
each button is classified by an ordered rule table and turned into a
direct stream.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

import structlog

from reelarr.domain.entities.media import Stream, StreamKind
from reelarr.domain.providers.exceptions import FetchError, OperationCancelledError
from reelarr.infrastructure.common.html_selectors import (
    extract_all_attrs,
    parse_html,
)
from reelarr.infrastructure.common.http_fetch import HttpFetcher

from ._common import dedupe_streams, guess_quality
from .pixeldrain import pixeldrain_api_url

log = structlog.get_logger(__name__)

_JS_REDIRECT_RE = re.compile(r"var\s+url\s*=\s*'([^']+)';")
_BUTTON_SELECTOR = ".btn-success.btn-lg.h6, .btn-danger, .btn-secondary"
_DOWNLOAD_ICON_SELECTOR = ".fa-file-download.fa-lg"
_HOST_RE = re.compile(r"^(?:https?://)?(?:www\.)?([^/]+)", re.IGNORECASE)

# Redirect targets on these hosts carry the real file in ``?link=``
_CLOUD_STORAGE_HOSTS = ("googleusercontent",)


def _decode_base64(value: str) -> str:
    if not value:
        return ""
    try:
        padded = value + "=" * (-len(value) % 4)
        return base64.b64decode(padded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return value


def find_download_page(html: str, landing_url: str) -> str:
    """Locate the download-page URL advertised by a landing page.

    Order: JavaScript redirect (decoded ``r=`` payload first), the
    download icon's parent anchor, then the landing URL itself.
    Relative targets are resolved against the landing origin.
    """
    target = ""
    m = _JS_REDIRECT_RE.search(html)
    if m:
        raw = m.group(1)
        _, sep, encoded = raw.partition("r=")
        target = (_decode_base64(encoded) if sep else "") or raw

    if not target:
        icon = parse_html(html).select_one(_DOWNLOAD_ICON_SELECTOR)
        if icon is not None and icon.parent is not None:
            target = str(icon.parent.get("href") or "")

    if not target:
        return landing_url

    if target.startswith("/"):
        parsed = urlparse(landing_url)
        return urljoin(f"{parsed.scheme}://{parsed.netloc}", target)
    return target


def _unwrap_link_param(url: str) -> str:
    _, sep, inner = url.partition("?link=")
    return inner if sep and inner else url


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _ChainSession:
    fetcher: HttpFetcher
    cancel: asyncio.Event | None


ResolveFn = Callable[[_ChainSession, str], Awaitable[str | None]]


@dataclass(frozen=True)
class LinkRule:
    """Classifies one download button.

    ``matches`` decides whether the rule applies; ``resolve`` returns the
    final URL (``None`` drops the link).  ``label`` may be a callable
    deriving the server label from the link.
    """

    name: str
    matches: Callable[[str], bool]
    label: str | Callable[[str], str]
    resolve: ResolveFn | None = None

    def server_label(self, link: str) -> str:
        return self.label(link) if callable(self.label) else self.label


async def _resolve_pixeldrain(_: _ChainSession, link: str) -> str | None:
    return pixeldrain_api_url(link)


async def _resolve_aggregator(session: _ChainSession, link: str) -> str | None:
    """Follow the aggregator's manual redirect to the storage URL.

    A first HEAD (redirects disabled) yields the next hop.  Cloud-storage
    hops already carry the file in ``?link=``; any other hop needs one
    more HEAD whose ``Location`` carries it.
    """
    location = await session.fetcher.head_location(link, cancel=session.cancel)
    next_hop = location or link

    if any(host in next_hop for host in _CLOUD_STORAGE_HOSTS):
        return _unwrap_link_param(next_hop)

    second = await session.fetcher.head_location(next_hop, cancel=session.cancel)
    if second:
        _, sep, inner = second.partition("?link=")
        if sep and inner:
            return inner
    return next_hop


def _label_from_host(link: str) -> str:
    m = _HOST_RE.match(link)
    return m.group(1).replace(".", " ") if m else "Unknown"


DEFAULT_RULES: tuple[LinkRule, ...] = (
    LinkRule(
        name="edge_worker",
        matches=lambda u: ".dev" in u and "/?id=" not in u,
        label="Cf Worker",
    ),
    LinkRule(
        name="pixeldrain",
        matches=lambda u: "pixeld" in u,
        label="Pixeldrain",
        resolve=_resolve_pixeldrain,
    ),
    LinkRule(
        name="aggregator",
        matches=lambda u: "hubcloud" in u or "/?id=" in u,
        label="HubCloud",
        resolve=_resolve_aggregator,
    ),
    LinkRule(
        name="object_storage",
        matches=lambda u: "cloudflarestorage" in u,
        label="CfStorage",
    ),
    LinkRule(
        name="fast_cdn",
        matches=lambda u: "fastdl" in u or "fsl." in u,
        label="FastDL",
    ),
    LinkRule(
        name="hub_cdn",
        matches=lambda u: "hubcdn" in u and "/?id=" not in u,
        label="HubCDN",
    ),
    LinkRule(
        name="video_file",
        matches=lambda u: ".mkv" in u or ".mp4" in u,
        label=_label_from_host,
    ),
)


class RedirectChainExtractor:
    """Landing page -> download page -> classified mirror links.

    Every button is classified independently: a failing rule drops that
    one link, never the whole extraction.
    """

    supported_domains = frozenset({"hubcloud", "vcloud", "hubdrive"})

    def __init__(
        self,
        fetcher: HttpFetcher,
        *,
        rules: tuple[LinkRule, ...] = DEFAULT_RULES,
    ) -> None:
        self._fetcher = fetcher
        self._rules = rules

    @property
    def name(self) -> str:
        return "hubcloud"

    async def extract(
        self, url: str, cancel: asyncio.Event | None = None
    ) -> list[Stream]:
        try:
            landing_html = await self._fetcher.get_text(url, cancel=cancel)
            download_page = find_download_page(landing_html, url)
            log.debug("redirect_chain_download_page", url=url, target=download_page)
            _, page_html = await self._fetcher.get_page(download_page, cancel=cancel)
        except OperationCancelledError:
            return []
        except FetchError as exc:
            log.warning("redirect_chain_fetch_failed", url=url, error=str(exc))
            return []

        links = extract_all_attrs(parse_html(page_html), _BUTTON_SELECTOR, "href")
        streams: list[Stream] = []
        for link in links:
            if cancel is not None and cancel.is_set():
                break
            stream = await self.classify(link, cancel)
            if stream is not None:
                streams.append(stream)

        log.info("redirect_chain_extracted", url=url, count=len(streams))
        return dedupe_streams(streams)

    async def classify(
        self, link: str, cancel: asyncio.Event | None = None
    ) -> Stream | None:
        """Apply the first matching rule to *link*."""
        rule = next((r for r in self._rules if r.matches(link)), None)
        if rule is None:
            return None

        target: str | None = link
        if rule.resolve is not None:
            try:
                target = await rule.resolve(
                    _ChainSession(fetcher=self._fetcher, cancel=cancel), link
                )
            except OperationCancelledError:
                return None
            except FetchError as exc:
                log.warning(
                    "redirect_chain_rule_failed",
                    rule=rule.name,
                    link=link,
                    error=str(exc),
                )
                return None
        if not target:
            return None

        return Stream(
            server_label=rule.server_label(link),
            url=target,
            kind=StreamKind.DIRECT,
            quality=guess_quality(target),
        )

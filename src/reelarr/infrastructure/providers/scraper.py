"""Scraper-backed providers for WordPress-style download sites.

All supported sites share one theme family, so a single
``ScraperProvider`` is parameterised by a ``ScraperLayout`` holding the
URL patterns and CSS selectors that differ between mirrors.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from urllib.parse import quote_plus

from bs4 import BeautifulSoup, Tag

from reelarr.domain.entities.media import ContentKind, Info, Post, Stream
from reelarr.domain.providers.base import Capability, ProviderConfig, ProviderContext
from reelarr.infrastructure.common.cancellation import raise_if_cancelled
from reelarr.infrastructure.common.headers import headers_with_referer
from reelarr.infrastructure.common.html_selectors import (
    absolute_url,
    extract_attr,
    extract_image,
    extract_text,
    parse_html,
    select_items,
)
from reelarr.infrastructure.common.http_fetch import HttpFetcher
from reelarr.infrastructure.extractors._common import dedupe_streams
from reelarr.infrastructure.extractors.registry import ExtractorRegistry

from .base import ProviderBase

_TITLE_RE = re.compile(r"^(.*?)\s*\((\d{4})\)|^(.*?)\s*\((Season \d+)\)")
_CLOUD_LINK_RE = re.compile(r'<a\s+href="([^"]*cloud\.[^"]*)"', re.IGNORECASE)
_YEAR_RE = re.compile(r"\b(19\d{2}|20\d{2})\b")


@dataclass(frozen=True)
class ScraperLayout:
    """URL patterns and selectors of one site theme."""

    listing_path: str = "/{filter}/page/{page}/"
    search_path: str = "/page/{page}/?s={query}"
    item_selectors: tuple[str, ...] = (
        ".blog-items > article",
        ".post-list > article",
    )
    item_title_selectors: tuple[str, ...] = (".post-title", "h2", "h3")
    meta_title_selectors: tuple[str, ...] = ("h1.entry-title", "h1")
    meta_synopsis_selectors: tuple[str, ...] = ("div.entry-content p",)
    meta_image_selector: str = "div.entry-content img"
    cast_label: str = "Cast:"
    # Stream landing hosts linked from detail pages.
    landing_hosts: tuple[str, ...] = ("filepress", "filebee", "gdflix", "gofile")


def clean_title(raw: str) -> tuple[str, int | None]:
    """Strip the "Download" prefix and split off ``(YYYY)`` / ``(Season N)``."""
    title = raw.replace("Download", "").strip()
    m = _TITLE_RE.match(title)
    if m is None:
        return title, None
    year = int(m.group(2)) if m.group(2) else None
    return (m.group(1) or m.group(3) or title).strip(), year


class ScraperProvider(ProviderBase):
    """Lists, searches and resolves streams by scraping site HTML."""

    capabilities = (
        Capability.POSTS | Capability.METADATA | Capability.SEARCH | Capability.STREAMS
    )

    def __init__(
        self,
        config: ProviderConfig,
        fetcher: HttpFetcher,
        extractors: ExtractorRegistry,
        layout: ScraperLayout | None = None,
    ) -> None:
        super().__init__(config)
        self._fetcher = fetcher
        self._extractors = extractors
        self.layout = layout or ScraperLayout()

    # ------------------------------------------------------------------
    # Listing / search
    # ------------------------------------------------------------------

    async def list_posts(
        self, filter_token: str, page: int, ctx: ProviderContext
    ) -> list[Post]:
        base = self._require_base_url(ctx)
        path = self.layout.listing_path.format(
            filter=filter_token.strip("/"), page=page
        )
        # The "latest" filter is the bare front page.
        url = base + path.replace("//", "/")
        return await self._fetch_posts(base, url, ctx)

    async def search(self, query: str, page: int, ctx: ProviderContext) -> list[Post]:
        base = self._require_base_url(ctx)
        url = base + self.layout.search_path.format(
            page=page, query=quote_plus(query)
        )
        return await self._fetch_posts(base, url, ctx)

    async def _fetch_posts(
        self, base: str, url: str, ctx: ProviderContext
    ) -> list[Post]:
        html = await self._fetcher.get_text(
            url,
            headers=headers_with_referer(base),
            cancel=ctx.cancel,
            use_cache=True,
        )
        posts = self.parse_posts(parse_html(html), base)
        self._log.debug("scraper_posts", provider=self.id, url=url, count=len(posts))
        return posts

    def parse_posts(self, soup: BeautifulSoup, base: str) -> list[Post]:
        posts: list[Post] = []
        for article in select_items(soup, *self.layout.item_selectors):
            post = self._parse_article(article, base)
            if post is not None:
                posts.append(post)
        return posts

    def _parse_article(self, article: Tag, base: str) -> Post | None:
        anchor = article.find("a")
        if not isinstance(anchor, Tag):
            return None
        raw_title = str(anchor.get("title") or "") or extract_text(
            article, *self.layout.item_title_selectors
        )
        href = str(anchor.get("href") or "")
        title, year = clean_title(raw_title)
        if not title or not href:
            return None

        link = absolute_url(href, base)
        image = extract_image(article)
        return Post(
            id=link,
            title=title,
            image_url=absolute_url(image, base) if image else "",
            detail_link=link,
            kind="tv" if "season" in raw_title.lower() else "movie",
            source_provider_id=self.id,
            year=year,
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def get_metadata(self, link: str, ctx: ProviderContext) -> Info:
        base = self._require_base_url(ctx)
        url = absolute_url(link, base)
        html = await self._fetcher.get_text(
            url, headers=headers_with_referer(base), cancel=ctx.cancel, use_cache=True
        )
        return self.parse_info(parse_html(html), base)

    def parse_info(self, soup: BeautifulSoup, base: str) -> Info:
        layout = self.layout
        raw_title = extract_text(soup, *layout.meta_title_selectors, default="Unknown Title")
        title, year = clean_title(raw_title)
        image = extract_attr(soup, layout.meta_image_selector, "src")

        cast: list[str] = []
        label = soup.find("strong", string=lambda s: bool(s) and layout.cast_label in s)
        if isinstance(label, Tag) and isinstance(label.parent, Tag):
            text = label.parent.get_text(" ", strip=True).replace(layout.cast_label, "")
            cast = [name.strip() for name in text.split(",") if name.strip()]

        if year is None:
            m = _YEAR_RE.search(raw_title)
            year = int(m.group(1)) if m else None

        return Info(
            title=title or raw_title,
            synopsis=extract_text(soup, *layout.meta_synopsis_selectors),
            image_url=absolute_url(image, base) if image else "",
            year=year,
            cast=cast,
            source_provider_id=self.id,
        )

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    def find_landing_links(self, html: str, page_url: str) -> list[str]:
        """Landing URLs on a detail page that an extractor can resolve."""
        links: list[str] = []
        seen: set[str] = set()

        def add(href: str) -> None:
            url = absolute_url(href, page_url)
            if url.startswith("http") and url not in seen:
                seen.add(url)
                links.append(url)

        for m in _CLOUD_LINK_RE.finditer(html):
            add(m.group(1))
        for anchor in parse_html(html).select("a[href]"):
            href = str(anchor["href"])
            if any(host in href for host in self.layout.landing_hosts):
                add(href)
            elif self._extractors.has_dedicated(href):
                add(href)
        return links

    async def get_streams(
        self, link: str, kind: ContentKind, ctx: ProviderContext
    ) -> list[Stream]:
        base = self._require_base_url(ctx)
        page_url = absolute_url(link, base)
        html = await self._fetcher.get_text(
            page_url, headers=headers_with_referer(base), cancel=ctx.cancel
        )
        landing = self.find_landing_links(html, page_url)
        if not landing:
            self._log.info("scraper_no_landing_links", provider=self.id, url=page_url)
            return []

        results = await asyncio.gather(
            *(self._extractors.extract(url, cancel=ctx.cancel) for url in landing)
        )
        raise_if_cancelled(ctx.cancel)
        return dedupe_streams([s for streams in results for s in streams])

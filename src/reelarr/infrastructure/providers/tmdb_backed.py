"""Providers backed by the TMDB metadata source.

Listing, search, metadata and episodes are shared; only stream
generation differs between providers (embed templates by default).
"""

from __future__ import annotations

from typing import Any

from reelarr.domain.entities.media import ContentKind, EpisodeLink, Info, Post, Stream
from reelarr.domain.ports.metadata_source import MetadataSourcePort
from reelarr.domain.providers.base import Capability, ProviderConfig, ProviderContext
from reelarr.domain.providers.exceptions import FetchError, ProviderError
from reelarr.infrastructure.common.cancellation import raise_if_cancelled
from reelarr.infrastructure.metadata.tmdb_mapping import (
    details_to_info,
    parse_filter,
    parse_season_link,
    parse_title_link,
    results_to_posts,
    season_to_episodes,
)

from .base import ProviderBase
from .embed import build_template_streams


class TmdbProvider(ProviderBase):
    """Full-capability provider: TMDB for catalog data, templates for streams."""

    capabilities = Capability.FULL

    def __init__(
        self,
        config: ProviderConfig,
        metadata: MetadataSourcePort,
        templates: list[str],
        *,
        label: str | None = None,
    ) -> None:
        super().__init__(config)
        self._metadata = metadata
        self.templates = list(templates)
        self.label = label or config.display_name

    def _expect(self, payload: dict[str, Any] | None, what: str) -> dict[str, Any]:
        if payload is None:
            raise FetchError(what, "metadata source unavailable")
        return payload

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_posts(
        self, filter_token: str, page: int, ctx: ProviderContext
    ) -> list[Post]:
        listing, kind, genre_id = parse_filter(filter_token)
        if listing == "trending":
            call = self._metadata.trending(kind, page)
        elif listing == "top-rated":
            call = self._metadata.top_rated(kind, page)
        elif listing == "genre" and genre_id:
            call = self._metadata.discover_by_genre(kind, genre_id, page)
        else:
            call = self._metadata.popular(kind, page)

        payload = self._expect(await self._guard(call, ctx), filter_token)
        return results_to_posts(
            payload,
            default_kind=kind,
            provider_id=self.id,
            image_url=self._metadata.image_url,
        )

    async def search(self, query: str, page: int, ctx: ProviderContext) -> list[Post]:
        payload = self._expect(
            await self._guard(self._metadata.search(query, page), ctx), query
        )
        return results_to_posts(
            payload,
            default_kind="movie",
            provider_id=self.id,
            image_url=self._metadata.image_url,
        )

    async def get_metadata(self, link: str, ctx: ProviderContext) -> Info:
        parsed = parse_title_link(link)
        if parsed is None:
            raise ProviderError(f"{self.id}: unrecognised link {link!r}")
        kind, tmdb_id = parsed
        details = self._expect(
            await self._guard(self._metadata.details(kind, tmdb_id), ctx), link
        )
        return details_to_info(
            details,
            kind=kind,
            tmdb_id=tmdb_id,
            provider_id=self.id,
            image_url=self._metadata.image_url,
        )

    async def list_episodes(self, url: str, ctx: ProviderContext) -> list[EpisodeLink]:
        parsed = parse_season_link(url)
        if parsed is None:
            raise ProviderError(f"{self.id}: unrecognised season link {url!r}")
        tmdb_id, season_number = parsed
        season = self._expect(
            await self._guard(self._metadata.season(tmdb_id, season_number), ctx), url
        )
        return season_to_episodes(
            season,
            tmdb_id=tmdb_id,
            season_number=season_number,
            image_url=self._metadata.image_url,
        )

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    async def get_streams(
        self, link: str, kind: ContentKind, ctx: ProviderContext
    ) -> list[Stream]:
        raise_if_cancelled(ctx.cancel)
        return build_template_streams(self.label, self.templates, link, kind)

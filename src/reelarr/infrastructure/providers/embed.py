"""Embed-template providers: streams built from URL patterns, no I/O."""

from __future__ import annotations

import re

from reelarr.domain.entities.media import ContentKind, Stream, StreamKind
from reelarr.domain.providers.base import Capability, ProviderConfig, ProviderContext
from reelarr.infrastructure.common.cancellation import raise_if_cancelled
from reelarr.infrastructure.common.content_id import extract_content_id

from .base import ProviderBase

_EPISODE_RE = re.compile(r"/season/(\d+)/episode/(\d+)")


def render_template(template: str, kind: ContentKind, content_id: str, link: str = "") -> str:
    """Substitute ``{type}``, ``{id}``/``{tmdb}``/``{tmdbId}`` and, for
    episode links, ``{season}``/``{episode}``."""
    season, episode = "1", "1"
    m = _EPISODE_RE.search(link)
    if m:
        season, episode = m.group(1), m.group(2)
    return (
        template.replace("{type}", kind)
        .replace("{tmdbId}", content_id)
        .replace("{tmdb}", content_id)
        .replace("{id}", content_id)
        .replace("{season}", season)
        .replace("{episode}", episode)
    )


def build_template_streams(
    label: str,
    templates: list[str],
    link: str,
    kind: ContentKind,
) -> list[Stream]:
    """One iframe stream per template, labelled ``label``, ``label 2``, ...

    Returns ``[]`` when no content id can be parsed from *link*.
    """
    content_id = extract_content_id(link)
    if content_id is None:
        return []
    return [
        Stream(
            server_label=label if index == 0 else f"{label} {index + 1}",
            url=render_template(template, kind, content_id, link),
            kind=StreamKind.IFRAME,
        )
        for index, template in enumerate(templates)
    ]


class EmbedTemplateProvider(ProviderBase):
    """Streams-only provider over a fixed list of embed URL templates."""

    capabilities = Capability.STREAMS

    def __init__(
        self,
        config: ProviderConfig,
        templates: list[str],
        *,
        label: str | None = None,
    ) -> None:
        super().__init__(config)
        self.templates = list(templates)
        self.label = label or config.display_name

    async def get_streams(
        self, link: str, kind: ContentKind, ctx: ProviderContext
    ) -> list[Stream]:
        raise_if_cancelled(ctx.cancel)
        streams = build_template_streams(self.label, self.templates, link, kind)
        if not streams:
            self._log.debug("embed_link_unparseable", provider=self.id, link=link)
        return streams

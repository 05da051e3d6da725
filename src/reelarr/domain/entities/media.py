"""Domain entities for catalog listings, metadata and playable streams.

Pure value objects: no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

ContentKind = Literal["movie", "tv"]
FilterKind = Literal["movie", "tv", "both"]
SourceType = Literal["api", "scraper", "embed"]

CONTENT_KINDS: frozenset[str] = frozenset({"movie", "tv"})


class StreamKind(str, Enum):
    """How a client is expected to play a stream URL."""

    IFRAME = "iframe"  # embeddable player page
    DIRECT = "direct"  # progressive file (mkv/mp4)
    SEGMENTED = "segmented"  # HLS/DASH manifest


@dataclass(frozen=True)
class CatalogFilter:
    """A named listing a provider can serve (e.g. "Trending Movies")."""

    label: str
    filter_token: str
    kind: FilterKind = "both"


@dataclass(frozen=True)
class Genre:
    """Genre entry offered as an additional listing filter."""

    id: str
    label: str
    filter_token: str


@dataclass(frozen=True)
class Post:
    """A catalog entry as returned by listing and search."""

    id: str
    title: str
    image_url: str
    detail_link: str
    kind: ContentKind
    source_provider_id: str
    year: int | None = None
    rating: float | None = None


@dataclass(frozen=True)
class SeasonLink:
    """Pointer to the episode listing of one season."""

    title: str
    episodes_link: str


@dataclass(frozen=True)
class Info:
    """Detailed metadata for a single title."""

    title: str
    synopsis: str
    image_url: str
    source_provider_id: str
    backdrop_url: str | None = None
    rating: float | None = None
    year: int | None = None
    genres: list[str] = field(default_factory=list)
    cast: list[str] = field(default_factory=list)
    director: str | None = None
    duration: str | None = None
    season_links: list[SeasonLink] = field(default_factory=list)


@dataclass(frozen=True)
class EpisodeLink:
    """A single playable episode reference."""

    id: str
    title: str
    link: str
    episode: int
    season: int | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class Subtitle:
    """External subtitle track attached to a stream."""

    language: str
    url: str
    label: str = ""


@dataclass(frozen=True)
class Stream:
    """A playable source. ``url`` is always directly usable by a player."""

    server_label: str
    url: str
    kind: StreamKind
    quality: str | None = None
    extra_headers: dict[str, str] = field(default_factory=dict)
    subtitles: list[Subtitle] = field(default_factory=list)

"""Convert raw TMDB payloads into domain entities.

Links produced here use the ``/movie/<id>`` and ``/tv/<id>`` shapes that
embed-template providers parse back into content ids.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from reelarr.domain.entities.media import (
    CatalogFilter,
    ContentKind,
    EpisodeLink,
    Genre,
    Info,
    Post,
    SeasonLink,
)

ImageUrlFn = Callable[..., str]

_TOP_CAST = 10

_LISTING_RE = re.compile(r"^/?(trending|popular|top-rated)/(movie|tv)/?$")
_GENRE_RE = re.compile(r"^/?genre/(\d+)/?$")
_LINK_RE = re.compile(r"/?(movie|tv)/(\d+)")
_SEASON_RE = re.compile(r"/?tv/(\d+)/season/(\d+)")

TMDB_CATALOG: list[CatalogFilter] = [
    CatalogFilter("Trending Movies", "/trending/movie", "movie"),
    CatalogFilter("Popular Movies", "/popular/movie", "movie"),
    CatalogFilter("Top Rated Movies", "/top-rated/movie", "movie"),
    CatalogFilter("Trending TV Shows", "/trending/tv", "tv"),
    CatalogFilter("Popular TV Shows", "/popular/tv", "tv"),
    CatalogFilter("Top Rated TV Shows", "/top-rated/tv", "tv"),
]

TMDB_GENRES: list[Genre] = [
    Genre(gid, label, f"/genre/{gid}")
    for gid, label in (
        ("28", "Action"),
        ("12", "Adventure"),
        ("16", "Animation"),
        ("35", "Comedy"),
        ("80", "Crime"),
        ("99", "Documentary"),
        ("18", "Drama"),
        ("10751", "Family"),
        ("14", "Fantasy"),
        ("36", "History"),
        ("27", "Horror"),
        ("10402", "Music"),
        ("9648", "Mystery"),
        ("10749", "Romance"),
        ("878", "Science Fiction"),
        ("10770", "TV Movie"),
        ("53", "Thriller"),
        ("10752", "War"),
        ("37", "Western"),
    )
]


def parse_filter(filter_token: str) -> tuple[str, ContentKind, str | None]:
    """Split a listing filter into ``(listing, kind, genre_id)``.

    Unknown filters fall back to popular movies.
    """
    m = _LISTING_RE.match(filter_token)
    if m:
        return m.group(1), m.group(2), None  # type: ignore[return-value]
    m = _GENRE_RE.match(filter_token)
    if m:
        return "genre", "movie", m.group(1)
    return "popular", "movie", None


def parse_title_link(link: str) -> tuple[ContentKind, str] | None:
    """``"/tv/1399"`` -> ``("tv", "1399")``; ``None`` when unparseable."""
    m = _LINK_RE.search(link)
    if m is None:
        return None
    return m.group(1), m.group(2)  # type: ignore[return-value]


def parse_season_link(url: str) -> tuple[str, int] | None:
    m = _SEASON_RE.search(url)
    if m is None:
        return None
    return m.group(1), int(m.group(2))


def _year(item: dict[str, Any]) -> int | None:
    date_str = item.get("release_date") or item.get("first_air_date") or ""
    if len(date_str) >= 4 and date_str[:4].isdigit():
        return int(date_str[:4])
    return None


def _rating(item: dict[str, Any]) -> float | None:
    value = item.get("vote_average")
    return float(value) if isinstance(value, (int, float)) and value else None


def item_to_post(
    item: dict[str, Any],
    *,
    default_kind: ContentKind,
    provider_id: str,
    image_url: ImageUrlFn,
) -> Post | None:
    """Map one listing/search result; people and id-less items give ``None``."""
    media_type = item.get("media_type")
    if media_type == "person" or item.get("id") is None:
        return None
    kind: ContentKind = media_type if media_type in ("movie", "tv") else default_kind
    tmdb_id = str(item["id"])
    return Post(
        id=tmdb_id,
        title=item.get("title") or item.get("name") or "Unknown",
        image_url=image_url(item.get("poster_path")),
        detail_link=f"/{kind}/{tmdb_id}",
        kind=kind,
        source_provider_id=provider_id,
        year=_year(item),
        rating=_rating(item),
    )


def results_to_posts(
    payload: dict[str, Any],
    *,
    default_kind: ContentKind,
    provider_id: str,
    image_url: ImageUrlFn,
) -> list[Post]:
    posts: list[Post] = []
    for item in payload.get("results") or []:
        if not isinstance(item, dict):
            continue
        post = item_to_post(
            item,
            default_kind=default_kind,
            provider_id=provider_id,
            image_url=image_url,
        )
        if post is not None:
            posts.append(post)
    return posts


def details_to_info(
    details: dict[str, Any],
    *,
    kind: ContentKind,
    tmdb_id: str,
    provider_id: str,
    image_url: ImageUrlFn,
) -> Info:
    credits = details.get("credits") or {}
    cast = [c.get("name", "") for c in (credits.get("cast") or [])[:_TOP_CAST]]
    director = next(
        (c.get("name") for c in credits.get("crew") or [] if c.get("job") == "Director"),
        None,
    )
    runtime = details.get("runtime")
    if not runtime and details.get("episode_run_time"):
        runtime = details["episode_run_time"][0]

    season_links: list[SeasonLink] = []
    if kind == "tv":
        for n in range(1, int(details.get("number_of_seasons") or 0) + 1):
            season_links.append(
                SeasonLink(title=f"Season {n}", episodes_link=f"/tv/{tmdb_id}/season/{n}")
            )

    return Info(
        title=details.get("title") or details.get("name") or "Unknown",
        synopsis=details.get("overview") or "No description available",
        image_url=image_url(details.get("poster_path")),
        backdrop_url=image_url(details.get("backdrop_path"), "original") or None,
        rating=_rating(details),
        year=_year(details),
        genres=[g.get("name", "") for g in details.get("genres") or []],
        cast=[name for name in cast if name],
        director=director,
        duration=f"{runtime} min" if runtime else None,
        season_links=season_links,
        source_provider_id=provider_id,
    )


def season_to_episodes(
    season: dict[str, Any],
    *,
    tmdb_id: str,
    season_number: int,
    image_url: ImageUrlFn,
) -> list[EpisodeLink]:
    episodes: list[EpisodeLink] = []
    for ep in season.get("episodes") or []:
        number = ep.get("episode_number")
        if not isinstance(number, int):
            continue
        episodes.append(
            EpisodeLink(
                id=str(ep.get("id") or f"{tmdb_id}-{season_number}-{number}"),
                title=ep.get("name") or f"Episode {number}",
                link=f"/tv/{tmdb_id}/season/{season_number}/episode/{number}",
                episode=number,
                season=season_number,
                image_url=image_url(ep.get("still_path")) or None,
            )
        )
    return episodes

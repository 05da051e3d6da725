"""Tests for the concrete providers (embed templates, TMDB-backed,
scraper) and the static provider table."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx

from reelarr.domain.entities.media import Stream, StreamKind
from reelarr.domain.providers.base import (
    Capability,
    ProviderConfig,
    ProviderContext,
    ProviderProtocol,
)
from reelarr.domain.providers.exceptions import (
    CapabilityNotSupportedError,
    FetchError,
    OperationCancelledError,
    ProviderError,
    ProviderUnavailableError,
)
from reelarr.infrastructure.common.html_selectors import parse_html
from reelarr.infrastructure.common.http_fetch import HttpFetcher
from reelarr.infrastructure.extractors import ExtractorRegistry, PixeldrainExtractor
from reelarr.infrastructure.providers.catalog import (
    EMBED_HOSTS,
    SCRAPER_PROVIDERS,
    TMDB_PROVIDERS,
    build_default_providers,
)
from reelarr.infrastructure.providers.embed import (
    EmbedTemplateProvider,
    build_template_streams,
    render_template,
)
from reelarr.infrastructure.providers.scraper import ScraperProvider, clean_title
from reelarr.infrastructure.providers.tmdb_backed import TmdbProvider

_BASE = "https://vega.example"


def _config(provider_id: str = "p", **kwargs: Any) -> ProviderConfig:
    kwargs.setdefault("display_name", provider_id.upper())
    return ProviderConfig(id=provider_id, **kwargs)


def _image_url(path: str | None, size: str = "w500") -> str:
    return f"https://img.example/{size}{path}" if path else ""


@pytest.fixture()
def metadata() -> AsyncMock:
    source = AsyncMock()
    source.image_url = MagicMock(side_effect=_image_url)
    return source


# ---------------------------------------------------------------------------
# Embed templates
# ---------------------------------------------------------------------------


class TestRenderTemplate:
    def test_movie(self) -> None:
        url = render_template("https://e.example/embed/{type}/{id}", "movie", "603")
        assert url == "https://e.example/embed/movie/603"

    def test_aliases(self) -> None:
        url = render_template("https://e.example/?a={tmdb}&b={tmdbId}", "movie", "7")
        assert url == "https://e.example/?a=7&b=7"

    def test_episode_link(self) -> None:
        url = render_template(
            "https://e.example/{type}/{id}/{season}/{episode}",
            "tv",
            "1399",
            "/tv/1399/season/3/episode/9",
        )
        assert url == "https://e.example/tv/1399/3/9"

    def test_season_episode_default_to_one(self) -> None:
        url = render_template("https://e.example/{id}/{season}-{episode}", "tv", "1399")
        assert url == "https://e.example/1399/1-1"


class TestBuildTemplateStreams:
    def test_labels_numbered_after_first(self) -> None:
        streams = build_template_streams(
            "VidSrc",
            ["https://a.example/{id}", "https://b.example/{id}", "https://c.example/{id}"],
            "/movie/603",
            "movie",
        )
        assert [s.server_label for s in streams] == ["VidSrc", "VidSrc 2", "VidSrc 3"]
        assert all(s.kind is StreamKind.IFRAME for s in streams)
        assert streams[1].url == "https://b.example/603"

    def test_bare_numeric_id(self) -> None:
        streams = build_template_streams("X", ["https://a.example/{id}"], " 42 ", "movie")
        assert streams[0].url == "https://a.example/42"

    def test_unparseable_link(self) -> None:
        assert build_template_streams("X", ["https://a/{id}"], "/about", "movie") == []


class TestEmbedTemplateProvider:
    @pytest.mark.asyncio()
    async def test_streams(self) -> None:
        provider = EmbedTemplateProvider(
            _config("filemoon"), ["https://filemoon.example/e/{tmdbId}"]
        )
        streams = await provider.get_streams("/movie/603", "movie", ProviderContext())
        assert [s.url for s in streams] == ["https://filemoon.example/e/603"]
        assert streams[0].server_label == "FILEMOON"

    @pytest.mark.asyncio()
    async def test_unsupported_operation(self) -> None:
        provider = EmbedTemplateProvider(_config("filemoon"), ["https://f/{id}"])
        assert provider.capabilities == Capability.STREAMS
        with pytest.raises(CapabilityNotSupportedError):
            await provider.list_posts("", 1, ProviderContext())

    @pytest.mark.asyncio()
    async def test_cancelled(self) -> None:
        cancel = asyncio.Event()
        cancel.set()
        provider = EmbedTemplateProvider(_config("filemoon"), ["https://f/{id}"])
        with pytest.raises(OperationCancelledError):
            await provider.get_streams(
                "/movie/603", "movie", ProviderContext(cancel=cancel)
            )


# ---------------------------------------------------------------------------
# TMDB-backed provider
# ---------------------------------------------------------------------------

_LISTING = {
    "results": [
        {
            "id": 603,
            "title": "The Matrix",
            "poster_path": "/matrix.jpg",
            "release_date": "1999-03-30",
            "vote_average": 8.2,
        },
        {"id": 1, "name": "Somebody", "media_type": "person"},
    ]
}


class TestTmdbProvider:
    @pytest.mark.asyncio()
    async def test_trending_listing(self, metadata: AsyncMock) -> None:
        metadata.trending.return_value = _LISTING
        provider = TmdbProvider(_config("vidsrc"), metadata, [])
        posts = await provider.list_posts("/trending/tv", 2, ProviderContext())

        metadata.trending.assert_awaited_once_with("tv", 2)
        assert len(posts) == 1
        post = posts[0]
        assert post.kind == "tv"
        assert post.detail_link == "/tv/603"
        assert post.year == 1999
        assert post.image_url == "https://img.example/w500/matrix.jpg"
        assert post.source_provider_id == "vidsrc"

    @pytest.mark.asyncio()
    async def test_genre_listing(self, metadata: AsyncMock) -> None:
        metadata.discover_by_genre.return_value = {"results": []}
        provider = TmdbProvider(_config(), metadata, [])
        await provider.list_posts("/genre/28", 1, ProviderContext())
        metadata.discover_by_genre.assert_awaited_once_with("movie", "28", 1)

    @pytest.mark.asyncio()
    async def test_unknown_filter_uses_popular_movies(self, metadata: AsyncMock) -> None:
        metadata.popular.return_value = {"results": []}
        provider = TmdbProvider(_config(), metadata, [])
        await provider.list_posts("whatever", 1, ProviderContext())
        metadata.popular.assert_awaited_once_with("movie", 1)

    @pytest.mark.asyncio()
    async def test_source_unavailable_raises(self, metadata: AsyncMock) -> None:
        metadata.top_rated.return_value = None
        provider = TmdbProvider(_config(), metadata, [])
        with pytest.raises(FetchError):
            await provider.list_posts("/top-rated/movie", 1, ProviderContext())

    @pytest.mark.asyncio()
    async def test_search(self, metadata: AsyncMock) -> None:
        metadata.search.return_value = {
            "results": [{"id": 1399, "name": "Game of Thrones", "media_type": "tv"}]
        }
        provider = TmdbProvider(_config(), metadata, [])
        posts = await provider.search("thrones", 1, ProviderContext())
        assert [(p.title, p.kind) for p in posts] == [("Game of Thrones", "tv")]

    @pytest.mark.asyncio()
    async def test_metadata_with_seasons(self, metadata: AsyncMock) -> None:
        metadata.details.return_value = {
            "name": "Game of Thrones",
            "overview": "Winter is coming.",
            "poster_path": "/got.jpg",
            "backdrop_path": "/got-bg.jpg",
            "first_air_date": "2011-04-17",
            "number_of_seasons": 2,
            "episode_run_time": [57],
            "genres": [{"id": 18, "name": "Drama"}],
            "credits": {
                "cast": [{"name": "Emilia Clarke"}, {"name": "Kit Harington"}],
                "crew": [{"name": "Someone", "job": "Writer"}],
            },
        }
        provider = TmdbProvider(_config("vidsrc"), metadata, [])
        info = await provider.get_metadata("/tv/1399", ProviderContext())

        metadata.details.assert_awaited_once_with("tv", "1399")
        assert info.title == "Game of Thrones"
        assert info.year == 2011
        assert info.duration == "57 min"
        assert info.director is None
        assert info.cast == ["Emilia Clarke", "Kit Harington"]
        assert info.backdrop_url == "https://img.example/original/got-bg.jpg"
        assert [s.episodes_link for s in info.season_links] == [
            "/tv/1399/season/1",
            "/tv/1399/season/2",
        ]

    @pytest.mark.asyncio()
    async def test_metadata_unrecognised_link(self, metadata: AsyncMock) -> None:
        provider = TmdbProvider(_config(), metadata, [])
        with pytest.raises(ProviderError):
            await provider.get_metadata("/about", ProviderContext())

    @pytest.mark.asyncio()
    async def test_episodes(self, metadata: AsyncMock) -> None:
        metadata.season.return_value = {
            "episodes": [
                {"id": 11, "episode_number": 1, "name": "Pilot", "still_path": "/s1.jpg"},
                {"id": 12, "episode_number": 2, "name": ""},
                {"name": "broken"},
            ]
        }
        provider = TmdbProvider(_config(), metadata, [])
        episodes = await provider.list_episodes("/tv/1399/season/2", ProviderContext())

        metadata.season.assert_awaited_once_with("1399", 2)
        assert [e.title for e in episodes] == ["Pilot", "Episode 2"]
        assert episodes[0].link == "/tv/1399/season/2/episode/1"
        assert episodes[0].season == 2
        assert episodes[1].image_url is None

    @pytest.mark.asyncio()
    async def test_streams_from_templates(self, metadata: AsyncMock) -> None:
        provider = TmdbProvider(
            _config("vidsrc", display_name="VidSrc"),
            metadata,
            ["https://vidsrc.example/embed/{type}/{id}"],
        )
        streams = await provider.get_streams("/movie/603", "movie", ProviderContext())
        assert streams == [
            Stream(
                server_label="VidSrc",
                url="https://vidsrc.example/embed/movie/603",
                kind=StreamKind.IFRAME,
            )
        ]

    @pytest.mark.asyncio()
    async def test_cancel_aborts_pending_call(self, metadata: AsyncMock) -> None:
        cancel = asyncio.Event()

        async def _slow(kind: str, page: int) -> dict[str, Any]:
            await asyncio.sleep(5)
            return _LISTING

        metadata.trending.side_effect = _slow
        provider = TmdbProvider(_config(), metadata, [])
        task = asyncio.create_task(
            provider.list_posts("/trending/movie", 1, ProviderContext(cancel=cancel))
        )
        await asyncio.sleep(0.01)
        cancel.set()
        with pytest.raises(OperationCancelledError):
            await asyncio.wait_for(task, timeout=1.0)


# ---------------------------------------------------------------------------
# Scraper provider
# ---------------------------------------------------------------------------

_LISTING_HTML = """
<html><body>
<div class="blog-items">
  <article>
    <a href="/oppenheimer-2023/" title="Download Oppenheimer (2023) Hindi 1080p">
      <img data-src="/wp/opp.jpg" src="data:image/gif;base64,R0lGOD">
    </a>
  </article>
  <article>
    <a href="https://vega.example/the-boys-s4/" title="Download The Boys (Season 4)">
      <img src="https://img.example/boys.jpg">
    </a>
  </article>
  <article><span>no anchor here</span></article>
</div>
</body></html>
"""

_DETAIL_HTML = """
<html><body>
<h1 class="entry-title">Download Oppenheimer (2023) Hindi</h1>
<div class="entry-content">
  <img src="/wp/poster.jpg">
  <p>The story of the atomic bomb.</p>
  <p><strong>Cast:</strong> Cillian Murphy, Emily Blunt</p>
</div>
</body></html>
"""

_LINKS_HTML = """
<div class="entry-content">
  <a href="https://hubcloud.example/drive/1">HubCloud</a>
  <a href="https://new.filepress.example/file/2">FilePress</a>
  <a href="https://gofile.io/d/abc">GoFile</a>
  <a href="https://pixeldrain.com/u/xyz">Pixeldrain</a>
  <a href="/about">About</a>
  <a href="https://hubcloud.example/drive/1">HubCloud again</a>
</div>
"""


def _scraper(
    client: httpx.AsyncClient, extractors: ExtractorRegistry | None = None
) -> ScraperProvider:
    return ScraperProvider(
        _config("vega", source_type="scraper"),
        HttpFetcher(client),
        extractors or ExtractorRegistry([PixeldrainExtractor()]),
    )


class TestCleanTitle:
    def test_year(self) -> None:
        assert clean_title("Download Oppenheimer (2023) Hindi 1080p") == (
            "Oppenheimer",
            2023,
        )

    def test_season(self) -> None:
        assert clean_title("Download The Boys (Season 4)") == ("The Boys", None)

    def test_plain(self) -> None:
        assert clean_title("Plain Title") == ("Plain Title", None)


class TestScraperParsing:
    @pytest.mark.asyncio()
    async def test_parse_posts(self) -> None:
        async with httpx.AsyncClient() as client:
            provider = _scraper(client)
            posts = provider.parse_posts(parse_html(_LISTING_HTML), _BASE)

        assert [(p.title, p.year, p.kind) for p in posts] == [
            ("Oppenheimer", 2023, "movie"),
            ("The Boys", None, "tv"),
        ]
        assert posts[0].detail_link == "https://vega.example/oppenheimer-2023/"
        assert posts[0].image_url == "https://vega.example/wp/opp.jpg"
        assert posts[0].source_provider_id == "vega"

    @pytest.mark.asyncio()
    async def test_find_landing_links(self) -> None:
        async with httpx.AsyncClient() as client:
            links = _scraper(client).find_landing_links(
                _LINKS_HTML, "https://vega.example/movie/"
            )
        assert links == [
            "https://hubcloud.example/drive/1",
            "https://new.filepress.example/file/2",
            "https://gofile.io/d/abc",
            "https://pixeldrain.com/u/xyz",
        ]


class TestScraperProvider:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_list_posts_url(self) -> None:
        route = respx.get(f"{_BASE}/category/movies/page/2/").respond(
            200, text=_LISTING_HTML
        )
        async with httpx.AsyncClient() as client:
            posts = await _scraper(client).list_posts(
                "category/movies", 2, ProviderContext(base_url=_BASE + "/")
            )
        assert route.called
        assert len(posts) == 2

    @respx.mock
    @pytest.mark.asyncio()
    async def test_latest_is_front_page(self) -> None:
        route = respx.get(f"{_BASE}/page/1/").respond(200, text=_LISTING_HTML)
        async with httpx.AsyncClient() as client:
            await _scraper(client).list_posts("", 1, ProviderContext(base_url=_BASE))
        assert route.called

    @respx.mock
    @pytest.mark.asyncio()
    async def test_search_query_encoded(self) -> None:
        route = respx.get(f"{_BASE}/page/1/", params={"s": "the boys"}).respond(
            200, text=_LISTING_HTML
        )
        async with httpx.AsyncClient() as client:
            await _scraper(client).search("the boys", 1, ProviderContext(base_url=_BASE))
        assert route.called

    @pytest.mark.asyncio()
    async def test_missing_base_url(self) -> None:
        async with httpx.AsyncClient() as client:
            with pytest.raises(ProviderUnavailableError):
                await _scraper(client).list_posts("", 1, ProviderContext())

    @respx.mock
    @pytest.mark.asyncio()
    async def test_metadata(self) -> None:
        respx.get(f"{_BASE}/oppenheimer-2023/").respond(200, text=_DETAIL_HTML)
        async with httpx.AsyncClient() as client:
            info = await _scraper(client).get_metadata(
                "/oppenheimer-2023/", ProviderContext(base_url=_BASE)
            )
        assert info.title == "Oppenheimer"
        assert info.year == 2023
        assert info.synopsis == "The story of the atomic bomb."
        assert info.image_url == "https://vega.example/wp/poster.jpg"
        assert info.cast == ["Cillian Murphy", "Emily Blunt"]
        assert info.source_provider_id == "vega"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_streams_resolved_through_extractors(self) -> None:
        respx.get(f"{_BASE}/oppenheimer-2023/").respond(200, text=_LINKS_HTML)
        shared = Stream(server_label="A", url="https://cdn.example/a.mkv", kind=StreamKind.DIRECT)
        extra = Stream(server_label="B", url="https://cdn.example/b.mkv", kind=StreamKind.DIRECT)
        results = {
            "https://hubcloud.example/drive/1": [shared],
            "https://new.filepress.example/file/2": [shared, extra],
        }
        extractors = MagicMock(spec=ExtractorRegistry)
        extractors.has_dedicated.return_value = False
        extractors.extract = AsyncMock(
            side_effect=lambda url, cancel=None: results.get(url, [])
        )

        async with httpx.AsyncClient() as client:
            streams = await _scraper(client, extractors).get_streams(
                "/oppenheimer-2023/", "movie", ProviderContext(base_url=_BASE)
            )

        assert [s.url for s in streams] == [
            "https://cdn.example/a.mkv",
            "https://cdn.example/b.mkv",
        ]
        assert extractors.extract.await_count == 3

    @respx.mock
    @pytest.mark.asyncio()
    async def test_streams_without_landing_links(self) -> None:
        respx.get(f"{_BASE}/nothing/").respond(200, text="<p>No links</p>")
        extractors = MagicMock(spec=ExtractorRegistry)
        extractors.has_dedicated.return_value = False
        extractors.extract = AsyncMock()
        async with httpx.AsyncClient() as client:
            streams = await _scraper(client, extractors).get_streams(
                "/nothing/", "movie", ProviderContext(base_url=_BASE)
            )
        assert streams == []
        extractors.extract.assert_not_awaited()


# ---------------------------------------------------------------------------
# Static provider table
# ---------------------------------------------------------------------------


class TestBuildDefaultProviders:
    @pytest.mark.asyncio()
    async def test_table(self, metadata: AsyncMock) -> None:
        async with httpx.AsyncClient() as client:
            providers = build_default_providers(
                HttpFetcher(client), metadata, ExtractorRegistry([])
            )

        ids = [p.config.id for p in providers]
        assert len(ids) == len(set(ids))
        assert len(providers) == (
            len(TMDB_PROVIDERS) + len(SCRAPER_PROVIDERS) + len(EMBED_HOSTS)
        )
        assert all(isinstance(p, ProviderProtocol) for p in providers)

        by_id = {p.config.id: p for p in providers}
        assert by_id["vidsrc"].capabilities == Capability.FULL
        assert by_id["vidsrc"].config.priority == 1
        assert by_id["vega"].config.base_url_key == "Vega"
        assert by_id["vega"].config.base_url == ""
        assert Capability.SEARCH in by_id["vega"].capabilities
        assert Capability.EPISODES not in by_id["vega"].capabilities
        assert by_id["filemoon"].capabilities == Capability.STREAMS

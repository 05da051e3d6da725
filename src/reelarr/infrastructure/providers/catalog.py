"""Static provider table, built once at startup.

Three shapes are registered:

* TMDB-backed providers: shared TMDB listing/metadata, per-provider embed
  templates for streams.
* Scraper-backed WordPress download sites; their base URL comes from the
  remote URL document (``base_url_key``).
* Pure embed-template file hosts (streams only).
"""

from __future__ import annotations

from reelarr.domain.entities.media import CatalogFilter
from reelarr.domain.ports.metadata_source import MetadataSourcePort
from reelarr.domain.providers.base import ProviderConfig, ProviderProtocol
from reelarr.infrastructure.common.http_fetch import HttpFetcher
from reelarr.infrastructure.extractors.registry import ExtractorRegistry
from reelarr.infrastructure.metadata.tmdb_mapping import TMDB_CATALOG, TMDB_GENRES

from .embed import EmbedTemplateProvider
from .scraper import ScraperProvider
from .tmdb_backed import TmdbProvider

# (id, display name, priority, templates)
TMDB_PROVIDERS: tuple[tuple[str, str, int, tuple[str, ...]], ...] = (
    (
        "vidsrc",
        "VidSrc",
        1,
        (
            "https://vidsrc.xyz/embed/{type}/{id}",
            "https://vidsrc.pro/embed/{type}/{id}",
            "https://vidsrc.me/embed/{type}?tmdb={id}",
            "https://vidsrc.cc/v2/embed/{type}/{id}",
            "https://vidsrc.net/embed/{type}/{id}",
            "https://vidsrc.to/embed/{type}/{id}",
            "https://vidsrc.rip/embed/{type}/{id}",
            "https://vidsrc.stream/embed/{type}/{id}",
            "https://vidsrc.vip/embed/{type}/{id}",
            "https://vidsrc.pm/embed/{type}/{id}",
            "https://vidsrc.icu/embed/{type}/{id}",
            "https://vidsrc.in/embed/{type}/{id}",
        ),
    ),
    ("embedapi", "Embed-API", 2, ("https://player.embed-api.stream/?id={id}",)),
    (
        "superembed",
        "SuperEmbed",
        3,
        (
            "https://multiembed.mov/?video_id={id}&tmdb=1",
            "https://multiembed.mov/directstream.php?video_id={id}&tmdb=1",
            "https://superembed.stream/embed/{id}",
        ),
    ),
    (
        "2embed",
        "2Embed",
        4,
        (
            "https://www.2embed.cc/embed/{id}",
            "https://www.2embed.skin/embed/{id}",
            "https://2embed.org/embed/{id}",
        ),
    ),
    ("godriveplayer", "GoDrivePlayer", 5, ("https://godriveplayer.com/embed/{type}/{id}",)),
    ("embedsu", "Embed.su", 6, ("https://embed.su/embed/{type}/{id}",)),
    ("nontongo", "NontonGo", 7, ("https://www.nontongo.win/embed/{type}/{id}",)),
    (
        "autoembed",
        "Autoembed",
        8,
        ("https://autoembed.co/movie/tmdb/{id}", "https://autoembed.cc/movie/tmdb/{id}"),
    ),
    (
        "vidlink",
        "VidLink",
        9,
        ("https://vidlink.pro/{type}/{id}", "https://vidlink.org/embed/{type}/{id}"),
    ),
    (
        "smashystream",
        "Smashystream",
        10,
        (
            "https://player.smashy.stream/{type}/{id}",
            "https://embed.smashystream.com/{type}/{id}",
        ),
    ),
    ("moviesapi", "MoviesAPI", 11, ("https://moviesapi.club/{type}/{id}",)),
    ("embedsoap", "Embedsoap", 12, ("https://www.embedsoap.com/embed/{type}?id={id}",)),
    ("embedflix", "Embedflix", 13, ("https://embedflix.net/{type}/{id}",)),
    ("frembed", "Frembed", 14, ("https://frembed.com/api/film.php?id={id}",)),
    ("embedplayer", "Embedplayer", 15, ("https://embedplayer.site/embed/{type}/{id}",)),
    ("vidbinge", "Vidbinge", 16, ("https://vidbinge.com/embed/{type}/{id}",)),
    ("vidfast", "VidFast", 17, ("https://vidfast.to/embed/{type}/{id}",)),
    ("moviee", "Moviee", 18, ("https://moviee.tv/embed/{type}/{id}",)),
    ("warezcdn", "WarezCDN", 19, ("https://embed.warezcdn.com/{type}/{id}",)),
    ("embedv", "EmbedV", 20, ("https://www.embedv.net/embed/{type}/{id}",)),
    (
        "showbox",
        "ShowBox",
        21,
        (
            "https://www.showbox.media/embed/{type}/{id}",
            "https://showbox.to/embed/{type}?id={id}",
        ),
    ),
    ("moviebox", "MovieBox", 23, ("https://moviebox.ng/embed/{type}/{id}",)),
    (
        "multimovies",
        "MultiMovies",
        22,
        (
            "https://multimovies.cloud/embed/{type}/{id}",
            "https://multimovies.top/embed/{id}",
            "https://multistream.to/e/{id}",
        ),
    ),
)

SCRAPER_CATALOG: tuple[CatalogFilter, ...] = (
    CatalogFilter("Latest", ""),
    CatalogFilter("Movies", "category/movies", "movie"),
    CatalogFilter("Web Series", "category/web-series", "tv"),
    CatalogFilter("Bollywood", "category/bollywood-movies", "movie"),
    CatalogFilter("Hollywood", "category/hollywood-movies", "movie"),
    CatalogFilter("South Indian", "category/south-indian-movies", "movie"),
    CatalogFilter("Dual Audio", "category/dual-audio-movies", "movie"),
    CatalogFilter("4K Movies", "category/4k-movies", "movie"),
)

# (id, display name, priority, key in the remote URL document)
SCRAPER_PROVIDERS: tuple[tuple[str, str, int, str], ...] = (
    ("vega", "VegaMovies", 25, "Vega"),
    ("moviesmod", "Moviesmod", 26, "Moviesmod"),
    ("uhdmovies", "UHD Movies", 27, "UhdMovies"),
)

# (id, display name, priority, template)
EMBED_HOSTS: tuple[tuple[str, str, int, str], ...] = (
    ("vidplay", "Vidplay", 50, "https://vidplay.online/embed/{type}/{tmdbId}"),
    ("filemoon", "Filemoon", 51, "https://filemoon.sx/e/{tmdbId}"),
    ("doodstream", "Doodstream", 52, "https://dood.wf/e/{tmdbId}"),
    ("streamtape", "Streamtape", 53, "https://streamtape.com/e/{tmdbId}"),
    ("mixdrop", "Mixdrop", 54, "https://mixdrop.co/e/{tmdbId}"),
    ("upstream", "Upstream", 55, "https://upstream.to/embed-{tmdbId}.html"),
    ("streamwish", "Streamwish", 56, "https://streamwish.to/e/{tmdbId}"),
    ("voe", "Voe", 57, "https://voe.sx/e/{tmdbId}"),
    ("streamsb", "StreamSB", 58, "https://streamsb.net/e/{tmdbId}"),
    ("fembed", "Fembed", 59, "https://fembed.com/v/{tmdbId}"),
    ("vidoza", "Vidoza", 60, "https://vidoza.net/embed-{tmdbId}.html"),
    ("streamlare", "Streamlare", 61, "https://streamlare.com/e/{tmdbId}"),
    ("vidmoly", "Vidmoly", 62, "https://vidmoly.to/embed-{tmdbId}.html"),
    ("upcloud", "UpCloud", 63, "https://upcloud.to/embed-{tmdbId}.html"),
    ("videovard", "VideoVard", 64, "https://videovard.sx/v/{tmdbId}"),
    ("vidzee", "VidZee", 79, "https://vidzee.cc/embed/{type}/{tmdbId}"),
)


def build_default_providers(
    fetcher: HttpFetcher,
    metadata: MetadataSourcePort,
    extractors: ExtractorRegistry,
) -> list[ProviderProtocol]:
    """Instantiate every provider of the static table."""
    providers: list[ProviderProtocol] = []

    for provider_id, name, priority, templates in TMDB_PROVIDERS:
        config = ProviderConfig(
            id=provider_id,
            display_name=name,
            priority=priority,
            catalog_filters=list(TMDB_CATALOG),
            genres=list(TMDB_GENRES),
            source_type="api",
        )
        providers.append(TmdbProvider(config, metadata, list(templates)))

    for provider_id, name, priority, url_key in SCRAPER_PROVIDERS:
        config = ProviderConfig(
            id=provider_id,
            display_name=name,
            priority=priority,
            catalog_filters=list(SCRAPER_CATALOG),
            source_type="scraper",
            base_url_key=url_key,
        )
        providers.append(ScraperProvider(config, fetcher, extractors))

    for provider_id, name, priority, template in EMBED_HOSTS:
        config = ProviderConfig(
            id=provider_id,
            display_name=name,
            priority=priority,
            source_type="embed",
        )
        providers.append(EmbedTemplateProvider(config, [template]))

    return providers

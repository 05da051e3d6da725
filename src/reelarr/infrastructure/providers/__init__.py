from .base import ProviderBase
from .catalog import build_default_providers
from .embed import EmbedTemplateProvider, build_template_streams
from .scraper import ScraperLayout, ScraperProvider, clean_title
from .tmdb_backed import TmdbProvider

__all__ = [
    "EmbedTemplateProvider",
    "ProviderBase",
    "ScraperLayout",
    "ScraperProvider",
    "TmdbProvider",
    "build_default_providers",
    "build_template_streams",
    "clean_title",
]

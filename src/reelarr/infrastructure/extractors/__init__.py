from .factory import create_extractor_registry
from .gdflix import GDFlixExtractor
from .generic import GenericExtractor, extract_from_html
from .gofile import GoFileExtractor
from .pixeldrain import PixeldrainExtractor, pixeldrain_api_url
from .redirect_chain import DEFAULT_RULES, LinkRule, RedirectChainExtractor
from .registry import ExtractorRegistry, extract_domain
from .token_exchange import TokenExchangeExtractor

__all__ = [
    "DEFAULT_RULES",
    "ExtractorRegistry",
    "GDFlixExtractor",
    "GenericExtractor",
    "GoFileExtractor",
    "LinkRule",
    "PixeldrainExtractor",
    "RedirectChainExtractor",
    "TokenExchangeExtractor",
    "create_extractor_registry",
    "extract_domain",
    "extract_from_html",
    "pixeldrain_api_url",
]

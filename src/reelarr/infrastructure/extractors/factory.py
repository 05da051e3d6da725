"""Build the default extractor registry."""

from __future__ import annotations

from reelarr.infrastructure.common.http_fetch import HttpFetcher

from .gdflix import GDFlixExtractor
from .generic import GenericExtractor
from .gofile import GoFileExtractor
from .pixeldrain import PixeldrainExtractor
from .redirect_chain import RedirectChainExtractor
from .registry import ExtractorRegistry
from .token_exchange import TokenExchangeExtractor


def create_extractor_registry(
    fetcher: HttpFetcher, *, timeout: float = 20.0
) -> ExtractorRegistry:
    return ExtractorRegistry(
        [
            RedirectChainExtractor(fetcher),
            TokenExchangeExtractor(fetcher),
            GoFileExtractor(fetcher),
            GDFlixExtractor(fetcher),
            PixeldrainExtractor(),
        ],
        fallback=GenericExtractor(fetcher),
        timeout=timeout,
    )

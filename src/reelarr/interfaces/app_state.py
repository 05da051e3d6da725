"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from reelarr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from reelarr.application.provider_manager import ProviderManager
    from reelarr.domain.ports import CachePort, MetadataSourcePort
    from reelarr.infrastructure.base_url import BaseUrlResolver
    from reelarr.infrastructure.common.http_fetch import HttpFetcher
    from reelarr.infrastructure.extractors import ExtractorRegistry
    from reelarr.infrastructure.metrics import MetricsCollector


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient
    fetcher: HttpFetcher

    # Metrics (zero-impact in-memory counters)
    metrics: MetricsCollector

    # Base URLs of scraper providers (remote document, 1 h TTL)
    base_url_resolver: BaseUrlResolver

    # TMDB metadata source shared by API-backed providers
    metadata: MetadataSourcePort

    # Landing page -> stream resolution
    extractors: ExtractorRegistry

    # Provider registry + aggregation
    provider_manager: ProviderManager

"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import structlog
from fastapi import FastAPI

from reelarr.application.provider_manager import ProviderManager
from reelarr.infrastructure.base_url import BaseUrlResolver
from reelarr.infrastructure.cache.cache_factory import create_cache
from reelarr.infrastructure.common.http_fetch import HttpFetcher, build_http_client
from reelarr.infrastructure.config.schema import AppConfig
from reelarr.infrastructure.extractors import create_extractor_registry
from reelarr.infrastructure.metadata import HttpxTmdbClient
from reelarr.infrastructure.metrics import MetricsCollector
from reelarr.infrastructure.providers import build_default_providers
from reelarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def apply_provider_overrides(manager: ProviderManager, config: AppConfig) -> None:
    """Apply per-provider YAML overrides (enabled, priority)."""
    for provider_id, override in config.provider_overrides.items():
        if manager.get_provider(provider_id) is None:
            log.warning("provider_override_unknown", provider=provider_id)
            continue
        if override.enabled is not None:
            manager.set_enabled(provider_id, override.enabled)
        if override.priority is not None:
            manager.set_priority(provider_id, override.priority)
        log.info(
            "provider_override_applied",
            provider=provider_id,
            override=override.model_dump(exclude_none=True),
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (response cache, TMDB cache)
        2. HTTP client + fetcher
        3. Base-URL resolver (prefetched, never raises)
        4. TMDB metadata source
        5. Extractor registry
        6. Provider manager + default provider table
    """
    state = cast(AppState, app.state)
    config = state.config

    # 0) Metrics collector (must exist before components that record)
    state.metrics = MetricsCollector()

    # 1) Cache
    cache = create_cache(
        config.cache_backend,
        directory=str(config.cache_dir),
        ttl_seconds=config.cache_ttl_seconds,
        max_concurrent=config.cache_max_concurrent,
    )
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache_backend)

    if config.environment == "dev":
        await cache.clear()
        log.debug("cache_cleared", environment="dev")

    # 2) HTTP client with 429/5xx retry
    state.http_client = build_http_client(
        timeout=config.http_timeout_seconds,
        user_agent=config.http_user_agent,
        follow_redirects=config.http_follow_redirects,
        max_retries=config.http_max_retries,
        backoff_base=config.http_backoff_base,
    )
    state.fetcher = HttpFetcher(
        state.http_client,
        cache=state.cache,
        response_ttl=config.http_response_ttl_seconds,
    )
    log.info("http_client_initialized", max_retries=config.http_max_retries)

    # 3) Base-URL resolver
    state.base_url_resolver = BaseUrlResolver(
        config.provider_url_document,
        http_client=state.http_client,
        ttl_seconds=config.base_url_ttl_seconds,
    )
    await state.base_url_resolver.prefetch()

    # 4) TMDB metadata source
    if not config.tmdb_api_key:
        log.warning("tmdb_api_key_missing", hint="catalog listing will be empty")
    state.metadata = HttpxTmdbClient(
        api_key=config.tmdb_api_key or "",
        http_client=state.http_client,
        cache=state.cache,
        language=config.tmdb_language,
    )

    # 5) Extractors
    state.extractors = create_extractor_registry(
        state.fetcher, timeout=config.extractor_timeout_seconds
    )
    log.info("extractors_initialized", extractors=state.extractors.names)

    # 6) Provider manager
    manager = ProviderManager(
        resolver=state.base_url_resolver,
        metrics=state.metrics,
        timeout=config.provider_timeout_seconds,
        max_concurrent=config.provider_max_concurrent,
    )
    manager.register_all(
        build_default_providers(state.fetcher, state.metadata, state.extractors)
    )
    apply_provider_overrides(manager, config)
    state.provider_manager = manager
    stats = manager.get_stats()
    log.info(
        "providers_registered",
        total=stats.total_count,
        enabled=stats.enabled_count,
    )

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")

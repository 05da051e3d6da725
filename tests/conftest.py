"""Shared test fixtures for the Reelarr test suite."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest

from reelarr.domain.entities.media import ContentKind, EpisodeLink, Info, Post, Stream
from reelarr.domain.providers.base import Capability, ProviderConfig, ProviderContext

# ---------------------------------------------------------------------------
# Fake provider
# ---------------------------------------------------------------------------


class FakeProvider:
    """Configurable provider satisfying ``ProviderProtocol``.

    ``results`` maps operation name to the return value; ``errors`` maps
    operation name to an exception instance to raise; ``delay`` sleeps
    before answering (for timeout/cancellation tests).
    """

    def __init__(
        self,
        provider_id: str,
        *,
        priority: int = 100,
        enabled: bool = True,
        capabilities: Capability = Capability.FULL,
        results: dict[str, Any] | None = None,
        errors: dict[str, Exception] | None = None,
        delay: float = 0.0,
        base_url: str = "https://example.com",
        base_url_key: str = "",
    ) -> None:
        self.config = ProviderConfig(
            id=provider_id,
            display_name=provider_id.upper(),
            priority=priority,
            enabled=enabled,
            base_url=base_url,
            base_url_key=base_url_key,
        )
        self.capabilities = capabilities
        self.results = results or {}
        self.errors = errors or {}
        self.delay = delay
        self.calls: list[tuple[str, ProviderContext]] = []

    async def _answer(self, operation: str, ctx: ProviderContext) -> Any:
        self.calls.append((operation, ctx))
        if self.delay:
            await asyncio.sleep(self.delay)
        if operation in self.errors:
            raise self.errors[operation]
        return self.results.get(operation, [])

    async def list_posts(
        self, filter_token: str, page: int, ctx: ProviderContext
    ) -> list[Post]:
        return await self._answer("list_posts", ctx)

    async def get_metadata(self, link: str, ctx: ProviderContext) -> Info:
        return await self._answer("get_metadata", ctx)

    async def get_streams(
        self, link: str, kind: ContentKind, ctx: ProviderContext
    ) -> list[Stream]:
        return await self._answer("get_streams", ctx)

    async def search(self, query: str, page: int, ctx: ProviderContext) -> list[Post]:
        return await self._answer("search", ctx)

    async def list_episodes(
        self, url: str, ctx: ProviderContext
    ) -> list[EpisodeLink]:
        return await self._answer("list_episodes", ctx)


@pytest.fixture()
def make_provider() -> type[FakeProvider]:
    """Constructor of configurable fake providers."""
    return FakeProvider


# ---------------------------------------------------------------------------
# Mock port fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=True)
    cache.clear = AsyncMock()
    cache.aclose = AsyncMock()
    return cache


@pytest.fixture()
def mock_resolver() -> AsyncMock:
    """Mock BaseUrlResolverPort."""
    resolver = AsyncMock()
    resolver.resolve = AsyncMock(return_value="https://resolved.example")
    resolver.resolve_all = AsyncMock(return_value={})
    return resolver

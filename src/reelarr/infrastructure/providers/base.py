"""Shared base class for providers.

The domain layer only knows ``ProviderProtocol``; concrete providers
inherit from ``ProviderBase`` and override the operations their
``capabilities`` flag declares.  Undeclared operations raise
``CapabilityNotSupportedError``.
"""

from __future__ import annotations

from typing import Awaitable, TypeVar

import structlog

from reelarr.domain.entities.media import ContentKind, EpisodeLink, Info, Post, Stream
from reelarr.domain.providers.base import Capability, ProviderConfig, ProviderContext
from reelarr.domain.providers.exceptions import (
    CapabilityNotSupportedError,
    ProviderUnavailableError,
)
from reelarr.infrastructure.common.cancellation import run_cancellable

T = TypeVar("T")


class ProviderBase:
    """Shared base for all providers.

    Subclasses **must** set ``capabilities`` and override the matching
    operations.
    """

    capabilities: Capability = Capability.NONE

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config
        self._log = structlog.get_logger(f"reelarr.provider.{config.id}")

    @property
    def id(self) -> str:
        return self.config.id

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.config.id!r}>"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_base_url(self, ctx: ProviderContext) -> str:
        """Base URL from the context; missing config means unavailable."""
        if not ctx.base_url:
            raise ProviderUnavailableError(f"{self.config.id}: base URL not configured")
        return ctx.base_url.rstrip("/")

    async def _guard(self, awaitable: Awaitable[T], ctx: ProviderContext) -> T:
        """Await *awaitable*, aborting when the caller cancels."""
        return await run_cancellable(awaitable, ctx.cancel)

    def _unsupported(self, operation: str) -> CapabilityNotSupportedError:
        return CapabilityNotSupportedError(
            f"{self.config.id} does not support {operation}"
        )

    # ------------------------------------------------------------------
    # Operations (override per capability)
    # ------------------------------------------------------------------

    async def list_posts(
        self, filter_token: str, page: int, ctx: ProviderContext
    ) -> list[Post]:
        raise self._unsupported("list_posts")

    async def get_metadata(self, link: str, ctx: ProviderContext) -> Info:
        raise self._unsupported("get_metadata")

    async def get_streams(
        self, link: str, kind: ContentKind, ctx: ProviderContext
    ) -> list[Stream]:
        raise self._unsupported("get_streams")

    async def search(self, query: str, page: int, ctx: ProviderContext) -> list[Post]:
        raise self._unsupported("search")

    async def list_episodes(self, url: str, ctx: ProviderContext) -> list[EpisodeLink]:
        raise self._unsupported("list_episodes")

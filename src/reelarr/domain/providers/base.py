"""Domain models and protocols for the provider system."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Flag
from typing import Protocol, runtime_checkable

from reelarr.domain.entities.media import (
    CONTENT_KINDS,
    CatalogFilter,
    ContentKind,
    EpisodeLink,
    Genre,
    Info,
    Post,
    SourceType,
    Stream,
)
from reelarr.domain.providers.exceptions import ProviderConfigError


class Capability(Flag):
    """Operations a provider declares it supports.

    The manager only dispatches an operation to providers whose
    capability set contains the matching flag.
    """

    NONE = 0
    POSTS = 1
    METADATA = 2
    STREAMS = 4
    SEARCH = 8
    EPISODES = 16

    CORE = POSTS | METADATA | STREAMS
    FULL = CORE | SEARCH | EPISODES


@dataclass
class ProviderConfig:
    """Static configuration of one provider.

    ``enabled`` and ``priority`` are mutated by the manager only.
    ``base_url`` may be empty, in which case it is resolved lazily from the
    remote URL document under ``base_url_key`` (defaults to ``id``).
    """

    id: str
    display_name: str
    base_url: str = ""
    enabled: bool = True
    priority: int = 100
    content_kinds: frozenset[str] = CONTENT_KINDS
    catalog_filters: list[CatalogFilter] = field(default_factory=list)
    genres: list[Genre] = field(default_factory=list)
    source_type: SourceType = "api"
    base_url_key: str = ""

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ProviderConfigError("provider id must be non-empty")
        if self.priority < 0:
            raise ProviderConfigError(
                f"provider {self.id!r}: priority must be >= 0, got {self.priority}"
            )
        kinds = frozenset(self.content_kinds)
        if not kinds:
            raise ProviderConfigError(f"provider {self.id!r}: no content kinds")
        unknown = kinds - CONTENT_KINDS
        if unknown:
            raise ProviderConfigError(
                f"provider {self.id!r}: unknown content kinds {sorted(unknown)}"
            )
        self.content_kinds = kinds
        if not self.display_name:
            self.display_name = self.id
        if not self.base_url_key:
            self.base_url_key = self.id


@dataclass(frozen=True)
class ProviderContext:
    """Per-call context handed to every provider operation."""

    base_url: str = ""
    cancel: asyncio.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()


@runtime_checkable
class ProviderProtocol(Protocol):
    """
    Protocol for providers.

    Every provider exposes ``config`` and ``capabilities`` plus the core
    operations. Optional operations (``search``, ``list_episodes``) are
    only called when the matching ``Capability`` flag is declared.
    """

    config: ProviderConfig
    capabilities: Capability

    async def list_posts(
        self, filter_token: str, page: int, ctx: ProviderContext
    ) -> list[Post]: ...

    async def get_metadata(self, link: str, ctx: ProviderContext) -> Info: ...

    async def get_streams(
        self, link: str, kind: ContentKind, ctx: ProviderContext
    ) -> list[Stream]: ...

    async def search(
        self, query: str, page: int, ctx: ProviderContext
    ) -> list[Post]: ...

    async def list_episodes(
        self, url: str, ctx: ProviderContext
    ) -> list[EpisodeLink]: ...

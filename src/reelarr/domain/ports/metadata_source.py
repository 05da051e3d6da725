"""Port for the external movie/TV metadata database."""

from __future__ import annotations

from typing import Any, Protocol

from reelarr.domain.entities.media import ContentKind


class MetadataSourcePort(Protocol):
    """Read-only access to a movie/TV database.

    Every method returns the raw JSON payload, or ``None`` on failure.
    """

    async def trending(
        self, kind: ContentKind, page: int = 1
    ) -> dict[str, Any] | None: ...

    async def popular(self, kind: ContentKind, page: int = 1) -> dict[str, Any] | None: ...

    async def top_rated(
        self, kind: ContentKind, page: int = 1
    ) -> dict[str, Any] | None: ...

    async def discover_by_genre(
        self, kind: ContentKind, genre_id: str, page: int = 1
    ) -> dict[str, Any] | None: ...

    async def details(self, kind: ContentKind, tmdb_id: str) -> dict[str, Any] | None: ...

    async def season(self, tmdb_id: str, season_number: int) -> dict[str, Any] | None: ...

    async def search(self, query: str, page: int = 1) -> dict[str, Any] | None: ...

    def image_url(self, path: str | None, size: str = "w500") -> str: ...

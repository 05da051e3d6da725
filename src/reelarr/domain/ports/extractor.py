"""Port for stream extractors."""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from reelarr.domain.entities.media import Stream


@runtime_checkable
class ExtractorPort(Protocol):
    """Turns a landing or embed URL into directly playable streams.

    Extractors return ``[]`` instead of raising when the upstream host
    misbehaves.
    """

    @property
    def name(self) -> str: ...

    async def extract(
        self, url: str, cancel: asyncio.Event | None = None
    ) -> list[Stream]: ...

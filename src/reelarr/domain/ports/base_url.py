"""Port for resolving provider base URLs from a remote document."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class BaseUrlResolverPort(Protocol):
    """Maps provider keys to their current base URL.

    Implementations never raise for fetch problems; an unknown or
    unavailable key resolves to ``""``.
    """

    async def resolve(self, provider_id: str) -> str: ...

    async def resolve_all(self) -> dict[str, str]: ...

    def invalidate(self) -> None: ...

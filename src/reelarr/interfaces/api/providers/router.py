"""Provider registry administration endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from reelarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/providers", tags=["providers"])


class ProviderPatch(BaseModel):
    """Partial update of one provider's runtime settings."""

    enabled: bool | None = None
    priority: int | None = Field(default=None, ge=0)


@router.get("")
async def list_providers(request: Request) -> JSONResponse:
    """All registered providers, sorted by priority."""
    state = cast(AppState, request.app.state)
    stats = state.provider_manager.get_stats()
    return JSONResponse(
        content={"providers": [asdict(p) for p in stats.per_provider]}
    )


@router.get("/stats")
async def provider_stats(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    return JSONResponse(content=asdict(state.provider_manager.get_stats()))


@router.patch("/{provider_id}")
async def update_provider(
    request: Request, provider_id: str, patch: ProviderPatch
) -> JSONResponse:
    """Enable/disable a provider or change its priority.

    Returns 404 for unknown ids.
    """
    state = cast(AppState, request.app.state)
    manager = state.provider_manager

    if manager.get_provider(provider_id) is None:
        return JSONResponse(
            status_code=404,
            content={"error": "provider_not_found", "provider": provider_id},
        )

    if patch.enabled is not None:
        manager.set_enabled(provider_id, patch.enabled)
    if patch.priority is not None:
        manager.set_priority(provider_id, patch.priority)

    summary = next(
        s for s in manager.get_stats().per_provider if s.id == provider_id
    )
    return JSONResponse(content=asdict(summary))

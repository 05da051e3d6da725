"""Debug endpoint for in-memory provider call metrics."""

from __future__ import annotations

from typing import cast

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from reelarr.interfaces.app_state import AppState

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/metrics")
async def metrics(request: Request) -> JSONResponse:
    """Per-provider call counters, durations and result totals."""
    state = cast(AppState, request.app.state)
    return JSONResponse(content=state.metrics.snapshot())

"""Aggregated catalog endpoints (listing, search, metadata, streams, episodes)."""

from __future__ import annotations

from typing import Literal, cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from reelarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["catalog"])


@router.get("/posts")
async def list_posts(
    request: Request,
    filter_token: str = Query(
        default="", alias="filter", description="Provider filter token."
    ),
    page: int = Query(default=1, ge=1),
) -> JSONResponse:
    """Union of one listing page across every enabled provider."""
    state = cast(AppState, request.app.state)
    posts = await state.provider_manager.list_all_posts(filter_token, page)
    return JSONResponse(
        content={"count": len(posts), "posts": jsonable_encoder(posts)}
    )


@router.get("/search")
async def search(
    request: Request,
    q: str = Query(min_length=1, description="Search query."),
    page: int = Query(default=1, ge=1),
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    posts = await state.provider_manager.search_all(q, page)
    return JSONResponse(
        content={"query": q, "count": len(posts), "posts": jsonable_encoder(posts)}
    )


@router.get("/meta")
async def get_metadata(
    request: Request,
    link: str = Query(min_length=1, description="Detail link of a post."),
    provider: str | None = Query(default=None, description="Preferred provider id."),
) -> JSONResponse:
    """Metadata from the preferred provider, falling back by priority.

    Returns 404 when every candidate failed.
    """
    state = cast(AppState, request.app.state)
    info = await state.provider_manager.get_metadata_with_fallback(link, provider)
    if info is None:
        log.info("metadata_not_found", link=link, provider=provider)
        return JSONResponse(status_code=404, content={"error": "metadata_not_found"})
    return JSONResponse(content=jsonable_encoder(info))


@router.get("/streams")
async def get_streams(
    request: Request,
    link: str = Query(min_length=1, description="Detail or episode link."),
    kind: Literal["movie", "tv"] = Query(default="movie"),
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    streams = await state.provider_manager.get_streams_from_all(link, kind)
    return JSONResponse(
        content={"count": len(streams), "streams": jsonable_encoder(streams)}
    )


@router.get("/episodes")
async def list_episodes(
    request: Request,
    url: str = Query(min_length=1, description="Season episodes link."),
    provider: str | None = Query(default=None, description="Preferred provider id."),
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    episodes = await state.provider_manager.get_episodes_with_fallback(url, provider)
    return JSONResponse(
        content={"count": len(episodes), "episodes": jsonable_encoder(episodes)}
    )

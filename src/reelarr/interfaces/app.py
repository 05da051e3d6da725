"""FastAPI application factory (build_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from reelarr.domain.providers.exceptions import NoProvidersError
from reelarr.infrastructure.config import AppConfig
from reelarr.interfaces.app_state import AppState
from reelarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def build_app(config: AppConfig) -> FastAPI:
    """Build the FastAPI app: configuration only, no resource initialization.

    Resources (HTTP client, cache, providers) are created in lifespan().
    """
    app = FastAPI(
        title="Reelarr",
        description="Provider aggregation and stream resolution API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from reelarr.interfaces.api.catalog.router import router as catalog_router
    from reelarr.interfaces.api.providers.router import router as providers_router
    from reelarr.interfaces.api.stats.router import router as stats_router

    app.include_router(catalog_router, prefix="/api/v1")
    app.include_router(providers_router, prefix="/api/v1")
    app.include_router(stats_router, prefix="/api/v1")

    @app.exception_handler(NoProvidersError)
    async def no_providers_handler(
        request: Request, exc: NoProvidersError
    ) -> JSONResponse:
        log.warning("no_providers_enabled", path=request.url.path)
        return JSONResponse(
            status_code=503,
            content={"error": "no_providers_enabled", "detail": str(exc)},
        )

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | int]:
        """Liveness probe; returns 200 as long as the process is running."""
        manager = getattr(app.state, "provider_manager", None)
        if manager is None:
            return {"status": "ok", "providers": 0, "enabled": 0}
        stats = manager.get_stats()
        return {
            "status": "ok",
            "providers": stats.total_count,
            "enabled": stats.enabled_count,
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = getattr(locals().get("response", None), "status_code", 500)

            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app

"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from streamfuse import __version__
from streamfuse.infrastructure.config import AppConfig
from streamfuse.interfaces.app_state import AppState
from streamfuse.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (HTTP client, providers, extractors) are created in lifespan().
    """
    app = FastAPI(
        title="streamfuse",
        description="Stream aggregation addon for movies, series and collections",
        version=__version__,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from streamfuse.interfaces.api.stremio.router import router as stremio_router

    app.include_router(stremio_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str | list[str]]:
        """Liveness probe: returns 200 as long as the process is running."""
        state = app.state
        chain = getattr(state, "extractor_chain", None)
        return {
            "status": "ok" if getattr(state, "config_error", None) is None else "degraded",
            "providers": list(config.providers.enabled),
            "extractors": chain.names if chain else [],
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

"""FastAPI application factory."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from magnetio.infrastructure.config import AppConfig
from magnetio.interfaces.api.stats.router import router as stats_router
from magnetio.interfaces.api.stremio.router import router as stremio_router
from magnetio.interfaces.app_state import AppState
from magnetio.interfaces.composition import lifespan

log = structlog.get_logger(__name__)

_Handler = Callable[[Request], Awaitable[Response]]


async def _access_log(request: Request, call_next: _Handler) -> Response:
    started = time.perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        # The raw path embeds debrid keys; only the route template is logged.
        route = request.scope.get("route")
        log.info(
            "http_request",
            method=request.method,
            route=getattr(route, "path", None),
            status_code=status,
            duration_ms=round((time.perf_counter() - started) * 1000.0, 2),
            client_host=request.client.host if request.client else None,
        )


async def _healthz() -> dict[str, str]:
    return {"status": "ok"}


def create_app(config: AppConfig) -> FastAPI:
    """Wire routes and middleware around ``config``.

    Nothing is opened here. HTTP clients, the partition store and the use
    case are built by ``lifespan`` when the server starts.
    """
    app = FastAPI(
        title="Magnetio",
        description="Stremio addon for debrid-cached torrent streams",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state = AppState()
    app.state.config = config

    app.add_api_route("/healthz", _healthz, methods=["GET"])
    # /stats must be registered before the addon's two-segment catch-all.
    app.include_router(stats_router)
    app.include_router(stremio_router)
    app.middleware("http")(_access_log)
    return app

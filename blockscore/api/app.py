"""FastAPI application factory for the scoring API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.cors import CORSMiddleware

from blockscore.api.middleware import SecurityHeadersMiddleware
from blockscore.exceptions import BlockScoreError
from blockscore.services import Services, build_services
from config.settings import settings

# Rate limiter (shared instance)
limiter = Limiter(key_func=get_remote_address)


async def _blockscore_error_handler(request: Request, exc: BlockScoreError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.warning(f"[API] {request.method} {request.url.path} → {exc.code}: {exc}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


def create_app(services: Services | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Pass ``services`` to run against an existing service graph (tests);
    otherwise one is built from settings at startup and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = None
        if getattr(app.state, "services", None) is None:
            owned = build_services(settings)
            app.state.services = owned
        try:
            yield
        finally:
            if owned is not None:
                await owned.close()

    app = FastAPI(
        title="BlockScore API",
        version="1.1.0",
        docs_url="/api/docs" if settings.api_debug else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.api_debug else None,
        lifespan=lifespan,
    )
    app.state.services = services

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(BlockScoreError, _blockscore_error_handler)  # type: ignore[arg-type]

    app.add_middleware(SecurityHeadersMiddleware)

    # Public read API, any origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    from blockscore.api.routers.admin import router as admin_router
    from blockscore.api.routers.health import router as health_router
    from blockscore.api.routers.score import router as score_router
    from blockscore.api.routers.watchlist import router as watchlist_router

    app.include_router(health_router)
    app.include_router(score_router)
    app.include_router(watchlist_router)
    app.include_router(admin_router)

    return app

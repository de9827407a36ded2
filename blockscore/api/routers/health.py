"""Health check: no auth required."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from blockscore.api.dependencies import get_services
from blockscore.services import Services

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    cache: dict[str, Any]
    scoring: dict[str, Any]
    watchlist_count: int
    redis_ok: bool | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(services: Services = Depends(get_services)) -> HealthResponse:
    """Cache and pipeline counters, plus Redis connectivity when configured."""
    redis_ok = None
    if services.redis is not None:
        try:
            await services.redis.ping()
            redis_ok = True
        except Exception:
            redis_ok = False

    return HealthResponse(
        status="degraded" if redis_ok is False else "ok",
        version="1.1.0",
        timestamp=datetime.now(UTC).isoformat(),
        cache=services.engine.cache.stats(),
        scoring=services.engine.metrics.get_summary(),
        watchlist_count=len(services.watchlist),
        redis_ok=redis_ok,
    )

"""Administrative endpoints: require X-API-Key."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from loguru import logger

from blockscore.api.dependencies import get_engine, require_admin
from blockscore.scoring.engine import ScoringEngine

router = APIRouter(prefix="/api/v1", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/cache/clear")
async def clear_cache(engine: ScoringEngine = Depends(get_engine)) -> dict[str, int | str]:
    cleared = engine.cache.clear()
    logger.info(f"[ADMIN] Score cache cleared ({cleared} entries)")
    return {"status": "Cache cleared", "cleared": cleared}

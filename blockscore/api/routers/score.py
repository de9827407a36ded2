"""Score endpoints: single wallet and batch."""

from typing import Any

from fastapi import APIRouter, Depends, Path, Request
from pydantic import BaseModel

from blockscore.api.app import limiter
from blockscore.api.dependencies import get_batch, get_engine
from blockscore.scoring.batch import BatchCoordinator
from blockscore.scoring.engine import ScoringEngine
from config.settings import settings

router = APIRouter(prefix="/api/v1", tags=["score"])


class BatchRequest(BaseModel):
    wallets: list[str]


@router.get("/score/{wallet}")
@limiter.limit(settings.score_rate_limit)
async def get_score(
    request: Request,
    wallet: str = Path(min_length=1, max_length=256),
    engine: ScoringEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Reputation score for a wallet address or .sol domain."""
    result = await engine.score(wallet)
    return result.model_dump(mode="json")


@router.post("/batch")
@limiter.limit(settings.score_rate_limit)
async def batch_score(
    request: Request,
    body: BatchRequest,
    batch: BatchCoordinator = Depends(get_batch),
) -> dict[str, Any]:
    """Score several wallets; failed wallets come back as error entries."""
    items = await batch.score_many(body.wallets)
    return {"results": [item.to_dict() for item in items], "count": len(items)}

"""Watchlist endpoints: watch/unwatch, rescore, report, alerts."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field

from blockscore.api.dependencies import get_services, get_watchlist, require_admin
from blockscore.services import Services
from blockscore.watchlist.store import Watchlist

router = APIRouter(prefix="/api/v1", tags=["watchlist"])

RECENT_CHANGES_LIMIT = 20


class WatchRequest(BaseModel):
    wallet: str = Field(min_length=1, max_length=256)


@router.post("/watch")
async def watch_wallet(
    body: WatchRequest,
    watchlist: Watchlist = Depends(get_watchlist),
) -> dict[str, Any]:
    """Add a wallet to the watchlist (scores it once)."""
    entry = await watchlist.add(body.wallet)
    return {
        "status": "added",
        "wallet": entry.wallet,
        "current_score": entry.last_score,
        "grade": entry.last_grade,
        "watchlist_size": len(watchlist),
    }


@router.delete("/watch/{wallet}")
async def unwatch_wallet(
    wallet: str = Path(min_length=1, max_length=256),
    watchlist: Watchlist = Depends(get_watchlist),
) -> dict[str, Any]:
    removed = await watchlist.remove(wallet)
    return {"status": "removed", "wallet": removed, "watchlist_size": len(watchlist)}


@router.get("/watchlist")
async def list_watchlist(watchlist: Watchlist = Depends(get_watchlist)) -> dict[str, Any]:
    """Watched wallets, highest score first."""
    entries = watchlist.entries()
    return {
        "count": len(entries),
        "wallets": [e.to_dict() for e in entries],
        "recent_changes": [c.to_dict() for c in watchlist.recent_changes(RECENT_CHANGES_LIMIT)],
    }


@router.post("/rescore/{wallet}")
async def rescore_wallet(
    wallet: str = Path(min_length=1, max_length=256),
    watchlist: Watchlist = Depends(get_watchlist),
) -> dict[str, Any]:
    """Fresh score, with change detection when the wallet is watched."""
    outcome = await watchlist.rescore(wallet)
    return outcome.to_dict()


@router.post("/watchlist/rescore")
async def bulk_rescore(watchlist: Watchlist = Depends(get_watchlist)) -> dict[str, Any]:
    bulk = await watchlist.bulk_rescore()
    return bulk.to_dict()


@router.get("/report")
async def report(watchlist: Watchlist = Depends(get_watchlist)) -> dict[str, Any]:
    return watchlist.report()


@router.get("/forum/preview")
async def forum_preview(watchlist: Watchlist = Depends(get_watchlist)) -> dict[str, Any]:
    """Dry run of the alert that /forum/post would send."""
    payload, changes = watchlist.alert_payload()
    if payload is None:
        return {"preview": None, "message": "No significant changes to report"}
    return {"preview": payload.to_dict(), "changes_count": len(changes)}


@router.post("/forum/post", dependencies=[Depends(require_admin)])
async def forum_post(services: Services = Depends(get_services)) -> dict[str, Any]:
    payload, changes = services.watchlist.alert_payload()
    if payload is None:
        return {"status": "skipped", "message": "No significant changes to report"}
    outcome = await services.dispatcher.dispatch(payload, changes)
    return {**outcome, "changes_reported": len(changes)}

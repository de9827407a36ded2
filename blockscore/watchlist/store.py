"""Watchlist: per-wallet score history and significant-change detection.

State lives in memory only and is lost on restart. One owned instance per
process; every mutation of a wallet's entry runs under that wallet's lock.
"""

from collections import Counter, deque
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from loguru import logger

from blockscore.exceptions import AlreadyWatched, BlockScoreError, NotWatched
from blockscore.scoring.engine import ScoringEngine
from blockscore.scoring.models import ScoreResult
from blockscore.utils.locks import KeyedLocks
from blockscore.watchlist.alerts import AlertPayload, generate_score_alert
from blockscore.watchlist.models import (
    BulkRescoreResult,
    ChangeEvent,
    ChangeInfo,
    HistoryPoint,
    RescoreOutcome,
    WatchEntry,
)

REPORT_WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Watchlist:
    def __init__(
        self,
        engine: ScoringEngine,
        *,
        history_size: int = 50,
        change_log_size: int = 100,
        significance_threshold: int = 5,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._engine = engine
        self._history_size = history_size
        self._threshold = significance_threshold
        self._clock = clock
        self._entries: dict[str, WatchEntry] = {}
        self._changes: deque[ChangeEvent] = deque(maxlen=change_log_size)
        self._locks = KeyedLocks()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, wallet: object) -> bool:
        return wallet in self._entries

    def get(self, wallet: str) -> WatchEntry | None:
        return self._entries.get(wallet)

    async def add(self, identifier: str) -> WatchEntry:
        """Start watching a wallet; requires a successful initial score."""
        wallet = await self._engine.resolve(identifier)
        async with self._locks.hold(wallet):
            if wallet in self._entries:
                raise AlreadyWatched("Wallet already in watchlist", identifier=wallet)
            result = await self._engine.score_address(wallet)
            now = self._clock()
            entry = WatchEntry(
                wallet=wallet,
                added_at=now,
                last_score=result.score,
                last_grade=result.grade,
                history=deque([HistoryPoint(result.score, now)], maxlen=self._history_size),
            )
            self._entries[wallet] = entry

        logger.info(f"[WATCH] Added {wallet[:8]}… score={entry.last_score} (watching {len(self)})")
        return entry

    async def remove(self, identifier: str) -> str:
        """Stop watching a wallet; returns the resolved address."""
        wallet = await self._engine.resolve(identifier)
        async with self._locks.hold(wallet):
            if self._entries.pop(wallet, None) is None:
                raise NotWatched("Wallet not in watchlist", identifier=wallet)
        logger.info(f"[WATCH] Removed {wallet[:8]}… (watching {len(self)})")
        return wallet

    def entries(self) -> list[WatchEntry]:
        """All entries, highest score first."""
        return sorted(self._entries.values(), key=lambda e: e.last_score, reverse=True)

    def recent_changes(self, limit: int | None = None) -> list[ChangeEvent]:
        changes = list(self._changes)
        return changes[-limit:] if limit else changes

    def changes_since(self, since: datetime) -> list[ChangeEvent]:
        return [c for c in self._changes if c.timestamp > since]

    async def rescore(self, identifier: str) -> RescoreOutcome:
        """Bypass the cache, recompute, and record the change if watched."""
        wallet = await self._engine.resolve(identifier)
        return await self._rescore_address(wallet)

    async def _rescore_address(self, wallet: str) -> RescoreOutcome:
        async with self._locks.hold(wallet):
            result = await self._engine.score_address(wallet, force=True)
            entry = self._entries.get(wallet)
            if entry is None:
                return RescoreOutcome(result=result, change_info=None, is_watched=False)
            change_info = self._record(entry, result)
        return RescoreOutcome(result=result, change_info=change_info, is_watched=True)

    def _record(self, entry: WatchEntry, result: ScoreResult) -> ChangeInfo:
        now = self._clock()
        previous = entry.last_score
        change = result.score - previous

        entry.previous_score = previous
        entry.last_score = result.score
        entry.last_grade = result.grade
        entry.history.append(HistoryPoint(result.score, now))

        significant = abs(change) > self._threshold
        if significant:
            self._changes.append(
                ChangeEvent(
                    wallet=entry.wallet,
                    old_score=previous,
                    new_score=result.score,
                    change=change,
                    timestamp=now,
                )
            )
            logger.info(f"[WATCH] {entry.wallet[:8]}… {previous} → {result.score} ({change:+d})")

        return ChangeInfo(
            previous_score=previous,
            new_score=result.score,
            change=change,
            significant_change=significant,
        )

    async def bulk_rescore(self) -> BulkRescoreResult:
        """Rescore every watched wallet one after another.

        Sequential on purpose, to keep ledger load predictable. A failing
        wallet is reported in ``errors`` and the loop moves on.
        """
        bulk = BulkRescoreResult()
        for wallet in list(self._entries):
            try:
                outcome = await self._rescore_address(wallet)
            except BlockScoreError as e:
                logger.warning(f"[WATCH] Rescore failed for {wallet[:8]}…: {e.code}")
                bulk.errors.append({"wallet": wallet, **e.to_dict()})
                continue
            # Removed while the loop was running
            if not outcome.is_watched or outcome.change_info is None:
                continue

            info = outcome.change_info
            item = {
                "wallet": wallet,
                "previous_score": info.previous_score,
                "new_score": info.new_score,
                "change": info.change,
                "significant_change": info.significant_change,
            }
            bulk.results.append(item)
            if info.significant_change:
                bulk.significant_changes.append(item)

        logger.info(
            f"[WATCH] Bulk rescore: {len(bulk.results)} rescored, "
            f"{len(bulk.significant_changes)} significant, {len(bulk.errors)} failed"
        )
        return bulk

    def report(self, *, top_n: int = 5, max_significant: int = 10) -> dict[str, Any]:
        """Read-only summary of the current watchlist."""
        now = self._clock()
        entries = list(self._entries.values())
        if not entries:
            return {
                "generated": now.isoformat(),
                "summary": "No wallets in watchlist",
                "watchlist_count": 0,
            }

        ranked = sorted(entries, key=lambda e: e.last_score, reverse=True)
        significant = sorted(
            (e for e in entries if e.score_change is not None and abs(e.score_change) > self._threshold),
            key=lambda e: abs(e.score_change or 0),
            reverse=True,
        )
        grade_distribution = dict(Counter(e.last_grade for e in entries))
        average = sum(e.last_score for e in entries) / len(entries)

        return {
            "generated": now.isoformat(),
            "summary": {
                "watchlist_count": len(entries),
                "average_score": round(average, 1),
                "grade_distribution": grade_distribution,
            },
            "top_performers": [_ranked(e) for e in ranked[:top_n]],
            "bottom_performers": [_ranked(e) for e in reversed(ranked[-top_n:])],
            "significant_changes": [
                {
                    "wallet": e.wallet,
                    "score": e.last_score,
                    "grade": e.last_grade,
                    "previous_score": e.previous_score,
                    "change": e.score_change,
                }
                for e in significant[:max_significant]
            ],
            "recent_changes_24h": [c.to_dict() for c in self.changes_since(now - REPORT_WINDOW)],
            "alerts": (
                f"{len(significant)} wallet(s) with score changes > {self._threshold} points"
                if significant
                else "No significant score changes detected"
            ),
        }

    def alert_payload(self) -> tuple[AlertPayload | None, list[ChangeEvent]]:
        """Alert built from significant changes of the last 24 hours."""
        recent = self.changes_since(self._clock() - REPORT_WINDOW)
        return generate_score_alert(recent), recent


def _ranked(entry: WatchEntry) -> dict[str, Any]:
    return {"wallet": entry.wallet, "score": entry.last_score, "grade": entry.last_grade}

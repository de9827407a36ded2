"""Watchlist state and change-detection records."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from blockscore.scoring.models import ScoreResult


@dataclass(frozen=True)
class HistoryPoint:
    score: int
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "timestamp": self.timestamp.isoformat()}


@dataclass
class WatchEntry:
    """Per-wallet tracking state, mutated only by a rescore."""

    wallet: str
    added_at: datetime
    last_score: int
    last_grade: str
    history: deque[HistoryPoint]
    previous_score: int | None = None

    @property
    def score_change(self) -> int | None:
        if self.previous_score is None:
            return None
        return self.last_score - self.previous_score

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet": self.wallet,
            "added_at": self.added_at.isoformat(),
            "last_score": self.last_score,
            "last_grade": self.last_grade,
            "previous_score": self.previous_score,
            "score_change": self.score_change,
            "score_history": [p.to_dict() for p in self.history],
        }


@dataclass(frozen=True)
class ChangeEvent:
    wallet: str
    old_score: int
    new_score: int
    change: int
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet": self.wallet,
            "old_score": self.old_score,
            "new_score": self.new_score,
            "change": self.change,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ChangeInfo:
    previous_score: int
    new_score: int
    change: int
    significant_change: bool

    @property
    def direction(self) -> str:
        if self.change > 0:
            return "up"
        if self.change < 0:
            return "down"
        return "stable"

    def to_dict(self) -> dict[str, Any]:
        return {
            "previous_score": self.previous_score,
            "new_score": self.new_score,
            "change": self.change,
            "significant_change": self.significant_change,
            "direction": self.direction,
        }


@dataclass(frozen=True)
class RescoreOutcome:
    result: ScoreResult
    change_info: ChangeInfo | None
    is_watched: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.result.model_dump(mode="json"),
            "change_info": self.change_info.to_dict() if self.change_info else None,
            "is_watched": self.is_watched,
        }


@dataclass
class BulkRescoreResult:
    results: list[dict[str, Any]] = field(default_factory=list)
    significant_changes: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rescored": len(self.results),
            "results": self.results,
            "significant_changes": self.significant_changes,
            "errors": self.errors,
            "alert_count": len(self.significant_changes),
        }

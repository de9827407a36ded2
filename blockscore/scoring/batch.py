"""Batch scoring: bounded fan-out with per-item error capture."""

import asyncio
from dataclasses import dataclass
from typing import Any

from loguru import logger

from blockscore.exceptions import (
    BatchTooLarge,
    BlockScoreError,
    InvalidIdentifier,
    LedgerTimeout,
    ScoreTimeout,
)
from blockscore.ledger.deadline import Deadline
from blockscore.scoring.engine import ScoringEngine
from blockscore.scoring.models import ScoreResult


@dataclass(frozen=True)
class BatchItem:
    identifier: str
    result: ScoreResult | None = None
    error: BlockScoreError | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    def to_dict(self) -> dict[str, Any]:
        if self.result is not None:
            return self.result.model_dump(mode="json")
        error = self.error.to_dict() if self.error is not None else {}
        return {"wallet": self.identifier, **error}


class BatchCoordinator:
    """Scores up to ``max_size`` identifiers concurrently.

    One failing wallet never cancels its siblings. The wall-clock timeout
    covers the whole batch and is all-or-nothing: callers get every item or
    a ScoreTimeout. Results cached by items that finished before the timeout
    stay cached.
    """

    def __init__(self, engine: ScoringEngine, *, max_size: int = 10, timeout: float = 55.0) -> None:
        self._engine = engine
        self._max_size = max_size
        self._timeout = timeout

    @property
    def max_size(self) -> int:
        return self._max_size

    async def score_many(self, identifiers: list[str]) -> list[BatchItem]:
        if not identifiers:
            raise InvalidIdentifier("Provide a non-empty wallets array")
        if len(identifiers) > self._max_size:
            raise BatchTooLarge(
                f"Max {self._max_size} wallets per batch, got {len(identifiers)}"
            )

        deadline = Deadline.after(self._timeout)
        semaphore = asyncio.Semaphore(self._max_size)

        async def _score_one(identifier: str) -> BatchItem:
            async with semaphore:
                try:
                    result = await self._engine.score(identifier, deadline=deadline)
                except BlockScoreError as e:
                    return BatchItem(identifier=identifier, error=e)
                return BatchItem(identifier=identifier, result=result)

        try:
            items = await asyncio.wait_for(
                asyncio.gather(*(_score_one(i) for i in identifiers)),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"[BATCH] {len(identifiers)} wallets exceeded {self._timeout}s")
            raise ScoreTimeout(f"Batch exceeded {self._timeout:.0f}s", cause=e) from e

        # Items that hit the shared deadline count as a batch timeout, not a per-item error
        if deadline.expired and any(isinstance(i.error, LedgerTimeout) for i in items):
            logger.warning(f"[BATCH] deadline reached while scoring {len(identifiers)} wallets")
            raise ScoreTimeout(f"Batch exceeded {self._timeout:.0f}s")

        failed = sum(1 for i in items if not i.ok)
        logger.info(f"[BATCH] scored {len(items) - failed}/{len(items)} wallets")
        return list(items)

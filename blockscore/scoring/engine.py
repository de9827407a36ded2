"""Scoring pipeline: resolve, snapshot, score, cache."""

import time
from typing import Protocol

from loguru import logger

from blockscore.exceptions import BlockScoreError, DomainResolutionFailed
from blockscore.ledger.deadline import Deadline
from blockscore.ledger.models import LedgerSnapshot
from blockscore.naming.identifiers import is_sol_domain, validate_address
from blockscore.scoring.cache import ScoreCache
from blockscore.scoring.metrics import ScoringMetrics
from blockscore.scoring.models import ScoreResult
from blockscore.scoring.scorer import score_snapshot
from blockscore.utils.locks import KeyedLocks


class SnapshotSource(Protocol):
    async def snapshot(self, address: str, deadline: Deadline) -> LedgerSnapshot: ...


class DomainResolver(Protocol):
    async def resolve(self, domain: str) -> str: ...


class ScoringEngine:
    """Single-wallet scoring with TTL caching.

    Concurrent requests for the same address are serialized on a per-address
    lock; the second caller finds the first caller's result in the cache.
    """

    def __init__(
        self,
        gateway: SnapshotSource,
        cache: ScoreCache,
        *,
        resolver: DomainResolver | None = None,
        metrics: ScoringMetrics | None = None,
        score_timeout: float = 55.0,
    ) -> None:
        self._gateway = gateway
        self._cache = cache
        self._resolver = resolver
        self._metrics = metrics or ScoringMetrics()
        self._score_timeout = score_timeout
        self._locks = KeyedLocks()

    @property
    def cache(self) -> ScoreCache:
        return self._cache

    @property
    def metrics(self) -> ScoringMetrics:
        return self._metrics

    async def resolve(self, identifier: str) -> str:
        """Validate an address, or resolve a .sol domain to one."""
        if is_sol_domain(identifier):
            if self._resolver is None:
                raise DomainResolutionFailed("Domain resolution is not configured", identifier=identifier)
            return await self._resolver.resolve(identifier)
        return validate_address(identifier)

    async def score(
        self, identifier: str, *, deadline: Deadline | None = None, force: bool = False
    ) -> ScoreResult:
        address = await self.resolve(identifier)
        return await self.score_address(address, deadline=deadline, force=force)

    async def score_address(
        self, address: str, *, deadline: Deadline | None = None, force: bool = False
    ) -> ScoreResult:
        if force:
            self._cache.invalidate(address)
        else:
            cached = self._cache.get(address)
            if cached is not None:
                self._metrics.record_cache_hit()
                return cached

        async with self._locks.hold(address):
            # Filled while we waited on the lock
            cached = self._cache.get(address)
            if cached is not None:
                self._metrics.record_cache_hit()
                return cached
            return await self._compute(address, deadline or Deadline.after(self._score_timeout))

    async def _compute(self, address: str, deadline: Deadline) -> ScoreResult:
        started = time.monotonic()
        try:
            snapshot = await self._gateway.snapshot(address, deadline)
            result = score_snapshot(snapshot)
        except BlockScoreError as e:
            self._metrics.record_failure(e.code)
            logger.info(f"[SCORE] {address[:8]}… failed: {e.code} ({e})")
            raise

        self._cache.put(address, result)
        latency_ms = (time.monotonic() - started) * 1000
        self._metrics.record_score(latency_ms, degraded=bool(snapshot.degraded))
        logger.info(
            f"[SCORE] {address[:8]}… score={result.score} grade={result.grade} "
            f"badges={len(result.badges)} ({latency_ms:.0f}ms)"
        )
        return result

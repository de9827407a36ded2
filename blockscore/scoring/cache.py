"""Time-bounded memoization of full score results."""

import time
from collections.abc import Callable

from blockscore.scoring.models import ScoreResult


class ScoreCache:
    """TTL cache keyed by wallet address.

    Only successful results are stored. Entries expire ``ttl_sec`` after
    insertion. Expired entries are dropped on read, and ``put`` sweeps the
    whole table at most once per ``check_period`` seconds.
    """

    def __init__(
        self,
        ttl_sec: float = 300,
        *,
        check_period: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_sec
        self._check_period = check_period
        self._clock = clock
        self._next_sweep = clock() + check_period
        self._entries: dict[str, tuple[float, ScoreResult]] = {}
        self.hits = 0
        self.misses = 0

    @property
    def ttl_sec(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, wallet: str) -> ScoreResult | None:
        entry = self._entries.get(wallet)
        if entry is None:
            self.misses += 1
            return None
        expires_at, result = entry
        if self._clock() >= expires_at:
            del self._entries[wallet]
            self.misses += 1
            return None
        self.hits += 1
        return result

    def put(self, wallet: str, result: ScoreResult) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self.prune()
            self._next_sweep = now + self._check_period
        self._entries[wallet] = (now + self._ttl, result)

    def invalidate(self, wallet: str) -> bool:
        return self._entries.pop(wallet, None) is not None

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def prune(self) -> int:
        now = self._clock()
        expired = [k for k, (exp, _) in self._entries.items() if now >= exp]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self) -> dict[str, float | int]:
        return {
            "keys": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "ttl_sec": self._ttl,
        }

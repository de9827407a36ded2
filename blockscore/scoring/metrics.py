"""Scoring pipeline metrics: throughput, latency, failures by error code.

In-process counters read by the /health endpoint. Guarded by a lock so a
reader thread (uvicorn worker, stats dump) never sees a half-updated sample.
"""

import time
from collections import Counter
from threading import Lock


class ScoringMetrics:
    def __init__(self) -> None:
        self._lock = Lock()
        self._scored = 0
        self._cache_hits = 0
        self._degraded = 0
        self._failures: Counter[str] = Counter()
        self._total_latency_ms = 0.0
        self._max_latency_ms = 0.0
        self._start_time = time.monotonic()

    def record_score(self, latency_ms: float, *, degraded: bool = False) -> None:
        with self._lock:
            self._scored += 1
            self._total_latency_ms += latency_ms
            if latency_ms > self._max_latency_ms:
                self._max_latency_ms = latency_ms
            if degraded:
                self._degraded += 1

    def record_cache_hit(self) -> None:
        with self._lock:
            self._cache_hits += 1

    def record_failure(self, code: str) -> None:
        with self._lock:
            self._failures[code] += 1

    def get_summary(self) -> dict:
        with self._lock:
            avg = self._total_latency_ms / self._scored if self._scored else 0.0
            return {
                "uptime_sec": round(time.monotonic() - self._start_time),
                "scored": self._scored,
                "degraded_snapshots": self._degraded,
                "cache_hits": self._cache_hits,
                "avg_latency_ms": round(avg),
                "max_latency_ms": round(self._max_latency_ms),
                "failures": dict(self._failures),
            }

    def format_stats_line(self) -> str:
        s = self.get_summary()
        return (
            f"scored={s['scored']} cache_hits={s['cache_hits']} "
            f"avg_lat={s['avg_latency_ms']}ms failures={sum(s['failures'].values())}"
        )

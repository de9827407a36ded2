import time
from dataclasses import dataclass


@dataclass(frozen=True)
class Deadline:
    """Cooperative wall-clock deadline handed to every ledger call."""

    expires_at: float  # time.monotonic() reference

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(time.monotonic() + seconds)

    def remaining(self) -> float:
        return max(self.expires_at - time.monotonic(), 0.0)

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def clamp(self, timeout: float) -> float:
        """Per-query timeout that never outlives the deadline."""
        return min(timeout, self.remaining())

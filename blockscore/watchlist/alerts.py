"""Score-change alerts: payload generation and dispatch.

Dispatches alert payloads to configured channels:
- Console log (always on)
- Redis pubsub channel "alerts:score_changes" (if redis available)
- Forum post via ForumNotifier (if configured)
"""

import json
import time
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from blockscore.watchlist.models import ChangeEvent

REDIS_CHANNEL = "alerts:score_changes"


@dataclass(frozen=True)
class AlertPayload:
    title: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "content": self.content}


def generate_score_alert(changes: list[ChangeEvent]) -> AlertPayload | None:
    """Markdown alert summarizing significant changes; None if there are none."""
    if not changes:
        return None

    lines = []
    for c in changes:
        arrow = "📈" if c.change > 0 else "📉"
        lines.append(f"{arrow} `{c.wallet[:8]}...`: {c.old_score} → {c.new_score} ({c.change:+d})")

    return AlertPayload(
        title=f"🔔 BlockScore Alert: {len(changes)} Significant Score Change(s)",
        content=(
            "**Wallet Score Changes Detected**\n\n"
            + "\n".join(lines)
            + "\n\n---\n*Generated by BlockScore Monitoring*"
        ),
    )


class ForumNotifier:
    """Posts alert payloads to a forum API with bearer-key auth."""

    def __init__(self, api_url: str, api_key: str, *, category: str = "alerts", timeout: float = 10.0) -> None:
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._category = category
        self._http = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._http.aclose()

    async def post(self, payload: AlertPayload) -> dict[str, Any]:
        try:
            resp = await self._http.post(
                f"{self._api_url}/posts",
                json={**payload.to_dict(), "category": self._category},
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "X-API-Key": self._api_key,
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"[ALERT] Forum post failed: {e}")
            return {"error": str(e)}

        if resp.status_code >= 400:
            logger.warning(f"[ALERT] Forum API returned {resp.status_code}")
            return {"error": f"Forum API returned {resp.status_code}"}
        try:
            return resp.json()
        except ValueError:
            return {"status": resp.status_code}


class ChangeAlertDispatcher:
    """Sends score-change alerts to every configured channel."""

    def __init__(self, *, redis=None, notifier: ForumNotifier | None = None) -> None:
        self._redis = redis
        self._notifier = notifier
        self._total_sent = 0

    @property
    def total_sent(self) -> int:
        return self._total_sent

    @property
    def can_post(self) -> bool:
        return self._notifier is not None

    async def dispatch(self, payload: AlertPayload, changes: list[ChangeEvent]) -> dict[str, Any]:
        self._total_sent += 1
        logger.info(f"[ALERT] {payload.title}")

        if self._redis:
            await self._publish_redis(payload, changes)

        if self._notifier is None:
            return {"status": "logged"}
        result = await self._notifier.post(payload)
        return {"status": "failed" if "error" in result else "posted", "result": result}

    async def _publish_redis(self, payload: AlertPayload, changes: list[ChangeEvent]) -> None:
        try:
            message = json.dumps({
                **payload.to_dict(),
                "changes": [c.to_dict() for c in changes],
                "ts": time.time(),
            })
            await self._redis.publish(REDIS_CHANNEL, message)
        except Exception as e:
            logger.debug(f"[ALERT] Redis publish failed: {e}")

"""Tests for score-change alert generation and dispatch."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from blockscore.watchlist.alerts import (
    REDIS_CHANNEL,
    ChangeAlertDispatcher,
    ForumNotifier,
    generate_score_alert,
)
from blockscore.watchlist.models import ChangeEvent

WALLET = "So11111111111111111111111111111111111111112"


def _change(old: int = 70, new: int = 80) -> ChangeEvent:
    return ChangeEvent(
        wallet=WALLET, old_score=old, new_score=new, change=new - old,
        timestamp=datetime(2024, 1, 1, tzinfo=UTC),
    )


def _notifier(status: int = 201, body: object = None, side_effect: Exception | None = None) -> ForumNotifier:
    notifier = ForumNotifier("https://forum.test/api", "secret")
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status
    resp.json.return_value = body if body is not None else {"id": 42}
    notifier._http = AsyncMock(spec=httpx.AsyncClient)
    notifier._http.post = AsyncMock(return_value=resp, side_effect=side_effect)
    return notifier


def test_no_changes_no_alert():
    assert generate_score_alert([]) is None


def test_alert_lines():
    payload = generate_score_alert([_change(70, 80), _change(60, 50)])
    assert payload.title == "🔔 BlockScore Alert: 2 Significant Score Change(s)"
    assert "📈 `So111111...`: 70 → 80 (+10)" in payload.content
    assert "📉 `So111111...`: 60 → 50 (-10)" in payload.content


@pytest.fixture
def payload():
    return generate_score_alert([_change()])


async def test_dispatch_logs_only(payload):
    dispatcher = ChangeAlertDispatcher()
    assert await dispatcher.dispatch(payload, [_change()]) == {"status": "logged"}
    assert dispatcher.total_sent == 1
    assert not dispatcher.can_post


async def test_dispatch_publishes_to_redis(payload):
    redis = AsyncMock()
    await ChangeAlertDispatcher(redis=redis).dispatch(payload, [_change()])

    channel, message = redis.publish.call_args.args
    assert channel == REDIS_CHANNEL
    data = json.loads(message)
    assert data["title"] == payload.title
    assert data["changes"][0]["change"] == 10


async def test_redis_failure_does_not_break_dispatch(payload):
    redis = AsyncMock()
    redis.publish.side_effect = ConnectionError("redis down")
    result = await ChangeAlertDispatcher(redis=redis).dispatch(payload, [_change()])
    assert result == {"status": "logged"}


async def test_dispatch_posts_to_forum(payload):
    notifier = _notifier()
    dispatcher = ChangeAlertDispatcher(notifier=notifier)
    result = await dispatcher.dispatch(payload, [_change()])

    assert result == {"status": "posted", "result": {"id": 42}}
    body = notifier._http.post.call_args.kwargs["json"]
    assert body["category"] == "alerts"
    assert body["title"] == payload.title
    assert notifier._http.post.call_args.args[0] == "https://forum.test/api/posts"


async def test_forum_http_error(payload):
    result = await ChangeAlertDispatcher(notifier=_notifier(status=500)).dispatch(payload, [])
    assert result["status"] == "failed"
    assert "500" in result["result"]["error"]


async def test_forum_unreachable(payload):
    notifier = _notifier(side_effect=httpx.ConnectError("refused"))
    result = await ChangeAlertDispatcher(notifier=notifier).dispatch(payload, [])
    assert result["status"] == "failed"

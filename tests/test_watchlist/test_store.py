"""Tests for the Watchlist: add/remove, rescore, change detection, report."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from blockscore.exceptions import AlreadyWatched, LedgerUnreachable, NoActivity, NotWatched
from blockscore.watchlist.store import Watchlist


class DateClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def date_clock() -> DateClock:
    return DateClock()


@pytest.fixture
def watchlist(engine, date_clock) -> Watchlist:
    return Watchlist(engine, clock=date_clock)


@pytest.fixture
def wallet(gateway, make_snapshot, new_address) -> str:
    address = new_address()
    gateway.snapshots[address] = make_snapshot(address)  # scores 77
    return address


# ── Membership ─────────────────────────────────────────────────────────


class TestMembership:
    async def test_add(self, watchlist, wallet):
        entry = await watchlist.add(wallet)
        assert entry.last_score == 77
        assert entry.last_grade == "B"
        assert entry.previous_score is None
        assert len(entry.history) == 1
        assert wallet in watchlist
        assert len(watchlist) == 1

    async def test_add_twice_rejected(self, watchlist, gateway, wallet):
        await watchlist.add(wallet)
        with pytest.raises(AlreadyWatched):
            await watchlist.add(wallet)
        assert len(watchlist) == 1
        assert gateway.calls == [wallet]

    async def test_add_requires_a_score(self, watchlist, gateway, wallet):
        gateway.errors[wallet] = NoActivity("No activity found for this wallet", identifier=wallet)
        with pytest.raises(NoActivity):
            await watchlist.add(wallet)
        assert wallet not in watchlist

    async def test_add_by_domain(self, watchlist, gateway, resolver, make_snapshot):
        address = resolver.domains["bonfida.sol"]
        gateway.snapshots[address] = make_snapshot(address)
        entry = await watchlist.add("bonfida.sol")
        assert entry.wallet == address

    async def test_remove(self, watchlist, wallet):
        await watchlist.add(wallet)
        await watchlist.remove(wallet)
        assert wallet not in watchlist

    async def test_remove_returns_resolved_address(self, watchlist, gateway, resolver, make_snapshot):
        address = resolver.domains["bonfida.sol"]
        gateway.snapshots[address] = make_snapshot(address)
        await watchlist.add(address)
        assert await watchlist.remove("Bonfida.sol") == address
        assert len(watchlist) == 0

    async def test_add_after_failed_add_rejects_duplicate(self, watchlist, gateway, wallet):
        gateway.delay = 0.05
        gateway.errors[wallet] = LedgerUnreachable("down", identifier=wallet)

        first = asyncio.create_task(watchlist.add(wallet))
        await asyncio.sleep(0.01)
        second = asyncio.create_task(watchlist.add(wallet))
        await asyncio.sleep(0.06)  # first failed, second is scoring
        del gateway.errors[wallet]
        third = asyncio.create_task(watchlist.add(wallet))

        results = await asyncio.gather(first, second, third, return_exceptions=True)

        assert isinstance(results[0], LedgerUnreachable)
        assert results[1] is watchlist.get(wallet)
        assert isinstance(results[2], AlreadyWatched)
        assert len(watchlist.get(wallet).history) == 1
        assert len(watchlist._locks) == 0

    async def test_remove_unknown(self, watchlist, wallet):
        with pytest.raises(NotWatched):
            await watchlist.remove(wallet)

    async def test_entries_sorted_by_score(self, watchlist, gateway, make_snapshot, new_address):
        low, high = new_address(), new_address()
        gateway.snapshots[low] = make_snapshot(low, age_days=10)
        gateway.snapshots[high] = make_snapshot(high)
        await watchlist.add(low)
        await watchlist.add(high)
        assert [e.wallet for e in watchlist.entries()] == [high, low]


# ── Rescore ────────────────────────────────────────────────────────────


class TestRescore:
    async def test_change_of_five_is_not_significant(self, watchlist, gateway, make_snapshot, wallet):
        await watchlist.add(wallet)
        gateway.snapshots[wallet] = make_snapshot(wallet, sol=5.0)  # balance 15 → 10

        outcome = await watchlist.rescore(wallet)

        assert outcome.is_watched
        assert outcome.change_info.change == -5
        assert not outcome.change_info.significant_change
        assert outcome.change_info.direction == "down"
        assert watchlist.recent_changes() == []
        assert watchlist.get(wallet).previous_score == 77

    async def test_change_of_six_is_significant(self, watchlist, gateway, make_snapshot, wallet):
        await watchlist.add(wallet)
        gateway.snapshots[wallet] = make_snapshot(wallet, fungible=2)  # diversity 12 → 6

        outcome = await watchlist.rescore(wallet)

        assert outcome.change_info.change == -6
        assert outcome.change_info.significant_change
        [event] = watchlist.recent_changes()
        assert (event.old_score, event.new_score, event.change) == (77, 71, -6)

    async def test_rescore_bypasses_cache(self, watchlist, gateway, wallet):
        await watchlist.add(wallet)
        await watchlist.rescore(wallet)
        assert len(gateway.calls) == 2

    async def test_unchanged_score(self, watchlist, wallet):
        await watchlist.add(wallet)
        outcome = await watchlist.rescore(wallet)
        assert outcome.change_info.change == 0
        assert outcome.change_info.direction == "stable"
        assert len(watchlist.get(wallet).history) == 2

    async def test_rescore_unwatched(self, watchlist, wallet):
        outcome = await watchlist.rescore(wallet)
        assert not outcome.is_watched
        assert outcome.change_info is None
        assert outcome.result.score == 77
        assert outcome.to_dict()["is_watched"] is False
        assert len(watchlist) == 0

    async def test_failed_rescore_leaves_entry_untouched(self, watchlist, gateway, wallet):
        await watchlist.add(wallet)
        gateway.errors[wallet] = LedgerUnreachable("down", identifier=wallet)
        with pytest.raises(LedgerUnreachable):
            await watchlist.rescore(wallet)
        entry = watchlist.get(wallet)
        assert entry.last_score == 77
        assert len(entry.history) == 1

    async def test_history_capped(self, watchlist, wallet):
        await watchlist.add(wallet)
        for _ in range(60):
            await watchlist.rescore(wallet)
        assert len(watchlist.get(wallet).history) == 50

    async def test_change_log_capped(self, watchlist, gateway, make_snapshot, wallet):
        await watchlist.add(wallet)
        busy = gateway.snapshots[wallet]
        quiet = make_snapshot(wallet, tx_count=15)  # activity 25 → 5
        for i in range(105):
            gateway.snapshots[wallet] = quiet if i % 2 == 0 else busy
            await watchlist.rescore(wallet)
        changes = watchlist.recent_changes()
        assert len(changes) == 100
        assert all(abs(c.change) == 20 for c in changes)
        assert len(watchlist.recent_changes(20)) == 20


class TestBulkRescore:
    async def test_errors_isolated(self, watchlist, gateway, make_snapshot, new_address):
        wallets = [new_address() for _ in range(3)]
        for w in wallets:
            gateway.snapshots[w] = make_snapshot(w)
            await watchlist.add(w)

        gateway.errors[wallets[0]] = LedgerUnreachable("down", identifier=wallets[0])
        gateway.snapshots[wallets[2]] = make_snapshot(wallets[2], tx_count=15)

        bulk = await watchlist.bulk_rescore()

        data = bulk.to_dict()
        assert data["rescored"] == 2
        assert data["alert_count"] == 1
        assert data["significant_changes"][0]["wallet"] == wallets[2]
        assert data["errors"] == [
            {
                "wallet": wallets[0],
                "error": "unreachable",
                "message": "down",
                "identifier": wallets[0],
                "retryable": True,
            }
        ]

    async def test_empty_watchlist(self, watchlist):
        assert (await watchlist.bulk_rescore()).to_dict()["rescored"] == 0


# ── Report & alerts ────────────────────────────────────────────────────


class TestReport:
    async def test_empty_report(self, watchlist):
        report = watchlist.report()
        assert report["summary"] == "No wallets in watchlist"
        assert report["watchlist_count"] == 0

    async def test_report_summary(self, watchlist, gateway, make_snapshot, new_address):
        a, b = new_address(), new_address()
        gateway.snapshots[a] = make_snapshot(a)  # 77 B
        gateway.snapshots[b] = make_snapshot(b, age_days=10)  # 52 C
        await watchlist.add(a)
        await watchlist.add(b)

        report = watchlist.report()

        assert report["summary"]["watchlist_count"] == 2
        assert report["summary"]["average_score"] == 64.5
        assert report["summary"]["grade_distribution"] == {"B": 1, "C": 1}
        assert report["top_performers"][0]["wallet"] == a
        assert report["bottom_performers"][0]["wallet"] == b
        assert report["alerts"] == "No significant score changes detected"

    async def test_report_is_read_only(self, watchlist, gateway, make_snapshot, wallet):
        await watchlist.add(wallet)
        gateway.snapshots[wallet] = make_snapshot(wallet, tx_count=15)
        await watchlist.rescore(wallet)

        before = [e.to_dict() for e in watchlist.entries()]
        first = watchlist.report()
        second = watchlist.report()
        assert first == second
        assert [e.to_dict() for e in watchlist.entries()] == before
        assert first["significant_changes"][0]["change"] == -20
        assert first["alerts"].startswith("1 wallet(s)")

    async def test_recent_changes_window(self, watchlist, gateway, make_snapshot, wallet, date_clock):
        await watchlist.add(wallet)
        gateway.snapshots[wallet] = make_snapshot(wallet, tx_count=15)
        await watchlist.rescore(wallet)

        assert len(watchlist.report()["recent_changes_24h"]) == 1
        date_clock.advance(hours=25)
        assert watchlist.report()["recent_changes_24h"] == []
        assert len(watchlist.recent_changes()) == 1


class TestAlertPayload:
    async def test_no_changes_no_payload(self, watchlist, wallet):
        await watchlist.add(wallet)
        payload, changes = watchlist.alert_payload()
        assert payload is None
        assert changes == []

    async def test_payload_from_recent_changes(self, watchlist, gateway, make_snapshot, wallet):
        await watchlist.add(wallet)
        gateway.snapshots[wallet] = make_snapshot(wallet, tx_count=15)
        await watchlist.rescore(wallet)

        payload, changes = watchlist.alert_payload()
        assert len(changes) == 1
        assert "1 Significant Score Change" in payload.title
        assert "77 → 57 (-20)" in payload.content

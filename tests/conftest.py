"""Shared test fixtures: fake ledger, fake clocks, snapshot builders."""

import asyncio
from collections.abc import Callable

import pytest
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from blockscore.exceptions import BlockScoreError, DomainResolutionFailed
from blockscore.ledger.deadline import Deadline
from blockscore.ledger.models import LedgerSignature, LedgerSnapshot, TokenHolding
from blockscore.scoring.cache import ScoreCache
from blockscore.scoring.engine import ScoringEngine

NOW = 1_700_000_000.0
DAY = 86_400
MSOL_MINT = "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGateway:
    """In-memory snapshot source; counts every ledger pass."""

    def __init__(self) -> None:
        self.snapshots: dict[str, LedgerSnapshot] = {}
        self.errors: dict[str, BlockScoreError] = {}
        self.calls: list[str] = []
        self.delay = 0.0

    async def snapshot(self, address: str, deadline: Deadline) -> LedgerSnapshot:
        self.calls.append(address)
        if self.delay:
            await asyncio.sleep(self.delay)
        if address in self.errors:
            raise self.errors[address]
        return self.snapshots[address]


class FakeResolver:
    def __init__(self, domains: dict[str, str]) -> None:
        self.domains = domains
        self.calls: list[str] = []

    async def resolve(self, domain: str) -> str:
        self.calls.append(domain)
        try:
            return self.domains[domain.lower()]
        except KeyError:
            raise DomainResolutionFailed("Could not resolve .sol domain", identifier=domain) from None


def build_snapshot(
    address: str,
    *,
    age_days: int = 365,
    last_active_days: int = 1,
    tx_count: int = 120,
    sol: float = 12.5,
    fungible: int = 4,
    nfts: int = 0,
    staked: float = 0.0,
    captured_at: float = NOW,
) -> LedgerSnapshot:
    """Snapshot whose extracted signals match the arguments.

    ``fungible`` counts plain SPL tokens; a staked-SOL holding is added on
    top of it when ``staked`` is positive.
    """
    signatures = []
    for i in range(tx_count):
        if tx_count == 1:
            days = age_days
        else:
            days = last_active_days + (age_days - last_active_days) * i / (tx_count - 1)
        signatures.append(
            LedgerSignature(signature=f"sig{i}", slot=1000 - i, block_time=int(captured_at - days * DAY))
        )

    holdings = [
        TokenHolding(mint=str(Pubkey.new_unique()), decimals=6, amount=1_000_000) for _ in range(fungible)
    ]
    holdings += [TokenHolding(mint=str(Pubkey.new_unique()), decimals=0, amount=1) for _ in range(nfts)]
    if staked > 0:
        holdings.append(TokenHolding(mint=MSOL_MINT, decimals=9, amount=int(staked * 1_000_000_000)))

    return LedgerSnapshot(
        address=address,
        captured_at=captured_at,
        balance_lamports=int(sol * 1_000_000_000),
        signatures=tuple(signatures),
        token_holdings=tuple(holdings),
    )


@pytest.fixture
def make_snapshot() -> Callable[..., LedgerSnapshot]:
    return build_snapshot


@pytest.fixture
def new_address() -> Callable[[], str]:
    return lambda: str(Pubkey.new_unique())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def resolver(new_address) -> FakeResolver:
    return FakeResolver({"bonfida.sol": new_address()})


@pytest.fixture
def engine(gateway: FakeGateway, clock: FakeClock, resolver: FakeResolver) -> ScoringEngine:
    return ScoringEngine(gateway, ScoreCache(300, clock=clock), resolver=resolver, score_timeout=5.0)

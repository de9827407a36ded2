"""Snapshot to ScoreResult: the deterministic part of the pipeline."""

from datetime import UTC, datetime

from blockscore.exceptions import NoActivity
from blockscore.ledger.models import LedgerSnapshot
from blockscore.scoring.badges import award_badges, grade_for
from blockscore.scoring.ladders import composite_score, compute_breakdown
from blockscore.scoring.models import ScoreResult, SignalSet, WalletStats
from blockscore.scoring.signals import extract_signals


def score_signals(wallet: str, signals: SignalSet, *, computed_at: datetime | None = None) -> ScoreResult:
    breakdown = compute_breakdown(signals)
    score = composite_score(breakdown)
    return ScoreResult(
        wallet=wallet,
        score=score,
        grade=grade_for(score),
        breakdown=breakdown,
        badges=award_badges(signals, breakdown, score),
        stats=WalletStats(
            sol_balance=round(signals.sol_balance, 3),
            staked_sol=round(signals.staked_sol, 3),
            total_sol_value=round(signals.total_value, 3),
            token_count=signals.fungible_token_count,
            nft_count=signals.nft_count,
            tx_count=signals.tx_count,
            oldest_tx_days=signals.age_days,
            last_active_days=signals.last_active_days,
            estimated_protocol_interactions=signals.estimated_protocol_interactions,
        ),
        computed_at=computed_at or datetime.now(UTC),
    )


def score_snapshot(snapshot: LedgerSnapshot, *, computed_at: datetime | None = None) -> ScoreResult:
    """Score one snapshot.

    Raises NoActivity when the snapshot holds no signatures: a wallet
    without a single transaction is not scored.
    """
    if not snapshot.signatures:
        raise NoActivity("No activity found for this wallet", identifier=snapshot.address)
    return score_signals(snapshot.address, extract_signals(snapshot), computed_at=computed_at)

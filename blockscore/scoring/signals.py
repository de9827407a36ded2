"""Signal extraction: LedgerSnapshot to SignalSet, no I/O."""

from blockscore.ledger.models import LedgerSnapshot
from blockscore.scoring.models import SignalSet

LAMPORTS_PER_SOL = 1_000_000_000
SECONDS_PER_DAY = 86_400

# Liquid staking tokens, counted roughly 1:1 with SOL (no price lookup)
STAKED_SOL_MINTS: dict[str, str] = {
    "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So": "mSOL",  # Marinade
    "J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn": "jitoSOL",  # Jito
    "bSo13r4TkiE4KumL71LsHTPpL2euBYLFx6h9HP3piy1": "bSOL",  # BlazeStake
    "7dHbWXmci3dT8UFYWYZweBLXgycu7Y3iL6trKn1Y7ARj": "stSOL",  # Lido
    "he1iusmfkpAdwvxLNGV8Y1iSbj4rUy6yMhEA3fotn9A": "hSOL",  # Helius
    "LSTxxxnJzKDFSLr4dUkPcmCf5VyryEqzPLz5j4bpxFp": "LST",  # Sanctum
}


def _days_since(now: float, timestamp: int | None) -> int:
    if timestamp is None:
        return 0
    return max(int((now - timestamp) // SECONDS_PER_DAY), 0)


def extract_signals(snapshot: LedgerSnapshot) -> SignalSet:
    """Derive scoring signals from a single snapshot.

    Ages are measured against ``snapshot.captured_at`` so that age and
    last-activity share one clock read. ``tx_count`` is the size of the
    bounded signature sample, not the lifetime count.
    """
    now = snapshot.captured_at
    signatures = snapshot.signatures

    age_days = 0
    last_active_days = 0
    if signatures:
        age_days = _days_since(now, signatures[-1].block_time)
        last_active_days = _days_since(now, signatures[0].block_time)

    staked_sol = 0.0
    nft_count = 0
    fungible_count = 0
    for holding in snapshot.token_holdings:
        if holding.mint in STAKED_SOL_MINTS and holding.amount > 0:
            staked_sol += holding.ui_amount
        if holding.is_nft:
            nft_count += 1
        elif holding.amount > 0:
            fungible_count += 1

    sol_balance = snapshot.balance_lamports / LAMPORTS_PER_SOL
    tx_count = len(signatures)

    return SignalSet(
        age_days=age_days,
        last_active_days=last_active_days,
        tx_count=tx_count,
        sol_balance=sol_balance,
        staked_sol=staked_sol,
        total_value=sol_balance + staked_sol,
        fungible_token_count=fungible_count,
        nft_count=nft_count,
        estimated_protocol_interactions=estimate_protocol_interactions(snapshot, tx_count),
    )


def estimate_protocol_interactions(snapshot: LedgerSnapshot, tx_count: int) -> int | None:
    """Extrapolate DeFi interactions from the recent-transaction sample.

    hits / sampled is measured on the newest transactions only and scaled
    to the whole signature sample. The estimate is biased toward recent
    behaviour and noisy for small samples; it is reported as an estimate
    and never corrected into an exact count.
    """
    sample = snapshot.protocol_sample
    if sample is None or sample.sampled == 0:
        return None
    rate = min(sample.protocol_hits / sample.sampled, 1.0)
    return round(rate * tx_count)

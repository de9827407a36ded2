"""Bucket scoring: each signal mapped to 0-25 points by a descending ladder.

Thresholds are inclusive lower bounds, scanned highest first, so a value
sitting exactly on a boundary lands in the higher bucket. The bucket that
yields the points also yields the reason text.
"""

import math
from dataclasses import dataclass

from blockscore.scoring.models import MAX_SCORE, MAX_SUB_SCORE, ScoreBreakdown, ScoreReason, SignalSet


@dataclass(frozen=True)
class Bucket:
    threshold: float
    points: int
    reason: str
    details: str  # str.format template


@dataclass(frozen=True)
class Ladder:
    name: str
    buckets: tuple[Bucket, ...]  # descending thresholds, last one is the floor

    def select(self, value: float) -> Bucket:
        for bucket in self.buckets:
            if value >= bucket.threshold:
                return bucket
        return self.buckets[-1]


FLOOR = -math.inf

# 5 points per complete 30-day period
AGE_LADDER = Ladder(
    "age",
    (
        Bucket(150, 25, "Veteran wallet", "{days} days old - maximum maturity achieved"),
        Bucket(120, 20, "Well-established", "{days} days old - 4+ months of history"),
        Bucket(90, 15, "Established wallet", "{days} days old - 3+ months on-chain"),
        Bucket(60, 10, "Growing history", "{days} days old - building credibility"),
        Bucket(30, 5, "New but active", "{days} days old - 1+ month of activity"),
        Bucket(FLOOR, 0, "Fresh wallet", "Only {days} days old - needs more history"),
    ),
)

# 5 points per complete 10-transaction block
ACTIVITY_LADDER = Ladder(
    "activity",
    (
        Bucket(50, 25, "Highly active", "{tx} transactions - power user status"),
        Bucket(40, 20, "Very active", "{tx} transactions - frequent usage"),
        Bucket(30, 15, "Active user", "{tx} transactions - regular engagement"),
        Bucket(20, 10, "Moderate activity", "{tx} transactions - average usage"),
        Bucket(10, 5, "Low activity", "{tx} transactions - occasional user"),
        Bucket(FLOOR, 0, "Minimal activity", "Only {tx} transactions - limited engagement"),
    ),
)

# Coarse bands on liquid + staked SOL
BALANCE_LADDER = Ladder(
    "balance",
    (
        Bucket(100, 25, "Whale status", "{total:.2f} SOL total{staking_note} - significant holdings"),
        Bucket(50, 20, "Major holder", "{total:.2f} SOL total{staking_note} - substantial position"),
        Bucket(10, 15, "Solid holdings", "{total:.2f} SOL total{staking_note} - meaningful stake"),
        Bucket(1, 10, "Modest holdings", "{total:.2f} SOL total{staking_note} - some skin in the game"),
        Bucket(0.1, 5, "Small holdings", "{total:.3f} SOL total - minimal funds"),
        Bucket(FLOOR, 0, "Dust account", "{total:.4f} SOL total - needs funding"),
    ),
)

# Applied to the diversity points, which come from a formula rather than the ladder
DIVERSITY_LADDER = Ladder(
    "diversity",
    (
        Bucket(25, 25, "Highly diversified", "{tokens} tokens + {nfts} NFTs - excellent portfolio diversity"),
        Bucket(15, 15, "Well diversified", "{tokens} tokens + {nfts} NFTs - good asset spread"),
        Bucket(9, 9, "Moderately diversified", "{tokens} tokens + {nfts} NFTs - some variety"),
        Bucket(3, 3, "Limited diversity", "{tokens} tokens + {nfts} NFTs - concentrated holdings"),
        Bucket(FLOOR, 0, "Minimal diversity", "{tokens} tokens + {nfts} NFTs - needs diversification"),
    ),
)

POINTS_PER_TOKEN = 3
NFTS_PER_BONUS_POINT = 5
MAX_NFT_BONUS = 5


def _reason(bucket: Bucket, points: int, **fields: object) -> ScoreReason:
    return ScoreReason(
        score=min(max(points, 0), MAX_SUB_SCORE),
        reason=bucket.reason,
        details=bucket.details.format(**fields),
    )


def score_age(age_days: int) -> ScoreReason:
    bucket = AGE_LADDER.select(age_days)
    return _reason(bucket, bucket.points, days=age_days)


def score_activity(tx_count: int) -> ScoreReason:
    bucket = ACTIVITY_LADDER.select(tx_count)
    return _reason(bucket, bucket.points, tx=tx_count)


def score_balance(total_value: float, staked_sol: float = 0.0) -> ScoreReason:
    bucket = BALANCE_LADDER.select(total_value)
    staking_note = f" ({staked_sol:.2f} staked)" if staked_sol > 0 else ""
    return _reason(bucket, bucket.points, total=total_value, staking_note=staking_note)


def diversity_points(fungible_token_count: int, nft_count: int) -> int:
    nft_bonus = min(MAX_NFT_BONUS, nft_count // NFTS_PER_BONUS_POINT)
    return min(MAX_SUB_SCORE, fungible_token_count * POINTS_PER_TOKEN + nft_bonus)


def score_diversity(fungible_token_count: int, nft_count: int) -> ScoreReason:
    points = diversity_points(fungible_token_count, nft_count)
    bucket = DIVERSITY_LADDER.select(points)
    return _reason(bucket, points, tokens=fungible_token_count, nfts=nft_count)


def compute_breakdown(signals: SignalSet) -> ScoreBreakdown:
    return ScoreBreakdown(
        age=score_age(signals.age_days),
        activity=score_activity(signals.tx_count),
        balance=score_balance(signals.total_value, signals.staked_sol),
        diversity=score_diversity(signals.fungible_token_count, signals.nft_count),
    )


def composite_score(breakdown: ScoreBreakdown) -> int:
    # Sub-scores are capped at 25 each, the clamp never fires in practice
    return min(MAX_SCORE, max(0, sum(breakdown.sub_scores())))

"""Grade ladder and achievement badges.

Badges come from an ordered rule table. Rules sharing a ``category`` are
tiers of the same achievement: the first one that fires (highest tier) wins
and the rest of the category is skipped. Rules without a category are
independent and can co-occur with anything.
"""

from collections.abc import Callable
from dataclasses import dataclass

from blockscore.scoring.models import (
    MAX_SUB_SCORE,
    RARITY_ORDER,
    Badge,
    Rarity,
    ScoreBreakdown,
    SignalSet,
)

GRADE_LADDER: tuple[tuple[int, str], ...] = (
    (90, "S"),
    (80, "A"),
    (65, "B"),
    (50, "C"),
    (35, "D"),
)


def grade_for(score: int) -> str:
    for threshold, grade in GRADE_LADDER:
        if score >= threshold:
            return grade
    return "F"


BADGES: dict[str, Badge] = {
    b.id: b
    for b in (
        Badge(id="og_holder", name="OG Holder", icon="👴", description="Wallet active for over 2 years", rarity=Rarity.LEGENDARY),
        Badge(id="diamond_hands", name="Diamond Hands", icon="💎", description="Wallet active for over 1 year", rarity=Rarity.EPIC),
        Badge(id="fresh_wallet", name="Fresh Wallet", icon="🌱", description="Wallet less than 30 days old", rarity=Rarity.COMMON),
        Badge(id="whale", name="Whale", icon="🐋", description="Holdings exceed 100 SOL", rarity=Rarity.EPIC),
        Badge(id="dolphin", name="Dolphin", icon="🐬", description="Holdings exceed 10 SOL", rarity=Rarity.RARE),
        Badge(id="active_trader", name="Active Trader", icon="📈", description="Over 1,000 transactions", rarity=Rarity.EPIC),
        Badge(id="frequent_user", name="Frequent User", icon="⚡", description="Over 100 transactions", rarity=Rarity.RARE),
        Badge(id="nft_whale", name="NFT Whale", icon="🎨", description="Owns 50+ NFTs", rarity=Rarity.EPIC),
        Badge(id="nft_collector", name="NFT Collector", icon="🖼️", description="Owns 10+ NFTs", rarity=Rarity.RARE),
        Badge(id="token_diversifier", name="Token Diversifier", icon="🌈", description="Holds 10+ different tokens", rarity=Rarity.RARE),
        Badge(id="defi_degen", name="DeFi Degen", icon="🔥", description="Has staked SOL in liquid staking protocols", rarity=Rarity.RARE),
        Badge(id="staking_maxi", name="Staking Maxi", icon="🔒", description="Over 50% of holdings in staked SOL", rarity=Rarity.EPIC),
        Badge(id="perfect_score", name="Perfect Score", icon="👑", description="Achieved maximum score in any category", rarity=Rarity.LEGENDARY),
        Badge(id="s_tier", name="S-Tier", icon="⭐", description="Overall S grade (90+ score)", rarity=Rarity.LEGENDARY),
    )
}


@dataclass(frozen=True)
class BadgeContext:
    signals: SignalSet
    breakdown: ScoreBreakdown
    score: int


@dataclass(frozen=True)
class BadgeRule:
    badge_id: str
    predicate: Callable[[BadgeContext], bool]
    category: str | None = None


def _staking_ratio(ctx: BadgeContext) -> float:
    total = ctx.signals.total_value
    return ctx.signals.staked_sol / total if total > 0 else 0.0


BADGE_RULES: tuple[BadgeRule, ...] = (
    BadgeRule("og_holder", lambda c: c.signals.age_days >= 730, "age"),
    BadgeRule("diamond_hands", lambda c: c.signals.age_days >= 365, "age"),
    BadgeRule("fresh_wallet", lambda c: c.signals.age_days < 30, "age"),
    BadgeRule("whale", lambda c: c.signals.total_value >= 100, "value"),
    BadgeRule("dolphin", lambda c: c.signals.total_value >= 10, "value"),
    BadgeRule("active_trader", lambda c: c.signals.tx_count >= 1000, "activity"),
    BadgeRule("frequent_user", lambda c: c.signals.tx_count >= 100, "activity"),
    BadgeRule("nft_whale", lambda c: c.signals.nft_count >= 50, "nft"),
    BadgeRule("nft_collector", lambda c: c.signals.nft_count >= 10, "nft"),
    BadgeRule("token_diversifier", lambda c: c.signals.fungible_token_count >= 10),
    BadgeRule("defi_degen", lambda c: c.signals.staked_sol > 0),
    BadgeRule("staking_maxi", lambda c: c.signals.staked_sol > 0 and _staking_ratio(c) > 0.5),
    BadgeRule("perfect_score", lambda c: MAX_SUB_SCORE in c.breakdown.sub_scores()),
    BadgeRule("s_tier", lambda c: c.score >= 90),
)


def award_badges(
    signals: SignalSet,
    breakdown: ScoreBreakdown,
    score: int,
    rules: tuple[BadgeRule, ...] = BADGE_RULES,
) -> tuple[Badge, ...]:
    """Evaluate the rule table once; legendary first, ties keep rule order."""
    ctx = BadgeContext(signals=signals, breakdown=breakdown, score=score)
    claimed: set[str] = set()
    awarded: list[Badge] = []
    for rule in rules:
        if rule.category is not None and rule.category in claimed:
            continue
        if rule.predicate(ctx):
            awarded.append(BADGES[rule.badge_id])
            if rule.category is not None:
                claimed.add(rule.category)
    # sorted() is stable, so rule order breaks rarity ties
    return tuple(sorted(awarded, key=lambda b: RARITY_ORDER[b.rarity]))

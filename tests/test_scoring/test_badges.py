"""Tests for grade ladder and badge rules."""

import pytest

from blockscore.scoring.badges import BADGE_RULES, BADGES, BadgeRule, award_badges, grade_for
from blockscore.scoring.ladders import composite_score, compute_breakdown
from blockscore.scoring.models import RARITY_ORDER, SignalSet


def _badges(**signals) -> list[str]:
    s = SignalSet(**signals)
    breakdown = compute_breakdown(s)
    return [b.id for b in award_badges(s, breakdown, composite_score(breakdown))]


@pytest.mark.parametrize(
    ("score", "grade"),
    [(100, "S"), (90, "S"), (89, "A"), (80, "A"), (79, "B"), (65, "B"), (64, "C"),
     (50, "C"), (49, "D"), (35, "D"), (34, "F"), (0, "F")],
)
def test_grade_boundaries(score: int, grade: str):
    assert grade_for(score) == grade


def test_every_rule_has_a_badge():
    assert {r.badge_id for r in BADGE_RULES} == set(BADGES)
    assert len(BADGES) == 14


class TestCategoryExclusivity:
    def test_og_holder_excludes_diamond_hands(self):
        ids = _badges(age_days=800)
        assert "og_holder" in ids
        assert "diamond_hands" not in ids

    def test_diamond_hands_not_og(self):
        ids = _badges(age_days=365)
        assert "diamond_hands" in ids
        assert "og_holder" not in ids

    def test_fresh_wallet(self):
        assert "fresh_wallet" in _badges(age_days=29)
        assert "fresh_wallet" not in _badges(age_days=30)

    def test_whale_excludes_dolphin(self):
        ids = _badges(sol_balance=150, total_value=150)
        assert "whale" in ids
        assert "dolphin" not in ids
        assert "dolphin" in _badges(sol_balance=10, total_value=10)

    def test_active_trader_excludes_frequent_user(self):
        ids = _badges(tx_count=1000)
        assert "active_trader" in ids
        assert "frequent_user" not in ids
        assert "frequent_user" in _badges(tx_count=100)
        assert "frequent_user" not in _badges(tx_count=99)

    def test_nft_tiers(self):
        assert "nft_whale" in _badges(nft_count=50)
        assert "nft_collector" not in _badges(nft_count=50)
        assert "nft_collector" in _badges(nft_count=10)


class TestIndependentBadges:
    def test_token_diversifier(self):
        assert "token_diversifier" in _badges(fungible_token_count=10)
        assert "token_diversifier" not in _badges(fungible_token_count=9)

    def test_staking_badges(self):
        ids = _badges(sol_balance=4, staked_sol=6, total_value=10)
        assert "defi_degen" in ids
        assert "staking_maxi" in ids

    def test_staking_exactly_half_is_not_maxi(self):
        ids = _badges(sol_balance=5, staked_sol=5, total_value=10)
        assert "defi_degen" in ids
        assert "staking_maxi" not in ids

    def test_perfect_score_on_any_category(self):
        assert "perfect_score" in _badges(age_days=150)
        assert "perfect_score" not in _badges(age_days=149)

    def test_s_tier(self):
        ids = _badges(age_days=400, tx_count=60, sol_balance=200, total_value=200, fungible_token_count=9)
        assert "s_tier" in ids


def test_badges_sorted_by_rarity():
    s = SignalSet(age_days=800, tx_count=150, sol_balance=20, total_value=20, fungible_token_count=12, nft_count=12)
    breakdown = compute_breakdown(s)
    badges = award_badges(s, breakdown, composite_score(breakdown))
    ranks = [RARITY_ORDER[b.rarity] for b in badges]
    assert ranks == sorted(ranks)
    assert badges[0].id == "og_holder"


def test_rarity_ties_keep_rule_order():
    always = lambda c: True  # noqa: E731
    rules = (BadgeRule("dolphin", always), BadgeRule("frequent_user", always), BadgeRule("whale", always))
    s = SignalSet()
    breakdown = compute_breakdown(s)
    ids = [b.id for b in award_badges(s, breakdown, 0, rules=rules)]
    assert ids == ["whale", "dolphin", "frequent_user"]


def test_no_badges_for_empty_wallet_except_fresh():
    assert _badges() == ["fresh_wallet"]

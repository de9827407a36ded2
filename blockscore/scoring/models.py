"""Scoring value types: signals, breakdown, badges, final result."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

MAX_SUB_SCORE = 25
MAX_SCORE = 100


class Rarity(str, Enum):
    LEGENDARY = "legendary"
    EPIC = "epic"
    RARE = "rare"
    COMMON = "common"


RARITY_ORDER = {Rarity.LEGENDARY: 0, Rarity.EPIC: 1, Rarity.RARE: 2, Rarity.COMMON: 3}


class SignalSet(BaseModel):
    """Canonical numeric signals derived from one snapshot."""

    model_config = ConfigDict(frozen=True)

    age_days: int = Field(default=0, ge=0)
    last_active_days: int = Field(default=0, ge=0)
    tx_count: int = Field(default=0, ge=0)
    sol_balance: float = Field(default=0.0, ge=0)
    staked_sol: float = Field(default=0.0, ge=0)
    total_value: float = Field(default=0.0, ge=0)
    fungible_token_count: int = Field(default=0, ge=0)
    nft_count: int = Field(default=0, ge=0)
    estimated_protocol_interactions: int | None = Field(default=None, ge=0)


class ScoreReason(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=MAX_SUB_SCORE)
    max_score: int = MAX_SUB_SCORE
    reason: str
    details: str


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    age: ScoreReason
    activity: ScoreReason
    balance: ScoreReason
    diversity: ScoreReason

    def sub_scores(self) -> tuple[int, int, int, int]:
        return (self.age.score, self.activity.score, self.balance.score, self.diversity.score)


class Badge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    icon: str
    description: str
    rarity: Rarity


class WalletStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    sol_balance: float
    staked_sol: float
    total_sol_value: float
    token_count: int
    nft_count: int
    tx_count: int
    oldest_tx_days: int
    last_active_days: int
    estimated_protocol_interactions: int | None = None


class ScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    wallet: str
    score: int = Field(ge=0, le=MAX_SCORE)
    grade: str
    breakdown: ScoreBreakdown
    badges: tuple[Badge, ...] = ()
    stats: WalletStats
    computed_at: datetime

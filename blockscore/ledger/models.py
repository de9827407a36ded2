"""Typed ledger snapshot models, populated from Solana JSON-RPC responses."""

from pydantic import BaseModel, ConfigDict, Field


class LedgerSignature(BaseModel):
    """Entry of getSignaturesForAddress."""

    model_config = ConfigDict(frozen=True)

    signature: str
    slot: int = 0
    block_time: int | None = None  # unix, None when the node has no timestamp
    failed: bool = False


class TokenHolding(BaseModel):
    """SPL token account owned by the wallet."""

    model_config = ConfigDict(frozen=True)

    mint: str
    decimals: int = Field(default=0, ge=0)
    amount: int = Field(default=0, ge=0)  # raw base units

    @property
    def ui_amount(self) -> float:
        return self.amount / (10**self.decimals)

    @property
    def is_nft(self) -> bool:
        return self.decimals == 0 and self.amount == 1


class ProtocolSample(BaseModel):
    """Recent-transaction sample used for the protocol-interaction estimate."""

    model_config = ConfigDict(frozen=True)

    sampled: int = Field(default=0, ge=0)
    protocol_hits: int = Field(default=0, ge=0)


class LedgerSnapshot(BaseModel):
    """Single read of ledger state; the only input of one scoring pass."""

    model_config = ConfigDict(frozen=True)

    address: str
    captured_at: float  # unix seconds
    balance_lamports: int = Field(default=0, ge=0)
    signatures: tuple[LedgerSignature, ...] = ()  # newest first
    token_holdings: tuple[TokenHolding, ...] = ()
    protocol_sample: ProtocolSample | None = None
    degraded: tuple[str, ...] = ()  # sub-queries that fell back to defaults

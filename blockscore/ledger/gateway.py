"""Ledger gateway: one concurrent, deadline-bounded snapshot per scoring pass.

Balance and token holdings degrade to empty defaults when their query
fails. Signature history does not: without it the wallet cannot be scored,
so its failure propagates to the caller.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger

from blockscore.exceptions import BlockScoreError, LedgerTimeout
from blockscore.ledger.client import SolanaRpcClient
from blockscore.ledger.deadline import Deadline
from blockscore.ledger.models import LedgerSignature, LedgerSnapshot, ProtocolSample, TokenHolding

T = TypeVar("T")

# Helius "source" values counted as DeFi protocol interactions
PROTOCOL_SOURCES = frozenset({
    "JUPITER",
    "RAYDIUM",
    "ORCA",
    "METEORA",
    "LIFINITY",
    "PHOENIX",
    "OPENBOOK",
    "MARINADE",
    "SANCTUM",
    "KAMINO",
    "MARGINFI",
    "SOLEND",
    "DRIFT",
})


class LedgerGateway:
    """Builds a typed LedgerSnapshot from read-only RPC queries."""

    def __init__(
        self,
        rpc: SolanaRpcClient,
        *,
        query_timeout: float = 10.0,
        signature_sample_size: int = 100,
        protocol_sample_size: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._rpc = rpc
        self._query_timeout = query_timeout
        self._signature_sample_size = signature_sample_size
        self._protocol_sample_size = protocol_sample_size
        self._clock = clock

    async def snapshot(self, address: str, deadline: Deadline) -> LedgerSnapshot:
        captured_at = self._clock()
        balance_res, sigs_res, tokens_res = await asyncio.gather(
            self._bounded(lambda: self._rpc.get_balance(address), deadline, "balance", address),
            self._bounded(
                lambda: self._rpc.get_signatures_for_address(
                    address, limit=self._signature_sample_size
                ),
                deadline,
                "signatures",
                address,
            ),
            self._bounded(
                lambda: self._rpc.get_token_accounts_by_owner(address), deadline, "tokens", address
            ),
            return_exceptions=True,
        )

        if isinstance(sigs_res, BaseException):
            raise sigs_res

        degraded: list[str] = []
        balance = _degrade(balance_res, 0, "balance", address, degraded)
        raw_tokens = _degrade(tokens_res, [], "tokens", address, degraded)

        signatures = tuple(s for s in (_parse_signature(r) for r in sigs_res) if s is not None)
        holdings = tuple(h for h in (_parse_token_account(r) for r in raw_tokens) if h is not None)

        protocol_sample = None
        if signatures and self._protocol_sample_size > 0 and self._rpc.supports_enhanced_transactions:
            try:
                protocol_sample = await self._sample_protocols(address, signatures, deadline)
            except BlockScoreError as e:
                logger.debug(f"[LEDGER] protocol sample degraded for {address[:8]}: {e}")
                degraded.append("protocol_sample")

        if degraded:
            logger.info(f"[LEDGER] {address[:8]}… snapshot degraded: {', '.join(degraded)}")

        return LedgerSnapshot(
            address=address,
            captured_at=captured_at,
            balance_lamports=balance,
            signatures=signatures,
            token_holdings=holdings,
            protocol_sample=protocol_sample,
            degraded=tuple(degraded),
        )

    async def _sample_protocols(
        self, address: str, signatures: tuple[LedgerSignature, ...], deadline: Deadline
    ) -> ProtocolSample:
        # Most recent prefix only; the extrapolated rate is recency-biased
        prefix = [s.signature for s in signatures[: self._protocol_sample_size]]
        txs = await self._bounded(
            lambda: self._rpc.get_parsed_transactions(prefix), deadline, "protocol_sample", address
        )
        hits = sum(1 for tx in txs if str(tx.get("source", "")).upper() in PROTOCOL_SOURCES)
        return ProtocolSample(sampled=len(txs), protocol_hits=hits)

    async def _bounded(
        self,
        call: Callable[[], Awaitable[T]],
        deadline: Deadline,
        query: str,
        address: str,
    ) -> T:
        timeout = deadline.clamp(self._query_timeout)
        if timeout <= 0:
            raise LedgerTimeout(f"{query}: deadline already expired", identifier=address)
        try:
            return await asyncio.wait_for(call(), timeout)
        except asyncio.TimeoutError as e:
            raise LedgerTimeout(
                f"{query} exceeded {timeout:.1f}s", identifier=address, cause=e
            ) from e


def _degrade(result: Any, default: Any, query: str, address: str, degraded: list[str]) -> Any:
    if isinstance(result, BlockScoreError):
        logger.debug(f"[LEDGER] {query} failed for {address[:8]}, using default: {result}")
        degraded.append(query)
        return default
    if isinstance(result, BaseException):
        raise result
    return result


def _parse_signature(raw: Any) -> LedgerSignature | None:
    if not isinstance(raw, dict):
        return None
    signature = raw.get("signature")
    if not isinstance(signature, str) or not signature:
        return None

    block_time = raw.get("blockTime")
    if isinstance(block_time, bool) or not isinstance(block_time, int) or block_time < 0:
        block_time = None
    slot = raw.get("slot")
    if isinstance(slot, bool) or not isinstance(slot, int) or slot < 0:
        slot = 0

    return LedgerSignature(
        signature=signature,
        slot=slot,
        block_time=block_time,
        failed=raw.get("err") is not None,
    )


def _parse_token_account(raw: Any) -> TokenHolding | None:
    try:
        info = raw["account"]["data"]["parsed"]["info"]
        token_amount = info["tokenAmount"]
        mint = info["mint"]
        amount = int(token_amount.get("amount", "0"))
        decimals = int(token_amount.get("decimals", 0))
    except (KeyError, TypeError, ValueError, AttributeError):
        return None
    if not isinstance(mint, str) or amount < 0 or decimals < 0:
        return None
    return TokenHolding(mint=mint, decimals=decimals, amount=amount)

"""Solana JSON-RPC client: read-only account queries used for scoring."""

import asyncio
from typing import Any

import httpx
from loguru import logger

from blockscore.exceptions import LedgerNotFound, LedgerTimeout, LedgerUnreachable
from blockscore.ledger.rate_limiter import RateLimiter

MAX_RETRIES = 2
RETRY_DELAYS = (1.0, 3.0)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
HELIUS_API_URL = "https://api.helius.xyz/v0"

# JSON-RPC "invalid params", returned for keys the node cannot resolve
RPC_INVALID_PARAMS = -32602


class SolanaRpcClient:
    """Async HTTP client for the Solana JSON-RPC API.

    Unlike fire-and-forget enrichment clients, failures are raised as typed
    ledger errors; the gateway decides which sub-queries may degrade.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        helius_api_key: str = "",
        max_rps: float = 10.0,
        http_timeout: float = 15.0,
        retry_delays: tuple[float, ...] = RETRY_DELAYS,
    ) -> None:
        self._rpc_url = rpc_url
        self._helius_api_key = helius_api_key
        self._rate_limiter = RateLimiter(max_rps)
        self._retry_delays = retry_delays
        self._client = httpx.AsyncClient(timeout=http_timeout)

    @property
    def supports_enhanced_transactions(self) -> bool:
        return bool(self._helius_api_key)

    async def close(self) -> None:
        await self._client.aclose()

    async def get_balance(self, address: str) -> int:
        """Native balance in lamports."""
        result = await self._call("getBalance", [address, {"commitment": "confirmed"}], address)
        if isinstance(result, dict):
            value = result.get("value", 0)
        else:
            value = result
        return value if isinstance(value, int) and value >= 0 else 0

    async def get_signatures_for_address(self, address: str, *, limit: int = 100) -> list[dict[str, Any]]:
        """Raw signature entries, newest first."""
        params = [address, {"limit": min(limit, 1000), "commitment": "confirmed"}]
        result = await self._call("getSignaturesForAddress", params, address)
        return result if isinstance(result, list) else []

    async def get_token_accounts_by_owner(self, address: str) -> list[dict[str, Any]]:
        """Raw jsonParsed SPL token accounts owned by ``address``."""
        params = [
            address,
            {"programId": TOKEN_PROGRAM_ID},
            {"encoding": "jsonParsed", "commitment": "confirmed"},
        ]
        result = await self._call("getTokenAccountsByOwner", params, address)
        if isinstance(result, dict):
            value = result.get("value", [])
            return value if isinstance(value, list) else []
        return []

    async def get_parsed_transactions(self, signatures: list[str]) -> list[dict[str, Any]]:
        """Helius enhanced transactions for up to 100 signatures.

        Cost: 1 Helius credit per transaction.
        """
        if not self._helius_api_key or not signatures:
            return []
        url = f"{HELIUS_API_URL}/transactions?api-key={self._helius_api_key}"
        data = await self._post(url, {"transactions": signatures[:100]}, "enhancedTransactions", None)
        return [tx for tx in data if isinstance(tx, dict)] if isinstance(data, list) else []

    async def _call(self, method: str, params: list[Any], address: str) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        data = await self._post(self._rpc_url, payload, method, address)

        if not isinstance(data, dict):
            raise LedgerUnreachable(f"{method}: malformed RPC response", identifier=address)
        if "error" in data:
            error = data["error"] if isinstance(data["error"], dict) else {}
            if error.get("code") == RPC_INVALID_PARAMS:
                raise LedgerNotFound(
                    f"{method}: {error.get('message', 'invalid params')}", identifier=address
                )
            logger.debug(f"[LEDGER] {method} RPC error: {data['error']}")
            raise LedgerUnreachable(f"{method}: RPC error {data['error']}", identifier=address)
        return data.get("result")

    async def _post(self, url: str, payload: dict[str, Any], method: str, address: str | None) -> Any:
        for attempt in range(MAX_RETRIES + 1):
            try:
                await self._rate_limiter.acquire()
                resp = await self._client.post(url, json=payload)
            except httpx.TimeoutException as e:
                if attempt < MAX_RETRIES:
                    await asyncio.sleep(self._delay(attempt))
                    continue
                logger.warning(f"[LEDGER] {method} timed out: {e}")
                raise LedgerTimeout(f"{method} timed out", identifier=address, cause=e) from e
            except httpx.TransportError as e:
                if attempt < MAX_RETRIES:
                    await asyncio.sleep(self._delay(attempt))
                    continue
                logger.warning(f"[LEDGER] {method} failed: {e}")
                raise LedgerUnreachable(f"{method} failed: {e}", identifier=address, cause=e) from e

            if resp.status_code == 429:
                if attempt < MAX_RETRIES:
                    await asyncio.sleep(self._delay(attempt))
                    continue
                raise LedgerUnreachable(f"{method} rate limited", identifier=address)
            if resp.status_code != 200:
                logger.debug(f"[LEDGER] HTTP {resp.status_code} for {method}")
                raise LedgerUnreachable(f"{method} HTTP {resp.status_code}", identifier=address)

            try:
                return resp.json()
            except ValueError as e:
                raise LedgerUnreachable(f"{method}: invalid JSON", identifier=address, cause=e) from e

        raise LedgerUnreachable(f"{method} failed after retries", identifier=address)

    def _delay(self, attempt: int) -> float:
        if not self._retry_delays:
            return 0.0
        return self._retry_delays[min(attempt, len(self._retry_delays) - 1)]

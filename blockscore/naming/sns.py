"""Solana Name Service (.sol) resolution via the Bonfida SDK proxy."""

import httpx
from loguru import logger

from blockscore.exceptions import DomainResolutionFailed, InvalidIdentifier
from blockscore.naming.identifiers import domain_name, validate_address


class SnsResolver:
    """Resolves ``name.sol`` to the owner's wallet address.

    Proxy response format: ``{"s": "ok", "result": "<address>"}``.
    """

    def __init__(self, proxy_url: str, *, timeout: float = 10.0) -> None:
        self._proxy_url = proxy_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def resolve(self, domain: str) -> str:
        name = domain_name(domain)
        try:
            resp = await self._client.get(f"{self._proxy_url}/resolve/{name}")
        except httpx.HTTPError as e:
            logger.warning(f"[SNS] Failed to resolve {domain}: {e}")
            raise DomainResolutionFailed(
                "Could not resolve .sol domain", identifier=domain, cause=e
            ) from e

        if resp.status_code != 200:
            logger.debug(f"[SNS] HTTP {resp.status_code} for {domain}")
            raise DomainResolutionFailed("Could not resolve .sol domain", identifier=domain)

        try:
            data = resp.json()
        except ValueError as e:
            raise DomainResolutionFailed(
                "Could not resolve .sol domain", identifier=domain, cause=e
            ) from e

        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(data, dict) or data.get("s") != "ok" or not result:
            raise DomainResolutionFailed("Could not resolve .sol domain", identifier=domain)

        try:
            address = validate_address(result)
        except InvalidIdentifier as e:
            raise DomainResolutionFailed(
                f"Domain resolved to an invalid address: {result!r}", identifier=domain, cause=e
            ) from e

        logger.debug(f"[SNS] {domain} → {address}")
        return address

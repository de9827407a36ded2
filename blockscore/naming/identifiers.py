"""Account identifier validation: checked before any ledger call."""

import re

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from blockscore.exceptions import InvalidIdentifier

SOL_DOMAIN_SUFFIX = ".sol"
MIN_ADDRESS_LEN = 32
MAX_ADDRESS_LEN = 44

_DOMAIN_LABELS = re.compile(r"^[a-z0-9_-]+(\.[a-z0-9_-]+)*$", re.IGNORECASE)


def is_sol_domain(identifier: str) -> bool:
    return identifier.lower().endswith(SOL_DOMAIN_SUFFIX)


def domain_name(identifier: str) -> str:
    """``Bonfida.sol`` → ``bonfida``; raises InvalidIdentifier on bad labels."""
    name = identifier[: -len(SOL_DOMAIN_SUFFIX)].lower()
    if not name or len(name) > 253 or not _DOMAIN_LABELS.match(name):
        raise InvalidIdentifier(f"Invalid .sol domain: {identifier!r}", identifier=identifier)
    return name


def validate_address(identifier: str) -> str:
    """Return ``identifier`` unchanged if it is a valid base58 public key."""
    if not isinstance(identifier, str) or not MIN_ADDRESS_LEN <= len(identifier) <= MAX_ADDRESS_LEN:
        raise InvalidIdentifier("Invalid Solana address", identifier=str(identifier))
    try:
        Pubkey.from_string(identifier)
    except ValueError as e:
        raise InvalidIdentifier("Invalid Solana address", identifier=identifier, cause=e) from e
    return identifier

"""Admin API-key check for operational endpoints."""

from __future__ import annotations

import hmac

from blockscore.exceptions import Unauthorized

API_KEY_HEADER = "X-API-Key"


def verify_admin_key(provided: str | None, expected: str) -> None:
    """Raise Unauthorized unless ``provided`` matches the configured key.

    An empty configured key disables admin endpoints entirely.
    """
    if not expected or not provided:
        raise Unauthorized("Unauthorized")
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise Unauthorized("Unauthorized")

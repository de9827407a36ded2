"""Error taxonomy for the scoring and watchlist engine.

Every error carries the offending identifier and, where there is one, the
underlying cause. ``retryable`` separates transient ledger conditions from
terminal ones (bad input, wallets with no history).
"""

from __future__ import annotations


class BlockScoreError(Exception):
    code = "error"
    retryable = False
    http_status = 500

    def __init__(self, message: str, *, identifier: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.identifier = identifier
        self.cause = cause

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": str(self),
            "identifier": self.identifier,
            "retryable": self.retryable,
        }


class InvalidIdentifier(BlockScoreError):
    code = "invalid_identifier"
    http_status = 400


class DomainResolutionFailed(BlockScoreError):
    code = "domain_resolution_failed"
    http_status = 400


class NoActivity(BlockScoreError):
    code = "no_activity"
    http_status = 404


class LedgerNotFound(BlockScoreError):
    code = "not_found"
    http_status = 404


class LedgerUnreachable(BlockScoreError):
    code = "unreachable"
    retryable = True
    http_status = 502


class LedgerTimeout(BlockScoreError):
    code = "timeout"
    retryable = True
    http_status = 504


class ScoreTimeout(LedgerTimeout):
    """Whole-pipeline (single score or batch) deadline exceeded."""


class BatchTooLarge(BlockScoreError):
    code = "batch_too_large"
    http_status = 400


class AlreadyWatched(BlockScoreError):
    code = "already_watched"
    http_status = 409


class NotWatched(BlockScoreError):
    code = "not_watched"
    http_status = 404


class Unauthorized(BlockScoreError):
    code = "unauthorized"
    http_status = 401

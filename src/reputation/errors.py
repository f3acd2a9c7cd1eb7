"""Typed failure kinds for every protocol operation.

Engines raise ReputationError; the service layer turns it into a failed
ServiceResult carrying the same ErrorKind. A ReputationError is a
ValueError so callers that only care about "the input was rejected" can
keep catching ValueError.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Closed taxonomy of operation failures."""
    UNAUTHORIZED = "unauthorized"
    INVALID_PARAMETERS = "invalid_parameters"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    INSUFFICIENT_REPUTATION = "insufficient_reputation"
    INSUFFICIENT_STAKE = "insufficient_stake"
    RATE_LIMITED = "rate_limited"
    INVALID_ATTESTATION_IMPACT = "invalid_attestation_impact"
    INVALID_DURATION = "invalid_duration"
    INVALID_STRING = "invalid_string"
    PROTOCOL_PAUSED = "protocol_paused"
    AUDIT_FAILURE = "audit_failure"

    @property
    def code(self) -> int:
        """Stable numeric code, for hosts that report errors as integers."""
        return _ERROR_CODES[self]


_ERROR_CODES: dict[ErrorKind, int] = {
    kind: 100 + index for index, kind in enumerate(ErrorKind)
}


class ReputationError(ValueError):
    """A protocol rule rejected the operation."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    def __repr__(self) -> str:
        return f"ReputationError({self.kind.name}, {str(self)!r})"

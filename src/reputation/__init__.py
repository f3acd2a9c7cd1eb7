"""Stake-backed reputation protocol — identities, decaying reputation, attestations, governance."""

from reputation.errors import ErrorKind, ReputationError
from reputation.service import ReputationService, ServiceResult

__version__ = "0.1.0"

__all__ = [
    "ErrorKind",
    "ReputationError",
    "ReputationService",
    "ServiceResult",
]

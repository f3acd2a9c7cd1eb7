"""Core data models for the reputation protocol."""

from reputation.models.action import ActionConfig, ActionType, DailyActivityKey
from reputation.models.attestation import Attestation, AttestationType
from reputation.models.governance import (
    Proposal,
    ProposalActionType,
    ProposalStatus,
    Vote,
)
from reputation.models.identity import Identity, Profile, VerificationLevel
from reputation.models.protocol import ProtocolState

__all__ = [
    "ActionConfig",
    "ActionType",
    "DailyActivityKey",
    "Attestation",
    "AttestationType",
    "Proposal",
    "ProposalActionType",
    "ProposalStatus",
    "Vote",
    "Identity",
    "Profile",
    "VerificationLevel",
    "ProtocolState",
]

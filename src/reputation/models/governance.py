"""Governance data models.

Proposals are numbered sequentially from 1. Each proposal is open for a
fixed voting window from creation and then expires. Execution of the
proposed change is not implemented: ``executed`` is always False.

Votes are frozen once cast. A vote's weight is the voter's weighted score
at cast time and is never revised by later decay.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class ProposalActionType(str, enum.Enum):
    """Closed set of changes a proposal can ask for."""
    UPDATE_MULTIPLIER = "update-multiplier"
    FEE_ADJUSTMENT = "fee-adjustment"
    ADD_ACTION_TYPE = "add-action-type"
    DISABLE_ACTION_TYPE = "disable-action-type"
    UPDATE_THRESHOLD = "update-threshold"
    PROTOCOL_UPGRADE = "protocol-upgrade"

    @classmethod
    def parse(cls, raw: str) -> Optional[ProposalActionType]:
        for member in cls:
            if member.value == raw:
                return member
        return None


class ProposalStatus(str, enum.Enum):
    """Derived lifecycle state of a proposal."""
    OPEN = "open"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Proposal:
    proposal_id: int
    proposer: str
    title: str
    description: str
    action_type: ProposalActionType
    target_value: int
    created_at: int
    expires_at: int
    votes_for: int = 0
    votes_against: int = 0
    executed: bool = False

    def status(self, height: int) -> ProposalStatus:
        if height < self.expires_at:
            return ProposalStatus.OPEN
        return ProposalStatus.EXPIRED

    def is_open(self, height: int) -> bool:
        return self.status(height) == ProposalStatus.OPEN

    @property
    def total_votes(self) -> int:
        return self.votes_for + self.votes_against


@dataclass(frozen=True)
class Vote:
    proposal_id: int
    voter: str
    vote_for: bool
    weight: int
    cast_at: int

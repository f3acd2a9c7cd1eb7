"""Identity and profile data models.

An Identity is the single stake-backed record an account owns:
- Exactly one per account; created once, never deleted.
- reputation_score and weighted_score are integers in [0, max_score].
- last_decay_height never exceeds the height it was settled at.
- Stake is a recorded amount only; custody lives with the host ledger.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class VerificationLevel(enum.IntEnum):
    """Tiered trust flag recorded from external verification."""
    BASIC = 0
    VERIFIED = 1
    PREMIUM = 2


@dataclass(frozen=True)
class Identity:
    """Stored identity state for a single account.

    Frozen — engines build replacements with dataclasses.replace and write
    them back through the ledger so every write is journalled.
    """
    account: str
    did: str
    reputation_score: int
    weighted_score: int
    staked_amount: int
    created_at: int
    last_updated: int
    last_decay_height: int
    activity_count: int = 0
    verification_level: VerificationLevel = VerificationLevel.BASIC

    def is_governance_member(self, min_level: int = VerificationLevel.VERIFIED) -> bool:
        return self.verification_level >= min_level


@dataclass(frozen=True)
class Profile:
    """Read-only view of an identity with decay applied.

    attestation_bonus is always 0: attestations are stored and queryable
    individually but no aggregation policy feeds them into the profile.
    """
    account: str
    did: str
    reputation_score: int
    weighted_score: int
    staked_amount: int
    created_at: int
    last_updated: int
    last_decay_height: int
    activity_count: int
    verification_level: int
    attestation_bonus: int = 0

    @classmethod
    def from_identity(cls, identity: Identity) -> Profile:
        return cls(
            account=identity.account,
            did=identity.did,
            reputation_score=identity.reputation_score,
            weighted_score=identity.weighted_score,
            staked_amount=identity.staked_amount,
            created_at=identity.created_at,
            last_updated=identity.last_updated,
            last_decay_height=identity.last_decay_height,
            activity_count=identity.activity_count,
            verification_level=int(identity.verification_level),
        )

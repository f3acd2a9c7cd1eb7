"""Attestation data models.

An attestation is a directed, expiring, bounded-impact statement one
identity makes about another. Only one live attestation exists per
(attester, target) pair; a new one overwrites the old.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class AttestationType(str, enum.Enum):
    """Closed set of attestation categories."""
    SKILL_VERIFICATION = "skill-verification"
    WORK_QUALITY = "work-quality"
    COLLABORATION = "collaboration"
    MENTORSHIP = "mentorship"
    RELIABILITY = "reliability"
    INTEGRITY = "integrity"
    EXPERTISE = "expertise"
    COMMUNITY_IMPACT = "community-impact"

    @classmethod
    def parse(cls, raw: str) -> Optional[AttestationType]:
        """Exact-match parse. Near misses (case, whitespace) are rejected."""
        for member in cls:
            if member.value == raw:
                return member
        return None


@dataclass(frozen=True)
class Attestation:
    attester: str
    target: str
    impact: int
    attestation_type: AttestationType
    created_at: int
    expires_at: int

    def is_active(self, height: int) -> bool:
        return self.expires_at > height

    def live_impact(self, height: int) -> int:
        """Signed impact while active, 0 once expired."""
        return self.impact if self.is_active(height) else 0

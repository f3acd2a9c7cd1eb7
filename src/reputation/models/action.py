"""Action catalog and anti-gaming counter models."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class ActionType(str, enum.Enum):
    """Whitelisted reputation-earning actions."""
    CODE_CONTRIBUTION = "code-contribution"
    COMMUNITY_CONTRIBUTION = "community-contribution"
    CONTENT_CREATION = "content-creation"
    BUG_REPORT = "bug-report"
    PEER_REVIEW = "peer-review"
    GOVERNANCE_PARTICIPATION = "governance-participation"

    @classmethod
    def parse(cls, raw: str) -> Optional[ActionType]:
        for member in cls:
            if member.value == raw:
                return member
        return None


@dataclass(frozen=True)
class ActionConfig:
    """Configuration of one reputation-earning action type.

    Invariants enforced by the catalog:
    - base_multiplier within the configured multiplier range.
    - max_daily within the configured daily-cap range.
    """
    action_type: str
    base_multiplier: int
    max_daily: int
    verification_required: bool = False
    enabled: bool = True


@dataclass(frozen=True)
class DailyActivityKey:
    """Key of a daily counter: (account, day index, action type)."""
    account: str
    day: int
    action_type: str

    def as_tuple(self) -> tuple[str, int, str]:
        return (self.account, self.day, self.action_type)

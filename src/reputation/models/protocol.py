"""Protocol-wide singleton state.

total_staked accumulates stake recorded at identity creation and is never
decremented. proposal_counter is the id of the most recently created
proposal (0 before any exist).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ProtocolState:
    paused: bool = False
    proposal_counter: int = 0
    total_staked: int = 0

    def snapshot(self) -> tuple[bool, int, int]:
        return (self.paused, self.proposal_counter, self.total_staked)

    def restore(self, snapshot: tuple[bool, int, int]) -> None:
        self.paused, self.proposal_counter, self.total_staked = snapshot

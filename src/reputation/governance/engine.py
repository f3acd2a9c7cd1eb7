"""Governance engine — proposals and reputation-weighted votes.

Proposal lifecycle:
  OPEN     height < expires_at; votes accepted
  EXPIRED  height >= expires_at; no further votes

Execution of a proposal's action is not implemented; ``executed`` stays
False for every proposal.

Constraints:
- Proposer needs a decayed weighted score >= proposal_threshold (500).
- Title longer than 10 and at most 100 chars; description longer than 20
  and at most 500 chars.
- Target value ceiling depends on the action type: update-multiplier 200,
  fee-adjustment 1,000,000, everything else 10,000.
- Voters must be governance members (verification >= 1) with a decayed
  weighted score >= vote_threshold (200).
- One vote per (proposal, voter); repeated at insert time.
- A vote's weight is fixed when cast; votes_for + votes_against always
  equals the sum of recorded weights.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from reputation import validation
from reputation.errors import ErrorKind, ReputationError
from reputation.models.governance import Proposal, Vote
from reputation.policy.resolver import PolicyResolver
from reputation.storage.ledger import Ledger

if TYPE_CHECKING:
    from reputation.identity.registry import IdentityRegistry

logger = logging.getLogger(__name__)


class GovernanceEngine:
    """Manages proposal creation and vote recording.

    Usage:
        engine = GovernanceEngine(resolver, ledger, registry)
        proposal = engine.create_proposal("alice", title, description,
                                          "update-threshold", 300, height)
        engine.cast_vote("bob", proposal.proposal_id, True, height)
    """

    def __init__(
        self,
        resolver: PolicyResolver,
        ledger: Ledger,
        registry: IdentityRegistry,
    ) -> None:
        self._resolver = resolver
        self._ledger = ledger
        self._registry = registry

    def create_proposal(
        self,
        proposer: str,
        title: str,
        description: str,
        action_type: str,
        target_value: int,
        height: int,
    ) -> Proposal:
        if self._registry.get(proposer) is None:
            raise ReputationError(
                ErrorKind.NOT_FOUND, f"Proposer has no identity: {proposer}",
            )
        identity = self._registry.settle(proposer, height)

        threshold = self._resolver.proposal_threshold()
        if identity.weighted_score < threshold:
            raise ReputationError(
                ErrorKind.INSUFFICIENT_REPUTATION,
                f"Weighted score {identity.weighted_score} below proposal "
                f"threshold {threshold}",
            )

        bounds = self._resolver.proposal_text_bounds()
        if not validation.is_bounded_text(title, bounds["title_min_exclusive"], bounds["title_max"]):
            raise ReputationError(
                ErrorKind.INVALID_STRING,
                f"Title must be {bounds['title_min_exclusive'] + 1}-"
                f"{bounds['title_max']} characters",
            )
        if not validation.is_bounded_text(
            description, bounds["description_min_exclusive"], bounds["description_max"],
        ):
            raise ReputationError(
                ErrorKind.INVALID_STRING,
                f"Description must be {bounds['description_min_exclusive'] + 1}-"
                f"{bounds['description_max']} characters",
            )

        parsed_action = validation.parse_proposal_action(action_type)
        if parsed_action is None:
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                f"Unknown proposal action type: {action_type!r}",
            )
        ceiling = self._resolver.target_value_ceiling(parsed_action.value)
        if not validation.in_range(target_value, 0, ceiling):
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                f"Target value {target_value} outside [0, {ceiling}] "
                f"for {parsed_action.value}",
            )

        protocol = self._ledger.protocol
        proposal_id = protocol.proposal_counter + 1
        proposal = Proposal(
            proposal_id=proposal_id,
            proposer=proposer,
            title=title,
            description=description,
            action_type=parsed_action,
            target_value=target_value,
            created_at=height,
            expires_at=height + self._resolver.voting_window_blocks(),
        )
        try:
            self._ledger.proposals.insert(proposal_id, proposal)
        except KeyError as e:
            raise ReputationError(ErrorKind.ALREADY_EXISTS, str(e)) from e
        protocol.proposal_counter = proposal_id

        logger.debug("Proposal %d created by %s (%s)", proposal_id, proposer, parsed_action.value)
        return proposal

    def cast_vote(
        self,
        voter: str,
        proposal_id: int,
        vote_for: bool,
        height: int,
    ) -> Vote:
        if self._registry.get(voter) is None:
            raise ReputationError(
                ErrorKind.NOT_FOUND, f"Voter has no identity: {voter}",
            )

        if not self._in_id_range(proposal_id):
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS, f"Proposal id out of range: {proposal_id}",
            )
        proposal = self._ledger.proposals.get(proposal_id)
        if proposal is None:
            raise ReputationError(
                ErrorKind.NOT_FOUND, f"Proposal not found: {proposal_id}",
            )

        stored = self._registry.get(voter)
        if not stored.is_governance_member(self._resolver.member_min_verification()):
            raise ReputationError(
                ErrorKind.UNAUTHORIZED, "Only governance members may vote",
            )

        if not proposal.is_open(height):
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                f"Voting closed for proposal {proposal_id} at height {proposal.expires_at}",
            )
        if self._ledger.votes.contains((proposal_id, voter)):
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                f"Account {voter} already voted on proposal {proposal_id}",
            )

        identity = self._registry.settle(voter, height)
        weight = identity.weighted_score
        if weight < self._resolver.vote_threshold():
            raise ReputationError(
                ErrorKind.INSUFFICIENT_REPUTATION,
                f"Voting weight {weight} below threshold {self._resolver.vote_threshold()}",
            )

        vote = Vote(
            proposal_id=proposal_id,
            voter=voter,
            vote_for=bool(vote_for),
            weight=weight,
            cast_at=height,
        )
        try:
            self._ledger.votes.insert((proposal_id, voter), vote)
        except KeyError as e:
            raise ReputationError(ErrorKind.INVALID_PARAMETERS, str(e)) from e

        if vote.vote_for:
            tallied = replace(proposal, votes_for=proposal.votes_for + weight)
        else:
            tallied = replace(proposal, votes_against=proposal.votes_against + weight)
        self._ledger.proposals.put(proposal_id, tallied)

        logger.debug(
            "Vote on %d by %s: %s weight=%d",
            proposal_id, voter, "for" if vote.vote_for else "against", weight,
        )
        return vote

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        """Bounds-checked lookup; None outside 1..proposal_counter."""
        if not self._in_id_range(proposal_id):
            return None
        return self._ledger.proposals.get(proposal_id)

    def get_vote(self, proposal_id: int, voter: str) -> Optional[Vote]:
        return self._ledger.votes.get((proposal_id, voter))

    def votes_for_proposal(self, proposal_id: int) -> list[Vote]:
        return [
            vote for (pid, _), vote in self._ledger.votes.items()
            if pid == proposal_id
        ]

    def _in_id_range(self, proposal_id: int) -> bool:
        return validation.in_range(proposal_id, 1, self._ledger.protocol.proposal_counter)

"""Reputation updater — applies whitelisted actions to an identity.

Check order (first failure wins, nothing is written before all pass):
1. Identity exists                         → NOT_FOUND
2. Action whitelisted, configured, enabled;
   evidence valid                          → INVALID_PARAMETERS
3. Daily counter below the action's cap    → RATE_LIMITED
4. Verification present if required        → UNAUTHORIZED

Then: settle decay, add the capped gain, recompute the weighted score,
count the activity, bump the daily counter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from reputation import validation
from reputation.actions.anti_gaming import AntiGamingLedger
from reputation.actions.catalog import ActionCatalog
from reputation.errors import ErrorKind, ReputationError
from reputation.models.identity import VerificationLevel
from reputation.scoring.engine import ReputationEngine

if TYPE_CHECKING:
    from reputation.identity.registry import IdentityRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionOutcome:
    """Result of a successful apply_action."""
    account: str
    action_type: str
    previous_score: int
    new_score: int
    gain: int
    weighted_score: int
    daily_count: int

    @property
    def delta(self) -> int:
        return self.new_score - self.previous_score


class ReputationUpdater:
    """Usage:
        updater = ReputationUpdater(engine, registry, catalog, anti_gaming)
        outcome = updater.apply_action("acct-1", "code-contribution", evidence, height)
    """

    def __init__(
        self,
        engine: ReputationEngine,
        registry: IdentityRegistry,
        catalog: ActionCatalog,
        anti_gaming: AntiGamingLedger,
    ) -> None:
        self._engine = engine
        self._registry = registry
        self._catalog = catalog
        self._anti_gaming = anti_gaming

    def apply_action(
        self,
        account: str,
        action_type: str,
        evidence_hash: bytes,
        height: int,
    ) -> ActionOutcome:
        if self._registry.get(account) is None:
            raise ReputationError(
                ErrorKind.NOT_FOUND, f"No identity registered for account: {account}",
            )

        whitelisted = validation.parse_action_type(action_type)
        if whitelisted is None:
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                f"Action type is not whitelisted: {action_type!r}",
            )
        action_type = whitelisted.value
        config = self._catalog.require_usable(action_type)
        if not validation.is_valid_evidence_hash(evidence_hash):
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                "Evidence hash must be 32 bytes and not all zero",
            )

        if not self._anti_gaming.has_capacity(account, action_type, height, config.max_daily):
            raise ReputationError(
                ErrorKind.RATE_LIMITED,
                f"Daily limit of {config.max_daily} reached for {action_type}",
            )

        stored = self._registry.get(account)
        if config.verification_required and stored.verification_level == VerificationLevel.BASIC:
            raise ReputationError(
                ErrorKind.UNAUTHORIZED,
                f"Action {action_type} requires a verified identity",
            )

        identity = self._registry.settle(account, height)
        gain = self._engine.compute_action_gain(
            config.base_multiplier,
            identity.verification_level,
            identity.staked_amount,
        )
        updated = self._engine.apply_gain(identity, gain, height)
        self._registry.save(updated)
        daily_count = self._anti_gaming.increment(account, action_type, height)

        logger.debug(
            "Action %s for %s: %d -> %d (gain %d, day count %d)",
            action_type, account, identity.reputation_score,
            updated.reputation_score, gain, daily_count,
        )
        return ActionOutcome(
            account=account,
            action_type=action_type,
            previous_score=identity.reputation_score,
            new_score=updated.reputation_score,
            gain=gain,
            weighted_score=updated.weighted_score,
            daily_count=daily_count,
        )

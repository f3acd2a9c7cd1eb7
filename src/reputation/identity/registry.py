"""Identity registry — one stake-backed identity per account.

Rules:
- An account registers at most once. The absence check is repeated at
  insert time through the store's atomic insert.
- did must be an identifier of 6–50 characters.
- Stake must be at least min_stake and at most max_stake_multiple × min_stake.
- New identities start at the bootstrap reputation with verification 0;
  every height field is the registration height.
- Registration adds the stake to the protocol's total_staked.

Reads never write: get_live() and profile() return decayed views, and
settle() is the only path that stores a decayed identity.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from reputation import validation
from reputation.errors import ErrorKind, ReputationError
from reputation.models.identity import Identity, Profile, VerificationLevel
from reputation.policy.resolver import PolicyResolver
from reputation.scoring.engine import ReputationEngine
from reputation.storage.ledger import Ledger

logger = logging.getLogger(__name__)


class IdentityRegistry:
    """Creates, reads and settles identities.

    Usage:
        registry = IdentityRegistry(resolver, ledger, engine)
        identity = registry.create("acct-1", "alice-research", 1_000_000, height=10)
        profile = registry.profile("acct-1", height=5000)
    """

    def __init__(
        self,
        resolver: PolicyResolver,
        ledger: Ledger,
        engine: ReputationEngine,
    ) -> None:
        self._resolver = resolver
        self._ledger = ledger
        self._engine = engine

    def create(
        self,
        account: str,
        did: str,
        stake_amount: int,
        height: int,
    ) -> Identity:
        """Register a new identity for ``account``.

        Raises:
            ReputationError: ALREADY_EXISTS, INVALID_STRING,
                INSUFFICIENT_STAKE or INVALID_PARAMETERS.
        """
        if self._ledger.identities.contains(account):
            raise ReputationError(
                ErrorKind.ALREADY_EXISTS,
                f"Identity already registered for account: {account}",
            )

        min_len, max_len = self._resolver.did_length_bounds()
        if not validation.is_valid_did(did, min_len, max_len):
            raise ReputationError(
                ErrorKind.INVALID_STRING,
                f"did must be an identifier of {min_len}-{max_len} characters",
            )

        if not isinstance(stake_amount, int) or stake_amount < self._resolver.min_stake():
            raise ReputationError(
                ErrorKind.INSUFFICIENT_STAKE,
                f"Stake {stake_amount} below minimum {self._resolver.min_stake()}",
            )
        if stake_amount > self._resolver.max_stake():
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                f"Stake {stake_amount} exceeds maximum {self._resolver.max_stake()}",
            )

        bootstrap = self._resolver.bootstrap_reputation()
        identity = Identity(
            account=account,
            did=did,
            reputation_score=bootstrap,
            weighted_score=self._engine.compute_weighted_score(
                bootstrap, stake_amount, 0, VerificationLevel.BASIC,
            ),
            staked_amount=stake_amount,
            created_at=height,
            last_updated=height,
            last_decay_height=height,
            activity_count=0,
            verification_level=VerificationLevel.BASIC,
        )

        try:
            self._ledger.identities.insert(account, identity)
        except KeyError as e:
            raise ReputationError(ErrorKind.ALREADY_EXISTS, str(e)) from e
        self._ledger.protocol.total_staked += stake_amount

        logger.debug("Registered identity %s for %s (stake=%d)", did, account, stake_amount)
        return identity

    def get(self, account: str) -> Optional[Identity]:
        """Stored record, without decay."""
        return self._ledger.identities.get(account)

    def get_live(self, account: str, height: int) -> Optional[Identity]:
        """Decay-applied view. Nothing is written."""
        identity = self._ledger.identities.get(account)
        if identity is None:
            return None
        return self._engine.apply_decay(identity, height)

    def require(self, account: str, height: int) -> Identity:
        """Decay-applied view, raising NOT_FOUND if absent."""
        identity = self.get_live(account, height)
        if identity is None:
            raise ReputationError(
                ErrorKind.NOT_FOUND, f"No identity registered for account: {account}",
            )
        return identity

    def settle(self, account: str, height: int) -> Identity:
        """Apply decay and write it back if anything changed."""
        stored = self._ledger.identities.get(account)
        if stored is None:
            raise ReputationError(
                ErrorKind.NOT_FOUND, f"No identity registered for account: {account}",
            )
        decayed = self._engine.apply_decay(stored, height)
        if decayed is not stored:
            self._ledger.identities.put(account, decayed)
            logger.debug(
                "Decay settled for %s: %d -> %d",
                account, stored.reputation_score, decayed.reputation_score,
            )
        return decayed

    def save(self, identity: Identity) -> None:
        self._ledger.identities.put(identity.account, identity)

    def profile(self, account: str, height: int) -> Optional[Profile]:
        live = self.get_live(account, height)
        if live is None:
            return None
        return Profile.from_identity(live)

    def verify_requirements(
        self,
        account: str,
        min_base: int,
        min_weighted: int,
        min_verification: int,
        height: int,
    ) -> bool:
        live = self.get_live(account, height)
        if live is None:
            return False
        return (
            live.reputation_score >= min_base
            and live.weighted_score >= min_weighted
            and live.verification_level >= min_verification
        )

    def set_verification_level(
        self,
        account: str,
        level: int,
        height: int,
    ) -> Identity:
        """Record an externally established verification level.

        Decay is settled first; the weighted score is recomputed with the
        new level.
        """
        try:
            new_level = VerificationLevel(level)
        except ValueError:
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                f"Verification level must be one of "
                f"{[int(v) for v in VerificationLevel]}, got {level}",
            ) from None

        identity = self.settle(account, height)
        updated = self._engine.reweigh(replace(
            identity, verification_level=new_level, last_updated=height,
        ))
        self.save(updated)
        return updated

    @property
    def count(self) -> int:
        return len(self._ledger.identities)

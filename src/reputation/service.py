"""Reputation service — the protocol's external operation surface.

Every mutating operation follows the same path:
1. Take the service lock (stand-in for host serialization).
2. Resolve the block height (monotonic; supplied by the host).
3. Open a ledger transaction.
4. Reject if paused (non-admin operations only).
5. Run the engine operation; engines validate eagerly and raise
   ReputationError on the first failing rule.
6. Append one audit event.
7. Commit, then persist the ledger snapshot (if a StateStore is wired).

Any failure in steps 4–6 rolls the ledger back completely: no partially
updated record is ever observable. Domain failures come back as a
ServiceResult with ``error`` set; they never raise.

Read-only queries never fail. Unknown records yield None / False.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Optional

from reputation.actions.anti_gaming import AntiGamingLedger
from reputation.actions.catalog import ActionCatalog
from reputation.attestation.engine import AttestationEngine
from reputation.crypto.anchor import canonical_hash
from reputation.errors import ErrorKind, ReputationError
from reputation.governance.engine import GovernanceEngine
from reputation.identity.registry import IdentityRegistry
from reputation.models.action import ActionConfig
from reputation.models.attestation import Attestation
from reputation.models.governance import Vote
from reputation.models.identity import Profile
from reputation.persistence.event_log import EventKind, EventLog, EventRecord
from reputation.persistence.state_store import StateStore, ledger_to_records
from reputation.policy.resolver import PolicyResolver
from reputation.protocol.admin import ProtocolAdmin
from reputation.scoring.engine import ReputationEngine
from reputation.scoring.updater import ReputationUpdater
from reputation.storage.ledger import Ledger

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# (event payload, result data)
_OpResult = tuple[dict[str, Any], dict[str, Any]]


class AuditTrailError(RuntimeError):
    """The audit event could not be written; the transition is rolled back."""


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    error: Optional[ErrorKind] = None


class ReputationService:
    """Protocol facade.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = ReputationService(resolver, owner="deployer")
        service.initialize_actions("deployer")

        service.create_identity("alice", "alice-research", 1_000_000)
        service.advance_blocks(10)
        service.apply_action("alice", "community-contribution", evidence_hash)

    Persistence (optional):
        service = ReputationService(resolver, owner, event_log=log, state_store=store)
        # Ledger is restored from the store on construction and saved after
        # every accepted transition.
    """

    def __init__(
        self,
        resolver: PolicyResolver,
        owner: str,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
        block_height: int = 0,
    ) -> None:
        if block_height < 0:
            raise ValueError(f"Block height cannot be negative: {block_height}")
        self._resolver = resolver
        self._event_log = event_log
        self._state_store = state_store

        ledger: Optional[Ledger] = None
        stored_height = 0
        if state_store is not None:
            ledger, stored_height = state_store.load()
        self._ledger = ledger or Ledger()
        self._block_height = max(block_height, stored_height)

        self._engine = ReputationEngine(resolver)
        self._registry = IdentityRegistry(resolver, self._ledger, self._engine)
        self._catalog = ActionCatalog(resolver, self._ledger)
        self._anti_gaming = AntiGamingLedger(resolver, self._ledger)
        self._updater = ReputationUpdater(
            self._engine, self._registry, self._catalog, self._anti_gaming,
        )
        self._attestations = AttestationEngine(resolver, self._ledger, self._registry)
        self._governance = GovernanceEngine(resolver, self._ledger, self._registry)
        self._admin = ProtocolAdmin(owner, self._ledger, self._catalog, self._registry)

        self._lock = threading.RLock()
        self._event_counter = event_log.count if event_log is not None else 0
        self._persistence_degraded: bool = False

    # ------------------------------------------------------------------
    # Block height (host clock)
    # ------------------------------------------------------------------

    @property
    def block_height(self) -> int:
        return self._block_height

    def advance_blocks(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError(f"Cannot advance by a negative block count: {blocks}")
        with self._lock:
            self._block_height += blocks
            return self._block_height

    def set_block_height(self, height: int) -> int:
        with self._lock:
            return self._resolve_height(height)

    # ------------------------------------------------------------------
    # Admin operations (owner only, allowed while paused)
    # ------------------------------------------------------------------

    def initialize_actions(self, caller: str, height: Optional[int] = None) -> ServiceResult:
        """Seed the canonical action catalog. Re-invocation rewrites the same values."""
        def op(h: int) -> _OpResult:
            seeded = self._admin.initialize_actions(caller)
            return {"action_types": seeded}, {"action_types": seeded}

        return self._execute(
            caller, EventKind.ACTIONS_INITIALIZED, op, height, admin=True,
        )

    def pause(self, caller: str, height: Optional[int] = None) -> ServiceResult:
        def op(h: int) -> _OpResult:
            self._admin.pause(caller)
            return {}, {"paused": True}

        return self._execute(caller, EventKind.PROTOCOL_PAUSED, op, height, admin=True)

    def resume(self, caller: str, height: Optional[int] = None) -> ServiceResult:
        def op(h: int) -> _OpResult:
            self._admin.resume(caller)
            return {}, {"paused": False}

        return self._execute(caller, EventKind.PROTOCOL_RESUMED, op, height, admin=True)

    def update_action_config(
        self,
        caller: str,
        action_type: str,
        base_multiplier: int,
        max_daily: int,
        verification_required: bool,
        enabled: bool,
        height: Optional[int] = None,
    ) -> ServiceResult:
        def op(h: int) -> _OpResult:
            config = self._admin.update_action_config(
                caller, action_type, base_multiplier, max_daily,
                verification_required, enabled,
            )
            record = asdict(config)
            return record, record

        return self._execute(caller, EventKind.ACTION_CONFIG_UPDATED, op, height, admin=True)

    def set_verification_level(
        self,
        caller: str,
        account: str,
        level: int,
        height: Optional[int] = None,
    ) -> ServiceResult:
        """Record the outcome of external identity verification (0, 1 or 2)."""
        def op(h: int) -> _OpResult:
            identity = self._admin.set_verification_level(caller, account, level, h)
            payload = {
                "account": account,
                "verification_level": int(identity.verification_level),
            }
            return payload, {**payload, "weighted_score": identity.weighted_score}

        return self._execute(caller, EventKind.VERIFICATION_LEVEL_SET, op, height, admin=True)

    # ------------------------------------------------------------------
    # Identity and reputation
    # ------------------------------------------------------------------

    def create_identity(
        self,
        caller: str,
        did: str,
        stake_amount: int,
        height: Optional[int] = None,
    ) -> ServiceResult:
        def op(h: int) -> _OpResult:
            identity = self._registry.create(caller, did, stake_amount, h)
            payload = {"did": identity.did, "stake": identity.staked_amount}
            return payload, {
                "did": identity.did,
                "reputation_score": identity.reputation_score,
                "weighted_score": identity.weighted_score,
            }

        return self._execute(caller, EventKind.IDENTITY_CREATED, op, height)

    def apply_action(
        self,
        caller: str,
        action_type: str,
        evidence_hash: bytes,
        height: Optional[int] = None,
    ) -> ServiceResult:
        def op(h: int) -> _OpResult:
            outcome = self._updater.apply_action(caller, action_type, evidence_hash, h)
            payload = {
                "action_type": action_type,
                "evidence_hash": bytes(evidence_hash).hex(),
                "gain": outcome.gain,
                "new_score": outcome.new_score,
            }
            return payload, {
                "new_score": outcome.new_score,
                "gain": outcome.gain,
                "weighted_score": outcome.weighted_score,
                "daily_count": outcome.daily_count,
            }

        return self._execute(caller, EventKind.REPUTATION_UPDATED, op, height)

    # ------------------------------------------------------------------
    # Attestations
    # ------------------------------------------------------------------

    def create_attestation(
        self,
        caller: str,
        target: str,
        impact: int,
        attestation_type: str,
        duration_blocks: int,
        height: Optional[int] = None,
    ) -> ServiceResult:
        def op(h: int) -> _OpResult:
            att = self._attestations.attest(
                caller, target, impact, attestation_type, duration_blocks, h,
            )
            payload = {
                "target": att.target,
                "impact": att.impact,
                "attestation_type": att.attestation_type.value,
                "expires_at": att.expires_at,
            }
            return payload, dict(payload)

        return self._execute(caller, EventKind.ATTESTATION_CREATED, op, height)

    # ------------------------------------------------------------------
    # Governance
    # ------------------------------------------------------------------

    def create_proposal(
        self,
        caller: str,
        title: str,
        description: str,
        action_type: str,
        target_value: int,
        height: Optional[int] = None,
    ) -> ServiceResult:
        def op(h: int) -> _OpResult:
            proposal = self._governance.create_proposal(
                caller, title, description, action_type, target_value, h,
            )
            payload = {
                "proposal_id": proposal.proposal_id,
                "action_type": proposal.action_type.value,
                "target_value": proposal.target_value,
                "expires_at": proposal.expires_at,
            }
            return payload, dict(payload)

        return self._execute(caller, EventKind.PROPOSAL_CREATED, op, height)

    def vote(
        self,
        caller: str,
        proposal_id: int,
        vote_for: bool,
        height: Optional[int] = None,
    ) -> ServiceResult:
        def op(h: int) -> _OpResult:
            cast = self._governance.cast_vote(caller, proposal_id, vote_for, h)
            payload = {
                "proposal_id": cast.proposal_id,
                "vote_for": cast.vote_for,
                "weight": cast.weight,
            }
            return payload, dict(payload)

        return self._execute(caller, EventKind.VOTE_CAST, op, height)

    # ------------------------------------------------------------------
    # Read-only queries
    # ------------------------------------------------------------------

    def get_profile(self, account: str, height: Optional[int] = None) -> Optional[Profile]:
        with self._lock:
            return self._registry.profile(account, self._read_height(height))

    def verify_requirements(
        self,
        account: str,
        min_base: int,
        min_weighted: int,
        min_verification: int,
        height: Optional[int] = None,
    ) -> bool:
        with self._lock:
            return self._registry.verify_requirements(
                account, min_base, min_weighted, min_verification,
                self._read_height(height),
            )

    def get_protocol_stats(self) -> dict[str, Any]:
        with self._lock:
            protocol = self._ledger.protocol
            return {
                "total_staked": protocol.total_staked,
                "paused": protocol.paused,
                "proposal_count": protocol.proposal_counter,
                "total_identities": self._registry.count,
            }

    def get_proposal(
        self,
        proposal_id: int,
        height: Optional[int] = None,
    ) -> Optional[dict[str, Any]]:
        """Proposal view with derived status; None outside 1..counter."""
        with self._lock:
            proposal = self._governance.get_proposal(proposal_id)
            if proposal is None:
                return None
            view = asdict(proposal)
            view["action_type"] = proposal.action_type.value
            view["status"] = proposal.status(self._read_height(height)).value
            return view

    def get_vote(self, proposal_id: int, voter: str) -> Optional[Vote]:
        with self._lock:
            return self._governance.get_vote(proposal_id, voter)

    def get_attestation(self, attester: str, target: str) -> Optional[Attestation]:
        with self._lock:
            return self._attestations.get(attester, target)

    def attestation_impact(
        self,
        attester: str,
        target: str,
        height: Optional[int] = None,
    ) -> int:
        """Signed impact of one pair's attestation; 0 if absent or expired."""
        with self._lock:
            return self._attestations.live_impact(attester, target, self._read_height(height))

    def get_action_config(self, action_type: str) -> Optional[ActionConfig]:
        with self._lock:
            return self._catalog.get(action_type)

    def daily_activity_count(
        self,
        account: str,
        action_type: str,
        height: Optional[int] = None,
    ) -> int:
        with self._lock:
            return self._anti_gaming.count(account, action_type, self._read_height(height))

    def state_digest(self) -> str:
        """Canonical SHA-256 of the ledger records (anchoring input)."""
        with self._lock:
            return canonical_hash(ledger_to_records(self._ledger))

    def status(self) -> dict[str, Any]:
        with self._lock:
            return {
                "version": VERSION,
                "owner": self._admin.owner,
                "block_height": self._block_height,
                "paused": self._ledger.protocol.paused,
                "identities": self._registry.count,
                "proposals": self._ledger.protocol.proposal_counter,
                "action_types": len(self._ledger.action_configs),
                "attestations": len(self._ledger.attestations),
                "events": self._event_log.count if self._event_log is not None else 0,
                "persistence_degraded": self._persistence_degraded,
            }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _execute(
        self,
        caller: str,
        kind: EventKind,
        op: Callable[[int], _OpResult],
        height: Optional[int],
        admin: bool = False,
    ) -> ServiceResult:
        with self._lock:
            h = self._resolve_height(height)
            try:
                with self._ledger.transaction():
                    if not admin:
                        self._admin.ensure_active()
                    payload, data = op(h)
                    self._record_event(kind, caller, payload, h)
            except ReputationError as e:
                logger.info("%s rejected for %s: %s (%s)", kind.value, caller, e, e.kind.value)
                return ServiceResult(success=False, errors=[str(e)], error=e.kind)
            except AuditTrailError as e:
                logger.error("%s audit failure for %s: %s", kind.value, caller, e)
                return ServiceResult(
                    success=False,
                    errors=[str(e)],
                    error=ErrorKind.AUDIT_FAILURE,
                )

            logger.info("%s accepted for %s at height %d", kind.value, caller, h)
            warning = self._safe_persist_post_audit()
            if warning:
                data = {**data, "warning": warning}
            return ServiceResult(success=True, data=data)

    def _record_event(
        self,
        kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
        height: int,
    ) -> None:
        """Append the audit event. Raises on failure so the caller rolls back."""
        if self._event_log is None:
            return
        event = EventRecord.create(
            event_id=self._next_event_id(),
            event_kind=kind,
            actor_id=actor_id,
            payload=payload,
            block_height=height,
        )
        try:
            self._event_log.append(event)
        except (OSError, ValueError) as e:
            self._event_counter -= 1
            raise AuditTrailError(f"Event log failure: {e}") from e

    def _next_event_id(self) -> str:
        self._event_counter += 1
        return f"EVT-{self._event_counter:08d}"

    def _resolve_height(self, height: Optional[int]) -> int:
        """Adopt a host-supplied height. Heights never move backwards."""
        if height is None:
            return self._block_height
        if height < self._block_height:
            raise ValueError(
                f"Block height cannot decrease: {height} < {self._block_height}"
            )
        self._block_height = height
        return height

    def _read_height(self, height: Optional[int]) -> int:
        return self._block_height if height is None else height

    def _safe_persist_post_audit(self) -> Optional[str]:
        """Persist the ledger after the audit event is committed.

        MUST NOT roll back: the audit trail already records the
        transition. On failure the store is stale; flag it and warn.
        """
        if self._state_store is None:
            return None
        try:
            self._state_store.save(self._ledger, self._block_height)
            return None
        except OSError as e:
            self._persistence_degraded = True
            logger.error("State persistence failed: %s", e)
            return f"Persistence degraded: {e}; transition recorded in audit trail but StateStore is stale"

"""Tests for ReputationService — proves the facade orchestrates correctly."""

import threading

import pytest
from pathlib import Path

from reputation.errors import ErrorKind
from reputation.persistence.event_log import EventKind, EventLog
from reputation.persistence.state_store import StateStore
from reputation.policy.resolver import PolicyResolver
from reputation.service import ReputationService


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"
OWNER = "deployer"
MIN_STAKE = 1_000_000
EVIDENCE = bytes(range(1, 33))
TITLE = "Raise code multiplier"
DESCRIPTION = "Increase the code-contribution multiplier to reward builders."


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def service(resolver: PolicyResolver, event_log: EventLog) -> ReputationService:
    service = ReputationService(resolver, owner=OWNER, event_log=event_log)
    assert service.initialize_actions(OWNER).success
    return service


def _earn_to_500(service: ReputationService, account: str, height: int = 10) -> None:
    for _ in range(4):
        result = service.apply_action(account, "community-contribution", EVIDENCE, height=height)
        assert result.success


class _FailingEventLog(EventLog):
    def append(self, event) -> None:
        raise OSError("disk full")


class _FailingStateStore(StateStore):
    def save(self, ledger, block_height: int) -> None:
        raise OSError("read-only filesystem")


class TestIdentityLifecycle:
    def test_create_identity(self, service: ReputationService) -> None:
        result = service.create_identity("alice", "alice-research", MIN_STAKE)
        assert result.success
        assert result.data["reputation_score"] == 100
        assert result.data["weighted_score"] == 110

        profile = service.get_profile("alice")
        assert profile.did == "alice-research"
        assert profile.attestation_bonus == 0

        stats = service.get_protocol_stats()
        assert stats == {
            "total_staked": MIN_STAKE,
            "paused": False,
            "proposal_count": 0,
            "total_identities": 1,
        }

    def test_duplicate_identity(self, service: ReputationService) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        result = service.create_identity("alice", "alice-other", MIN_STAKE)
        assert not result.success
        assert result.error == ErrorKind.ALREADY_EXISTS
        assert service.get_protocol_stats()["total_staked"] == MIN_STAKE

    def test_low_stake(self, service: ReputationService) -> None:
        result = service.create_identity("alice", "alice-research", 999_999)
        assert result.error == ErrorKind.INSUFFICIENT_STAKE
        assert service.get_profile("alice") is None

    def test_unknown_profile_is_none(self, service: ReputationService) -> None:
        assert service.get_profile("nobody") is None
        assert not service.verify_requirements("nobody", 0, 0, 0)


class TestReputationActions:
    def test_daily_cap_worked_example(self, service: ReputationService) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        _earn_to_500(service, "alice")
        profile = service.get_profile("alice")
        assert profile.reputation_score == 500
        assert profile.weighted_score == 530
        assert service.daily_activity_count("alice", "community-contribution") == 4

        result = service.apply_action("alice", "community-contribution", EVIDENCE)
        assert result.error == ErrorKind.RATE_LIMITED
        assert service.get_profile("alice").reputation_score == 500

    def test_cap_resets_next_day(self, service: ReputationService) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        _earn_to_500(service, "alice")
        service.advance_blocks(144)
        result = service.apply_action("alice", "community-contribution", EVIDENCE)
        assert result.success
        assert result.data["new_score"] == 600

    def test_decay_visible_in_reads(self, service: ReputationService) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE, height=0)
        assert service.get_profile("alice", height=4320).reputation_score == 95
        assert service.get_profile("alice").reputation_score == 100

    def test_disabled_action_rejected(self, service: ReputationService) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        service.update_action_config(OWNER, "bug-report", 70, 3, False, False)
        result = service.apply_action("alice", "bug-report", EVIDENCE)
        assert result.error == ErrorKind.INVALID_PARAMETERS

    def test_owner_created_action_earns_nothing(self, service: ReputationService) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        assert service.update_action_config(OWNER, "spam-action", 100, 50, False, True).success
        result = service.apply_action("alice", "spam-action", EVIDENCE)
        assert result.error == ErrorKind.INVALID_PARAMETERS
        assert service.get_profile("alice").reputation_score == 100

    def test_verification_unlocks_action(self, service: ReputationService) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        result = service.apply_action("alice", "peer-review", EVIDENCE)
        assert result.error == ErrorKind.UNAUTHORIZED

        assert service.set_verification_level(OWNER, "alice", 1).success
        result = service.apply_action("alice", "peer-review", EVIDENCE)
        assert result.success
        assert result.data["gain"] == 72


class TestAttestations:
    def test_attestation_bounded_by_weighted_score(
        self, service: ReputationService,
    ) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        service.create_identity("bob", "bob-builder", MIN_STAKE)
        service.set_verification_level(OWNER, "alice", 1)

        # weighted 210 -> allowance 10
        over = service.create_attestation("alice", "bob", 11, "mentorship", 100)
        assert over.error == ErrorKind.INVALID_ATTESTATION_IMPACT

        result = service.create_attestation("alice", "bob", 10, "mentorship", 100)
        assert result.success
        assert service.attestation_impact("alice", "bob") == 10
        assert service.get_attestation("alice", "bob").expires_at == 100

    def test_self_attestation(self, service: ReputationService) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        result = service.create_attestation("alice", "alice", 1, "mentorship", 100)
        assert result.error == ErrorKind.INVALID_PARAMETERS


class TestGovernance:
    def _setup(self, service: ReputationService) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        service.create_identity("bob", "bob-builder", MIN_STAKE)
        service.set_verification_level(OWNER, "alice", 1)
        service.set_verification_level(OWNER, "bob", 1)
        _earn_to_500(service, "alice")

    def test_proposal_and_votes(self, service: ReputationService) -> None:
        self._setup(service)
        result = service.create_proposal("alice", TITLE, DESCRIPTION, "update-multiplier", 120)
        assert result.success
        assert result.data["proposal_id"] == 1

        vote = service.vote("bob", 1, True)
        assert vote.success
        assert vote.data["weight"] == 210

        view = service.get_proposal(1)
        assert view["votes_for"] == 210
        assert view["votes_against"] == 0
        assert view["status"] == "open"
        assert view["action_type"] == "update-multiplier"
        assert service.get_vote(1, "bob").weight == 210
        assert service.get_protocol_stats()["proposal_count"] == 1

    def test_below_threshold_cannot_propose(self, service: ReputationService) -> None:
        self._setup(service)
        result = service.create_proposal("bob", TITLE, DESCRIPTION, "update-multiplier", 120)
        assert result.error == ErrorKind.INSUFFICIENT_REPUTATION
        assert service.get_proposal(1) is None

    def test_expired_proposal(self, service: ReputationService) -> None:
        self._setup(service)
        service.create_proposal("alice", TITLE, DESCRIPTION, "update-multiplier", 120)
        service.advance_blocks(1008)
        assert service.get_proposal(1)["status"] == "expired"
        assert service.vote("bob", 1, True).error == ErrorKind.INVALID_PARAMETERS


class TestPause:
    def test_non_owner_cannot_pause(self, service: ReputationService) -> None:
        result = service.pause("mallory")
        assert result.error == ErrorKind.UNAUTHORIZED
        assert not service.get_protocol_stats()["paused"]

    def test_paused_protocol_rejects_mutations(self, service: ReputationService) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        assert service.pause(OWNER).success

        result = service.create_identity("bob", "bob-builder", MIN_STAKE)
        assert result.error == ErrorKind.PROTOCOL_PAUSED
        result = service.apply_action("alice", "community-contribution", EVIDENCE)
        assert result.error == ErrorKind.PROTOCOL_PAUSED

        # Reads and admin operations still work
        assert service.get_profile("alice") is not None
        assert service.update_action_config(OWNER, "bug-report", 50, 3, False, True).success

        assert service.resume(OWNER).success
        assert service.create_identity("bob", "bob-builder", MIN_STAKE).success


class TestAtomicityAndAudit:
    def test_rejection_changes_nothing(
        self, service: ReputationService, event_log: EventLog,
    ) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE)
        before_digest = service.state_digest()
        before_events = event_log.count

        service.apply_action("alice", "peer-review", EVIDENCE)
        service.create_attestation("alice", "nobody", 1, "mentorship", 10)
        service.create_proposal("alice", TITLE, DESCRIPTION, "update-multiplier", 120)

        assert service.state_digest() == before_digest
        assert event_log.count == before_events

    def test_one_event_per_success(
        self, service: ReputationService, event_log: EventLog,
    ) -> None:
        service.create_identity("alice", "alice-research", MIN_STAKE, height=3)
        events = event_log.events()
        assert [e.event_kind for e in events] == [
            EventKind.ACTIONS_INITIALIZED, EventKind.IDENTITY_CREATED,
        ]
        assert events[-1].event_id == "EVT-00000002"
        assert events[-1].block_height == 3
        assert events[-1].actor_id == "alice"

    def test_audit_failure_rolls_back(self, resolver: PolicyResolver) -> None:
        service = ReputationService(resolver, owner=OWNER, event_log=_FailingEventLog())
        result = service.create_identity("alice", "alice-research", MIN_STAKE)
        assert not result.success
        assert result.error == ErrorKind.AUDIT_FAILURE
        assert service.get_profile("alice") is None
        assert service.get_protocol_stats()["total_staked"] == 0

    def test_block_height_never_decreases(self, service: ReputationService) -> None:
        service.set_block_height(100)
        with pytest.raises(ValueError):
            service.set_block_height(99)
        with pytest.raises(ValueError):
            service.create_identity("alice", "alice-research", MIN_STAKE, height=50)
        assert service.block_height == 100

    def test_concurrent_registration_single_winner(
        self, service: ReputationService,
    ) -> None:
        results = []

        def register() -> None:
            results.append(service.create_identity("alice", "alice-research", MIN_STAKE))

        threads = [threading.Thread(target=register) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r.success) == 1
        assert all(r.error == ErrorKind.ALREADY_EXISTS for r in results if not r.success)
        assert service.get_protocol_stats()["total_staked"] == MIN_STAKE


class TestPersistence:
    def test_restart_restores_state(self, resolver: PolicyResolver, tmp_path: Path) -> None:
        state_path = tmp_path / "state.json"
        events_path = tmp_path / "events.jsonl"

        service = ReputationService(
            resolver, OWNER,
            event_log=EventLog(events_path), state_store=StateStore(state_path),
        )
        service.initialize_actions(OWNER)
        service.create_identity("alice", "alice-research", MIN_STAKE, height=5)
        service.apply_action("alice", "code-contribution", EVIDENCE, height=9)
        digest = service.state_digest()

        restarted = ReputationService(
            resolver, OWNER,
            event_log=EventLog(events_path), state_store=StateStore(state_path),
        )
        assert restarted.state_digest() == digest
        assert restarted.block_height == 9
        assert restarted.get_profile("alice").reputation_score == 180

        # Event ids continue without colliding
        result = restarted.apply_action("alice", "code-contribution", EVIDENCE)
        assert result.success
        assert restarted.status()["events"] == 4

    def test_persistence_failure_surfaces_warning(
        self, resolver: PolicyResolver, tmp_path: Path,
    ) -> None:
        service = ReputationService(
            resolver, OWNER, state_store=_FailingStateStore(tmp_path / "state.json"),
        )
        result = service.initialize_actions(OWNER)
        assert result.success
        assert "read-only filesystem" in result.data["warning"]
        assert service.status()["persistence_degraded"]


class TestErrorCodes:
    def test_codes_are_stable(self) -> None:
        assert ErrorKind.UNAUTHORIZED.code == 100
        assert ErrorKind.PROTOCOL_PAUSED.code == 110
        assert ErrorKind.AUDIT_FAILURE.code == 111

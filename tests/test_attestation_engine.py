"""Tests for attestations — bounded impact, verified attesters, expiry."""

import pytest
from pathlib import Path

from reputation.attestation.engine import AttestationEngine
from reputation.errors import ErrorKind, ReputationError
from reputation.identity.registry import IdentityRegistry
from reputation.models.attestation import AttestationType
from reputation.models.identity import Identity, VerificationLevel
from reputation.policy.resolver import PolicyResolver
from reputation.scoring.engine import ReputationEngine
from reputation.storage.ledger import Ledger


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


def _identity(account: str, weighted: int, level: int = 1) -> Identity:
    return Identity(
        account=account,
        did=f"did-{account}",
        reputation_score=weighted,
        weighted_score=weighted,
        staked_amount=1_000_000,
        created_at=0,
        last_updated=0,
        last_decay_height=0,
        verification_level=VerificationLevel(level),
    )


@pytest.fixture
def ledger() -> Ledger:
    ledger = Ledger()
    ledger.identities.put("alice", _identity("alice", 400))
    ledger.identities.put("bob", _identity("bob", 150))
    ledger.identities.put("carol", _identity("carol", 2_000, level=0))
    return ledger


@pytest.fixture
def engine(resolver: PolicyResolver, ledger: Ledger) -> AttestationEngine:
    registry = IdentityRegistry(resolver, ledger, ReputationEngine(resolver))
    return AttestationEngine(resolver, ledger, registry)


class TestAttest:
    def test_within_allowance(self, engine: AttestationEngine) -> None:
        att = engine.attest("alice", "bob", 15, "collaboration", 1_000, height=10)
        assert att.impact == 15
        assert att.attestation_type == AttestationType.COLLABORATION
        assert att.created_at == 10
        assert att.expires_at == 1_010
        assert engine.get("alice", "bob") == att

    def test_negative_impact_allowed(self, engine: AttestationEngine) -> None:
        att = engine.attest("alice", "bob", -20, "reliability", 100, height=10)
        assert att.impact == -20

    def test_exceeds_reputation_allowance(self, engine: AttestationEngine) -> None:
        # 400 // 20 == 20
        with pytest.raises(ReputationError) as exc:
            engine.attest("alice", "bob", 25, "collaboration", 1_000, height=10)
        assert exc.value.kind == ErrorKind.INVALID_ATTESTATION_IMPACT
        assert engine.get("alice", "bob") is None

    def test_new_attestation_overwrites(self, engine: AttestationEngine) -> None:
        engine.attest("alice", "bob", 15, "collaboration", 1_000, height=10)
        engine.attest("alice", "bob", -5, "integrity", 50, height=20)
        att = engine.get("alice", "bob")
        assert att.impact == -5
        assert att.attestation_type == AttestationType.INTEGRITY

    def test_direction_matters(self, engine: AttestationEngine) -> None:
        engine.attest("alice", "bob", 15, "collaboration", 1_000, height=10)
        assert engine.get("bob", "alice") is None


class TestAttestRejections:
    def test_self_attestation_checked_first(self, engine: AttestationEngine) -> None:
        with pytest.raises(ReputationError) as exc:
            engine.attest("nobody", "nobody", 5, "collaboration", 10, height=0)
        assert exc.value.kind == ErrorKind.INVALID_PARAMETERS

    def test_unknown_target(self, engine: AttestationEngine) -> None:
        with pytest.raises(ReputationError) as exc:
            engine.attest("alice", "nobody", 5, "collaboration", 10, height=0)
        assert exc.value.kind == ErrorKind.NOT_FOUND

    def test_unknown_attester(self, engine: AttestationEngine) -> None:
        with pytest.raises(ReputationError) as exc:
            engine.attest("nobody", "alice", 5, "collaboration", 10, height=0)
        assert exc.value.kind == ErrorKind.NOT_FOUND

    @pytest.mark.parametrize("impact", [51, -51])
    def test_absolute_impact_ceiling(self, engine: AttestationEngine, impact: int) -> None:
        with pytest.raises(ReputationError) as exc:
            engine.attest("alice", "bob", impact, "collaboration", 10, height=0)
        assert exc.value.kind == ErrorKind.INVALID_PARAMETERS

    def test_unverified_attester(self, engine: AttestationEngine) -> None:
        with pytest.raises(ReputationError) as exc:
            engine.attest("carol", "bob", 5, "collaboration", 10, height=0)
        assert exc.value.kind == ErrorKind.UNAUTHORIZED

    @pytest.mark.parametrize("kind", ["Collaboration", "friendship", ""])
    def test_unknown_type(self, engine: AttestationEngine, kind: str) -> None:
        with pytest.raises(ReputationError) as exc:
            engine.attest("alice", "bob", 5, kind, 10, height=0)
        assert exc.value.kind == ErrorKind.INVALID_STRING

    @pytest.mark.parametrize("duration", [0, -1, 52_561])
    def test_invalid_duration(self, engine: AttestationEngine, duration: int) -> None:
        with pytest.raises(ReputationError) as exc:
            engine.attest("alice", "bob", 5, "collaboration", duration, height=0)
        assert exc.value.kind == ErrorKind.INVALID_DURATION

    def test_max_duration_accepted(self, engine: AttestationEngine) -> None:
        att = engine.attest("alice", "bob", 5, "mentorship", 52_560, height=0)
        assert att.expires_at == 52_560


class TestExpiry:
    def test_live_until_expiry(self, engine: AttestationEngine) -> None:
        engine.attest("alice", "bob", 15, "expertise", 100, height=10)
        assert engine.live_impact("alice", "bob", 109) == 15
        assert engine.live_impact("alice", "bob", 110) == 0

    def test_expired_record_kept(self, engine: AttestationEngine) -> None:
        engine.attest("alice", "bob", 15, "expertise", 100, height=10)
        att = engine.get("alice", "bob")
        assert att is not None
        assert not att.is_active(500)

    def test_absent_pair_reads_zero(self, engine: AttestationEngine) -> None:
        assert engine.live_impact("alice", "bob", 0) == 0

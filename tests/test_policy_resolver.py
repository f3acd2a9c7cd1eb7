"""Tests for the policy resolver — parameters load, validate and resolve."""

import copy
import json

import pytest
from pathlib import Path

from reputation.policy.resolver import PolicyResolver


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


@pytest.fixture
def raw_params() -> dict:
    with (CONFIG_DIR / "protocol_params.json").open("r", encoding="utf-8") as f:
        return json.load(f)


class TestProtocolConstants:
    def test_identity_constants(self, resolver: PolicyResolver) -> None:
        assert resolver.min_stake() == 1_000_000
        assert resolver.max_stake() == 1_000_000_000
        assert resolver.bootstrap_reputation() == 100
        assert resolver.did_length_bounds() == (6, 50)

    def test_score_and_decay_constants(self, resolver: PolicyResolver) -> None:
        assert resolver.max_score() == 10_000
        assert resolver.decay_blocks() == 4320
        assert resolver.blocks_per_day() == 144
        decay = resolver.decay_params()
        assert decay["base_rate_percent"] == 5
        assert decay["max_rate_percent"] == 50

    def test_governance_constants(self, resolver: PolicyResolver) -> None:
        assert resolver.proposal_threshold() == 500
        assert resolver.vote_threshold() == 200
        assert resolver.member_min_verification() == 1
        assert resolver.voting_window_blocks() == 1008

    def test_attestation_constants(self, resolver: PolicyResolver) -> None:
        params = resolver.attestation_params()
        assert params["max_impact"] == 50
        assert params["impact_divisor"] == 20
        assert params["max_duration_blocks"] == 52_560


class TestTargetCeilings:
    def test_update_multiplier_ceiling(self, resolver: PolicyResolver) -> None:
        assert resolver.target_value_ceiling("update-multiplier") == 200

    def test_fee_adjustment_ceiling(self, resolver: PolicyResolver) -> None:
        assert resolver.target_value_ceiling("fee-adjustment") == 1_000_000

    def test_other_actions_use_default(self, resolver: PolicyResolver) -> None:
        assert resolver.target_value_ceiling("protocol-upgrade") == 10_000
        assert resolver.target_value_ceiling("update-threshold") == 10_000


class TestCanonicalActions:
    def test_six_canonical_actions(self, resolver: PolicyResolver) -> None:
        actions = resolver.canonical_actions()
        assert set(actions) == {
            "code-contribution",
            "community-contribution",
            "content-creation",
            "bug-report",
            "peer-review",
            "governance-participation",
        }

    def test_verified_only_actions(self, resolver: PolicyResolver) -> None:
        actions = resolver.canonical_actions()
        required = {name for name, cfg in actions.items() if cfg["verification_required"]}
        assert required == {"peer-review", "governance-participation"}


class TestLoadTimeValidation:
    def test_missing_section_rejected(self, raw_params: dict) -> None:
        del raw_params["decay"]
        with pytest.raises(ValueError, match="missing section: decay"):
            PolicyResolver.from_dict(raw_params)

    def test_zero_min_stake_rejected(self, raw_params: dict) -> None:
        raw_params["identity"]["min_stake"] = 0
        with pytest.raises(ValueError, match="min_stake"):
            PolicyResolver.from_dict(raw_params)

    def test_inverted_decay_rates_rejected(self, raw_params: dict) -> None:
        raw_params["decay"]["base_rate_percent"] = 60
        with pytest.raises(ValueError, match="decay rates"):
            PolicyResolver.from_dict(raw_params)

    def test_canonical_action_out_of_bounds_rejected(self, raw_params: dict) -> None:
        params = copy.deepcopy(raw_params)
        params["canonical_actions"]["bug-report"]["base_multiplier"] = 101
        with pytest.raises(ValueError, match="bug-report"):
            PolicyResolver.from_dict(params)

    def test_missing_canonical_action_rejected(self, raw_params: dict) -> None:
        del raw_params["canonical_actions"]["peer-review"]
        with pytest.raises(ValueError, match="peer-review"):
            PolicyResolver.from_dict(raw_params)

    def test_missing_default_ceiling_rejected(self, raw_params: dict) -> None:
        del raw_params["governance"]["target_ceilings"]["default"]
        with pytest.raises(ValueError, match="default"):
            PolicyResolver.from_dict(raw_params)


class TestInvariantTool:
    def test_invariant_checks(self) -> None:
        """check_invariants.check() returns 0 for the shipped parameters."""
        import sys
        sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "tools"))
        from check_invariants import check
        assert check() == 0

    def test_invariant_checks_flag_inverted_thresholds(self, raw_params: dict) -> None:
        import sys
        sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "tools"))
        from check_invariants import check_params
        raw_params["governance"]["vote_threshold"] = 600
        errors = check_params(raw_params)
        assert any("proposal_threshold" in e for e in errors)

"""Policy resolver — typed access to protocol parameters.

All protocol constants (stake bounds, decay schedule, governance thresholds,
the canonical action catalog) live in ``config/protocol_params.json``.
Nothing else in the package hard-codes them; engines receive a resolver at
construction and ask it.

Structural invariants are checked at load time. A resolver that loads is a
resolver whose parameters can be trusted by every engine:
- min_stake > 0, max_stake_multiple >= 1
- 0 < bootstrap_reputation <= max_score
- base decay rate <= max decay rate <= 100
- multiplier/daily-cap bounds are non-empty ranges
- every canonical action sits inside those bounds
- every whitelisted ActionType has a canonical entry
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from reputation.models.action import ActionType


PARAMS_FILENAME = "protocol_params.json"


class PolicyResolver:
    """Resolves protocol parameters from a loaded config dict."""

    def __init__(self, params: dict[str, Any]) -> None:
        self._params = params
        errors = self._validate(params)
        if errors:
            raise ValueError("Invalid protocol parameters: " + "; ".join(errors))

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        path = Path(config_dir) / PARAMS_FILENAME
        with path.open("r", encoding="utf-8") as handle:
            return cls(json.load(handle))

    @classmethod
    def from_dict(cls, params: dict[str, Any]) -> PolicyResolver:
        return cls(params)

    @property
    def params(self) -> dict[str, Any]:
        return self._params

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def min_stake(self) -> int:
        return int(self._params["identity"]["min_stake"])

    def max_stake(self) -> int:
        return self.min_stake() * int(self._params["identity"]["max_stake_multiple"])

    def bootstrap_reputation(self) -> int:
        return int(self._params["identity"]["bootstrap_reputation"])

    def did_length_bounds(self) -> tuple[int, int]:
        ident = self._params["identity"]
        return int(ident["did_min_length"]), int(ident["did_max_length"])

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def max_score(self) -> int:
        return int(self._params["scores"]["max_score"])

    def weighted_score_params(self) -> dict[str, int]:
        return {k: int(v) for k, v in self._params["scores"]["weighted"].items()}

    def action_gain_params(self) -> dict[str, int]:
        return {k: int(v) for k, v in self._params["scores"]["action_gain"].items()}

    def decay_params(self) -> dict[str, int]:
        return {k: int(v) for k, v in self._params["decay"].items()}

    def decay_blocks(self) -> int:
        return int(self._params["decay"]["decay_blocks"])

    # ------------------------------------------------------------------
    # Anti-gaming
    # ------------------------------------------------------------------

    def blocks_per_day(self) -> int:
        return int(self._params["anti_gaming"]["blocks_per_day"])

    # ------------------------------------------------------------------
    # Attestation
    # ------------------------------------------------------------------

    def attestation_params(self) -> dict[str, int]:
        return {k: int(v) for k, v in self._params["attestation"].items()}

    # ------------------------------------------------------------------
    # Governance
    # ------------------------------------------------------------------

    def proposal_threshold(self) -> int:
        return int(self._params["governance"]["proposal_threshold"])

    def vote_threshold(self) -> int:
        return int(self._params["governance"]["vote_threshold"])

    def member_min_verification(self) -> int:
        return int(self._params["governance"]["member_min_verification"])

    def voting_window_blocks(self) -> int:
        return int(self._params["governance"]["voting_window_blocks"])

    def proposal_text_bounds(self) -> dict[str, int]:
        gov = self._params["governance"]
        return {
            "title_min_exclusive": int(gov["title_min_length_exclusive"]),
            "title_max": int(gov["title_max_length"]),
            "description_min_exclusive": int(gov["description_min_length_exclusive"]),
            "description_max": int(gov["description_max_length"]),
        }

    def target_value_ceiling(self, action_type: str) -> int:
        """Ceiling on a proposal's target value for the given action type."""
        ceilings = self._params["governance"]["target_ceilings"]
        return int(ceilings.get(action_type, ceilings["default"]))

    # ------------------------------------------------------------------
    # Action catalog
    # ------------------------------------------------------------------

    def action_config_bounds(self) -> dict[str, int]:
        return {k: int(v) for k, v in self._params["action_config_bounds"].items()}

    def canonical_actions(self) -> dict[str, dict[str, Any]]:
        return dict(self._params["canonical_actions"])

    # ------------------------------------------------------------------
    # Load-time validation
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(params: dict[str, Any]) -> list[str]:
        errors: list[str] = []
        for section in (
            "identity", "scores", "decay", "anti_gaming", "attestation",
            "governance", "action_config_bounds", "canonical_actions",
        ):
            if section not in params:
                errors.append(f"missing section: {section}")
        if errors:
            return errors

        ident = params["identity"]
        if ident["min_stake"] <= 0:
            errors.append("identity.min_stake must be > 0")
        if ident["max_stake_multiple"] < 1:
            errors.append("identity.max_stake_multiple must be >= 1")
        if ident["did_min_length"] > ident["did_max_length"]:
            errors.append("identity.did_min_length cannot exceed did_max_length")

        max_score = params["scores"]["max_score"]
        if not 0 < ident["bootstrap_reputation"] <= max_score:
            errors.append("identity.bootstrap_reputation must be in (0, max_score]")

        decay = params["decay"]
        if decay["decay_blocks"] <= 0:
            errors.append("decay.decay_blocks must be > 0")
        if decay["periods_per_rate_step"] <= 0:
            errors.append("decay.periods_per_rate_step must be > 0")
        if not decay["base_rate_percent"] <= decay["max_rate_percent"] <= 100:
            errors.append("decay rates must satisfy base <= max <= 100")

        if params["anti_gaming"]["blocks_per_day"] <= 0:
            errors.append("anti_gaming.blocks_per_day must be > 0")

        att = params["attestation"]
        if att["impact_divisor"] <= 0:
            errors.append("attestation.impact_divisor must be > 0")
        if att["max_duration_blocks"] <= 0:
            errors.append("attestation.max_duration_blocks must be > 0")

        gov = params["governance"]
        if "default" not in gov.get("target_ceilings", {}):
            errors.append("governance.target_ceilings must define a default")
        if gov["voting_window_blocks"] <= 0:
            errors.append("governance.voting_window_blocks must be > 0")

        bounds = params["action_config_bounds"]
        if bounds["multiplier_min"] > bounds["multiplier_max"]:
            errors.append("action_config_bounds multiplier range is empty")
        if bounds["daily_min"] > bounds["daily_max"]:
            errors.append("action_config_bounds daily range is empty")

        missing = [a.value for a in ActionType if a.value not in params["canonical_actions"]]
        if missing:
            errors.append(f"canonical_actions missing whitelisted types: {missing}")
        for name, cfg in params["canonical_actions"].items():
            if not bounds["multiplier_min"] <= cfg["base_multiplier"] <= bounds["multiplier_max"]:
                errors.append(f"canonical action {name}: base_multiplier out of range")
            if not bounds["daily_min"] <= cfg["max_daily"] <= bounds["daily_max"]:
                errors.append(f"canonical action {name}: max_daily out of range")

        return errors

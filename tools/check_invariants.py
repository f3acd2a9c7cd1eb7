#!/usr/bin/env python3
"""Reputation protocol invariant checks against the parameter file."""

import json
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
PARAMS_PATH = ROOT / "config" / "protocol_params.json"

REQUIRED_ACTIONS = (
    "code-contribution",
    "community-contribution",
    "content-creation",
    "bug-report",
    "peer-review",
    "governance-participation",
)


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def check_params(params: dict) -> list[str]:
    """Return every violated invariant; an empty list means the file is sound."""
    errors: list[str] = []

    # --- Identity invariants ---
    identity = params["identity"]
    if identity["min_stake"] <= 0:
        errors.append("min_stake must be > 0")
    if identity["max_stake_multiple"] < 1:
        errors.append("max_stake_multiple must be >= 1")
    if identity["did_min_length"] < 1:
        errors.append("did_min_length must be >= 1")
    if identity["did_max_length"] < identity["did_min_length"]:
        errors.append("did_max_length must be >= did_min_length")

    # --- Score invariants ---
    scores = params["scores"]
    max_score = scores["max_score"]
    if max_score <= 0:
        errors.append("max_score must be > 0")
    if not (0 <= identity["bootstrap_reputation"] <= max_score):
        errors.append(f"bootstrap_reputation must be in [0, {max_score}]")
    gain = scores["action_gain"]
    if not (0 < gain["max_gain_per_action"] <= max_score):
        errors.append("max_gain_per_action must be in (0, max_score]")
    for key, value in scores["weighted"].items():
        if value < 0:
            errors.append(f"weighted.{key} must be >= 0, got {value}")

    # --- Decay invariants ---
    decay = params["decay"]
    if decay["decay_blocks"] <= 0:
        errors.append("decay_blocks must be > 0")
    if not (0 <= decay["base_rate_percent"] <= decay["max_rate_percent"] <= 100):
        errors.append("decay rates must satisfy 0 <= base <= max <= 100")
    if decay["periods_per_rate_step"] <= 0:
        errors.append("periods_per_rate_step must be > 0")

    # --- Anti-gaming invariants ---
    if params["anti_gaming"]["blocks_per_day"] <= 0:
        errors.append("blocks_per_day must be > 0")

    # --- Attestation invariants ---
    attestation = params["attestation"]
    if attestation["max_impact"] <= 0:
        errors.append("attestation max_impact must be > 0")
    if attestation["impact_divisor"] <= 0:
        errors.append("attestation impact_divisor must be > 0")
    if attestation["max_duration_blocks"] <= 0:
        errors.append("attestation max_duration_blocks must be > 0")

    # --- Governance invariants ---
    governance = params["governance"]
    if governance["proposal_threshold"] <= governance["vote_threshold"]:
        errors.append("proposal_threshold must be stricter (higher) than vote_threshold")
    if governance["proposal_threshold"] > max_score:
        errors.append("proposal_threshold must not exceed max_score")
    if governance["voting_window_blocks"] <= 0:
        errors.append("voting_window_blocks must be > 0")
    if governance["member_min_verification"] < 1:
        errors.append("member_min_verification must be >= 1")
    if governance["title_max_length"] <= governance["title_min_length_exclusive"]:
        errors.append("title bounds are empty")
    if governance["description_max_length"] <= governance["description_min_length_exclusive"]:
        errors.append("description bounds are empty")
    if "default" not in governance["target_ceilings"]:
        errors.append("target_ceilings must define a default ceiling")

    # --- Action catalog invariants ---
    bounds = params["action_config_bounds"]
    if not (1 <= bounds["multiplier_min"] <= bounds["multiplier_max"]):
        errors.append("multiplier bounds must satisfy 1 <= min <= max")
    if not (1 <= bounds["daily_min"] <= bounds["daily_max"]):
        errors.append("daily bounds must satisfy 1 <= min <= max")

    canonical = params["canonical_actions"]
    missing = [name for name in REQUIRED_ACTIONS if name not in canonical]
    if missing:
        errors.append(f"canonical_actions missing: {missing}")
    for name, config in canonical.items():
        if len(name) > bounds["action_type_max_length"]:
            errors.append(f"canonical action name too long: {name}")
        if not (bounds["multiplier_min"] <= config["base_multiplier"] <= bounds["multiplier_max"]):
            errors.append(f"{name}.base_multiplier out of bounds")
        if not (bounds["daily_min"] <= config["max_daily"] <= bounds["daily_max"]):
            errors.append(f"{name}.max_daily out of bounds")

    return errors


def check(path: Path = PARAMS_PATH) -> int:
    errors = check_params(load_json(path))

    if errors:
        print("Invariant check failed:")
        for err in errors:
            print(f"- {err}")
        return 1

    print("Invariant check passed.")
    return 0


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else PARAMS_PATH
    raise SystemExit(check(target))

"""Action catalog — which actions earn reputation, and how much.

The six canonical action types come from protocol_params.json and are
seeded by seed_canonical(). Re-seeding rewrites the same values, so the
operation is idempotent by design.

update() replaces or creates a single entry after range checks:
- base_multiplier in [multiplier_min, multiplier_max]
- max_daily in [daily_min, daily_max]
- action_type an identifier of 1..action_type_max_length characters

Entries outside the ActionType whitelist can be stored but never earn
reputation; the updater rejects them before the catalog lookup.
"""

from __future__ import annotations

import logging
from typing import Optional

from reputation import validation
from reputation.errors import ErrorKind, ReputationError
from reputation.models.action import ActionConfig
from reputation.policy.resolver import PolicyResolver
from reputation.storage.ledger import Ledger

logger = logging.getLogger(__name__)


class ActionCatalog:
    """Keyed store of ActionConfig entries."""

    def __init__(self, resolver: PolicyResolver, ledger: Ledger) -> None:
        self._resolver = resolver
        self._ledger = ledger

    def seed_canonical(self) -> list[str]:
        """Write every canonical action, enabled. Returns the seeded names."""
        seeded: list[str] = []
        for action_type, cfg in self._resolver.canonical_actions().items():
            self._ledger.action_configs.put(action_type, ActionConfig(
                action_type=action_type,
                base_multiplier=int(cfg["base_multiplier"]),
                max_daily=int(cfg["max_daily"]),
                verification_required=bool(cfg["verification_required"]),
                enabled=True,
            ))
            seeded.append(action_type)
        logger.debug("Seeded %d canonical actions", len(seeded))
        return seeded

    def update(
        self,
        action_type: str,
        base_multiplier: int,
        max_daily: int,
        verification_required: bool,
        enabled: bool,
    ) -> ActionConfig:
        bounds = self._resolver.action_config_bounds()
        if not validation.is_identifier(action_type, 1, bounds["action_type_max_length"]):
            raise ReputationError(
                ErrorKind.INVALID_STRING,
                f"Invalid action type name: {action_type!r}",
            )
        if not validation.in_range(base_multiplier, bounds["multiplier_min"], bounds["multiplier_max"]):
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                f"base_multiplier {base_multiplier} outside "
                f"[{bounds['multiplier_min']}, {bounds['multiplier_max']}]",
            )
        if not validation.in_range(max_daily, bounds["daily_min"], bounds["daily_max"]):
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                f"max_daily {max_daily} outside "
                f"[{bounds['daily_min']}, {bounds['daily_max']}]",
            )

        config = ActionConfig(
            action_type=action_type,
            base_multiplier=base_multiplier,
            max_daily=max_daily,
            verification_required=bool(verification_required),
            enabled=bool(enabled),
        )
        self._ledger.action_configs.put(action_type, config)
        return config

    def get(self, action_type: str) -> Optional[ActionConfig]:
        return self._ledger.action_configs.get(action_type)

    def require_usable(self, action_type: str) -> ActionConfig:
        """Return the config for an enabled, known action or raise."""
        config = self._ledger.action_configs.get(action_type)
        if config is None:
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS, f"Unknown action type: {action_type!r}",
            )
        if not config.enabled:
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS, f"Action type is disabled: {action_type}",
            )
        return config

"""Protocol admin — owner-only controls over the protocol state.

The owner account is fixed when the protocol is deployed. Only the owner
can pause, resume, seed or edit the action catalog, or record a
verification level. Admin operations remain available while paused;
every other mutating operation checks ensure_active() first.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reputation.actions.catalog import ActionCatalog
from reputation.errors import ErrorKind, ReputationError
from reputation.models.action import ActionConfig
from reputation.models.identity import Identity
from reputation.storage.ledger import Ledger

if TYPE_CHECKING:
    from reputation.identity.registry import IdentityRegistry

logger = logging.getLogger(__name__)


class ProtocolAdmin:
    def __init__(
        self,
        owner: str,
        ledger: Ledger,
        catalog: ActionCatalog,
        registry: IdentityRegistry,
    ) -> None:
        if not owner or not owner.strip():
            raise ValueError("Protocol owner cannot be empty")
        self._owner = owner
        self._ledger = ledger
        self._catalog = catalog
        self._registry = registry

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def paused(self) -> bool:
        return self._ledger.protocol.paused

    def ensure_active(self) -> None:
        if self._ledger.protocol.paused:
            raise ReputationError(ErrorKind.PROTOCOL_PAUSED, "Protocol is paused")

    def ensure_owner(self, caller: str) -> None:
        if caller != self._owner:
            raise ReputationError(
                ErrorKind.UNAUTHORIZED, f"Owner-only operation; caller {caller} is not owner",
            )

    def pause(self, caller: str) -> None:
        self.ensure_owner(caller)
        self._ledger.protocol.paused = True
        logger.warning("Protocol paused by %s", caller)

    def resume(self, caller: str) -> None:
        self.ensure_owner(caller)
        self._ledger.protocol.paused = False
        logger.warning("Protocol resumed by %s", caller)

    def initialize_actions(self, caller: str) -> list[str]:
        self.ensure_owner(caller)
        return self._catalog.seed_canonical()

    def update_action_config(
        self,
        caller: str,
        action_type: str,
        base_multiplier: int,
        max_daily: int,
        verification_required: bool,
        enabled: bool,
    ) -> ActionConfig:
        self.ensure_owner(caller)
        return self._catalog.update(
            action_type, base_multiplier, max_daily, verification_required, enabled,
        )

    def set_verification_level(
        self,
        caller: str,
        account: str,
        level: int,
        height: int,
    ) -> Identity:
        self.ensure_owner(caller)
        return self._registry.set_verification_level(account, level, height)

"""Ledger — the five keyed stores plus protocol state, under one transaction.

Store keys:
- identities:      account
- action_configs:  action_type
- daily_counters:  (account, day, action_type)
- attestations:    (attester, target)
- proposals:       proposal_id
- votes:           (proposal_id, voter)

Usage:
    ledger = Ledger()
    with ledger.transaction():
        ledger.identities.insert(account, identity)
        ledger.protocol.total_staked += identity.staked_amount
    # Any exception inside the block restores every store and the
    # protocol state to their values at entry, then re-raises.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from reputation.models.action import ActionConfig
from reputation.models.attestation import Attestation
from reputation.models.governance import Proposal, Vote
from reputation.models.identity import Identity
from reputation.models.protocol import ProtocolState
from reputation.storage.keyed_store import KeyedStore, MemoryKeyedStore

logger = logging.getLogger(__name__)


class Ledger:
    """All persisted protocol state."""

    def __init__(self, protocol: Optional[ProtocolState] = None) -> None:
        self.protocol = protocol or ProtocolState()
        self.identities: KeyedStore[str, Identity] = MemoryKeyedStore("identities")
        self.action_configs: KeyedStore[str, ActionConfig] = MemoryKeyedStore("action_configs")
        self.daily_counters: KeyedStore[tuple[str, int, str], int] = MemoryKeyedStore("daily_counters")
        self.attestations: KeyedStore[tuple[str, str], Attestation] = MemoryKeyedStore("attestations")
        self.proposals: KeyedStore[int, Proposal] = MemoryKeyedStore("proposals")
        self.votes: KeyedStore[tuple[int, str], Vote] = MemoryKeyedStore("votes")
        self._in_transaction = False

    def stores(self) -> list[KeyedStore]:
        return [
            self.identities,
            self.action_configs,
            self.daily_counters,
            self.attestations,
            self.proposals,
            self.votes,
        ]

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @contextmanager
    def transaction(self) -> Iterator[Ledger]:
        """All-or-nothing scope. Not re-entrant."""
        if self._in_transaction:
            raise RuntimeError("Ledger transaction already open")
        protocol_snapshot = self.protocol.snapshot()
        for store in self.stores():
            store.begin()
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            for store in self.stores():
                store.rollback()
            self.protocol.restore(protocol_snapshot)
            logger.debug("Ledger transaction rolled back")
            raise
        else:
            for store in self.stores():
                store.commit()
        finally:
            self._in_transaction = False

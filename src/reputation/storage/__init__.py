"""Keyed record storage with journalled, all-or-nothing transactions."""

from reputation.storage.keyed_store import KeyedStore, MemoryKeyedStore
from reputation.storage.ledger import Ledger

__all__ = ["KeyedStore", "MemoryKeyedStore", "Ledger"]

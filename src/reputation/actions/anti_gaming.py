"""Anti-gaming ledger — per-day, per-action application counters.

day = block_height // blocks_per_day. Counters are never cleared; a new
day simply reads a fresh key, so caps reset at every day boundary.
"""

from __future__ import annotations

from reputation.models.action import DailyActivityKey
from reputation.policy.resolver import PolicyResolver
from reputation.storage.ledger import Ledger


class AntiGamingLedger:
    def __init__(self, resolver: PolicyResolver, ledger: Ledger) -> None:
        self._blocks_per_day = resolver.blocks_per_day()
        self._ledger = ledger

    def day_index(self, height: int) -> int:
        return height // self._blocks_per_day

    def key(self, account: str, action_type: str, height: int) -> DailyActivityKey:
        return DailyActivityKey(account, self.day_index(height), action_type)

    def count(self, account: str, action_type: str, height: int) -> int:
        value = self._ledger.daily_counters.get(self.key(account, action_type, height).as_tuple())
        return value or 0

    def has_capacity(self, account: str, action_type: str, height: int, max_daily: int) -> bool:
        return self.count(account, action_type, height) < max_daily

    def increment(self, account: str, action_type: str, height: int) -> int:
        key = self.key(account, action_type, height).as_tuple()
        new_count = (self._ledger.daily_counters.get(key) or 0) + 1
        self._ledger.daily_counters.put(key, new_count)
        return new_count

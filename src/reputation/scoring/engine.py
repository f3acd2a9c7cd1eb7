"""Reputation engine — decay, weighted score and per-action gain.

Weighted score (saturating at max_score):
  W = min(MAX, base + stake * 10 // MIN_STAKE
               + min(500, activity * 5)
               + verification_level * 100)

Decay (lazy, a pure function of stored state and current height):
  periods = (height - last_decay_height) // DECAY_BLOCKS
  if periods > 0:
      rate  = min(MAX_RATE, 5 + periods // 10)          # percent
      base  = max(0, base - base * rate // 100)
      last_decay_height = height

Per-action gain:
  verification_bonus = 100 + level * 20
  stake_bonus        = 100 + min(50, stake // MIN_STAKE)
  gain = min(100, multiplier * verification_bonus * stake_bonus // 10000)

Invariants enforced:
- 0 <= reputation_score <= max_score and 0 <= weighted_score <= max_score.
- Decay never increases a score.
- Decay applied twice inside one DECAY_BLOCKS window is a no-op.
- No decay is ever scheduled; every caller passes the height explicitly.

All arithmetic is integer. No method mutates its input record.
"""

from __future__ import annotations

from dataclasses import replace

from reputation.models.identity import Identity
from reputation.policy.resolver import PolicyResolver


class ReputationEngine:
    """Pure score computations."""

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver
        self._max_score = resolver.max_score()
        self._min_stake = resolver.min_stake()

    @property
    def max_score(self) -> int:
        return self._max_score

    def clamp(self, score: int) -> int:
        return max(0, min(self._max_score, score))

    # ------------------------------------------------------------------
    # Weighted score
    # ------------------------------------------------------------------

    def compute_weighted_score(
        self,
        base_score: int,
        staked_amount: int,
        activity_count: int,
        verification_level: int,
    ) -> int:
        params = self._resolver.weighted_score_params()
        stake_bonus = staked_amount * params["stake_bonus_per_min_stake"] // self._min_stake
        activity_bonus = min(
            params["activity_bonus_cap"],
            activity_count * params["activity_bonus_per_action"],
        )
        verification_bonus = int(verification_level) * params["verification_bonus_per_level"]
        return self.clamp(base_score + stake_bonus + activity_bonus + verification_bonus)

    def reweigh(self, identity: Identity) -> Identity:
        """Return a copy with weighted_score recomputed from current fields."""
        weighted = self.compute_weighted_score(
            identity.reputation_score,
            identity.staked_amount,
            identity.activity_count,
            identity.verification_level,
        )
        if weighted == identity.weighted_score:
            return identity
        return replace(identity, weighted_score=weighted)

    # ------------------------------------------------------------------
    # Decay
    # ------------------------------------------------------------------

    def decay_periods(self, last_decay_height: int, height: int) -> int:
        elapsed = height - last_decay_height
        if elapsed <= 0:
            return 0
        return elapsed // self._resolver.decay_blocks()

    def decay_rate_percent(self, periods: int) -> int:
        params = self._resolver.decay_params()
        rate = params["base_rate_percent"] + periods // params["periods_per_rate_step"]
        return min(params["max_rate_percent"], rate)

    def compute_decayed_score(self, score: int, periods: int) -> int:
        if periods <= 0:
            return score
        decay_amount = score * self.decay_rate_percent(periods) // 100
        return max(0, score - decay_amount)

    def apply_decay(self, identity: Identity, height: int) -> Identity:
        """Return the identity with decay settled at ``height``.

        Returns the same object when no full decay period has elapsed.
        The weighted score is recomputed whenever decay applies.
        """
        periods = self.decay_periods(identity.last_decay_height, height)
        if periods <= 0:
            return identity
        decayed = replace(
            identity,
            reputation_score=self.compute_decayed_score(identity.reputation_score, periods),
            last_decay_height=height,
        )
        return self.reweigh(decayed)

    # ------------------------------------------------------------------
    # Action gain
    # ------------------------------------------------------------------

    def compute_action_gain(
        self,
        base_multiplier: int,
        verification_level: int,
        staked_amount: int,
    ) -> int:
        params = self._resolver.action_gain_params()
        verification_bonus = 100 + int(verification_level) * params["verification_bonus_per_level"]
        stake_bonus = 100 + min(params["stake_bonus_cap"], staked_amount // self._min_stake)
        total_multiplier = base_multiplier * verification_bonus * stake_bonus // 10000
        return min(params["max_gain_per_action"], total_multiplier)

    def apply_gain(self, identity: Identity, gain: int, height: int) -> Identity:
        """Add gain (saturating), count the activity, stamp last_updated."""
        gained = replace(
            identity,
            reputation_score=self.clamp(identity.reputation_score + gain),
            activity_count=identity.activity_count + 1,
            last_updated=height,
        )
        return self.reweigh(gained)

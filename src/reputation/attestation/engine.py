"""Attestation engine — directed, expiring, bounded-impact peer statements.

Rules:
- Self-attestation is structurally blocked, before any other check.
- Both attester and target must be registered.
- |impact| <= max_impact (50), and |impact| <= attester weighted // 20.
  Only well-reputed accounts can assert large impacts.
- Attester must be verified (level >= 1).
- Type must be one of the eight AttestationType values.
- 0 < duration <= max_duration_blocks.
- One attestation per (attester, target); a new one overwrites.
- Expired attestations read as impact 0 and are never purged.

Attestations do not feed into any score. A reader that wants a pair's
current effect asks live_impact().
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from reputation import validation
from reputation.errors import ErrorKind, ReputationError
from reputation.models.attestation import Attestation
from reputation.models.identity import VerificationLevel
from reputation.policy.resolver import PolicyResolver
from reputation.storage.ledger import Ledger

if TYPE_CHECKING:
    from reputation.identity.registry import IdentityRegistry

logger = logging.getLogger(__name__)


class AttestationEngine:
    """Usage:
        engine = AttestationEngine(resolver, ledger, registry)
        att = engine.attest("alice", "bob", 15, "collaboration", 1000, height)
    """

    def __init__(
        self,
        resolver: PolicyResolver,
        ledger: Ledger,
        registry: IdentityRegistry,
    ) -> None:
        self._params = resolver.attestation_params()
        self._ledger = ledger
        self._registry = registry

    def attest(
        self,
        attester: str,
        target: str,
        impact: int,
        attestation_type: str,
        duration_blocks: int,
        height: int,
    ) -> Attestation:
        if attester == target:
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS, "Self-attestation is not allowed",
            )

        if self._registry.get(attester) is None:
            raise ReputationError(
                ErrorKind.NOT_FOUND, f"Attester has no identity: {attester}",
            )
        if self._registry.get(target) is None:
            raise ReputationError(
                ErrorKind.NOT_FOUND, f"Target has no identity: {target}",
            )

        max_impact = self._params["max_impact"]
        if not isinstance(impact, int) or abs(impact) > max_impact:
            raise ReputationError(
                ErrorKind.INVALID_PARAMETERS,
                f"Impact must be an integer within ±{max_impact}, got {impact}",
            )

        if self._registry.get(attester).verification_level == VerificationLevel.BASIC:
            raise ReputationError(
                ErrorKind.UNAUTHORIZED, "Attester must hold a verified identity",
            )

        parsed_type = validation.parse_attestation_type(attestation_type)
        if parsed_type is None:
            raise ReputationError(
                ErrorKind.INVALID_STRING,
                f"Unknown attestation type: {attestation_type!r}",
            )

        if not validation.is_valid_duration(duration_blocks, self._params["max_duration_blocks"]):
            raise ReputationError(
                ErrorKind.INVALID_DURATION,
                f"Duration must be 1-{self._params['max_duration_blocks']} blocks, "
                f"got {duration_blocks}",
            )

        attester_identity = self._registry.settle(attester, height)
        allowance = attester_identity.weighted_score // self._params["impact_divisor"]
        if abs(impact) > allowance:
            raise ReputationError(
                ErrorKind.INVALID_ATTESTATION_IMPACT,
                f"Impact {impact} exceeds attester allowance {allowance} "
                f"(weighted score {attester_identity.weighted_score})",
            )

        attestation = Attestation(
            attester=attester,
            target=target,
            impact=impact,
            attestation_type=parsed_type,
            created_at=height,
            expires_at=height + duration_blocks,
        )
        self._ledger.attestations.put((attester, target), attestation)
        logger.debug(
            "Attestation %s -> %s impact=%d type=%s expires=%d",
            attester, target, impact, parsed_type.value, attestation.expires_at,
        )
        return attestation

    def get(self, attester: str, target: str) -> Optional[Attestation]:
        return self._ledger.attestations.get((attester, target))

    def live_impact(self, attester: str, target: str, height: int) -> int:
        attestation = self.get(attester, target)
        if attestation is None:
            return 0
        return attestation.live_impact(height)

"""Validation layer — pure predicates over raw operation inputs.

No state, no side effects, no exceptions: every function answers a yes/no
question (or parses to None). Engines decide which ErrorKind a failed
predicate maps to.
"""

from __future__ import annotations

import re
from typing import Optional

from reputation.models.action import ActionType
from reputation.models.attestation import AttestationType
from reputation.models.governance import ProposalActionType


EVIDENCE_HASH_LENGTH = 32

# Identifier alphabet shared by dids and action-type names.
_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9._:\-]*")


def is_identifier(value: str, min_length: int, max_length: int) -> bool:
    """True if value is a printable identifier within [min_length, max_length]."""
    if not isinstance(value, str):
        return False
    if not min_length <= len(value) <= max_length:
        return False
    return _IDENTIFIER_RE.fullmatch(value) is not None


def is_valid_did(did: str, min_length: int = 6, max_length: int = 50) -> bool:
    return is_identifier(did, min_length, max_length)


def is_bounded_text(text: str, min_exclusive: int, max_length: int) -> bool:
    """True if text is longer than min_exclusive and at most max_length."""
    if not isinstance(text, str):
        return False
    return min_exclusive < len(text) <= max_length


def in_range(value: int, low: int, high: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high


def is_valid_duration(duration: int, max_duration: int) -> bool:
    return in_range(duration, 1, max_duration)


def is_valid_evidence_hash(evidence_hash: bytes) -> bool:
    """32 bytes and not the all-zero sentinel."""
    if not isinstance(evidence_hash, (bytes, bytearray)):
        return False
    if len(evidence_hash) != EVIDENCE_HASH_LENGTH:
        return False
    return any(evidence_hash)


def parse_action_type(raw: str) -> Optional[ActionType]:
    if isinstance(raw, ActionType):
        return raw
    if not isinstance(raw, str):
        return None
    return ActionType.parse(raw)


def parse_attestation_type(raw: str) -> Optional[AttestationType]:
    if isinstance(raw, AttestationType):
        return raw
    if not isinstance(raw, str):
        return None
    return AttestationType.parse(raw)


def parse_proposal_action(raw: str) -> Optional[ProposalActionType]:
    if isinstance(raw, ProposalActionType):
        return raw
    if not isinstance(raw, str):
        return None
    return ProposalActionType.parse(raw)

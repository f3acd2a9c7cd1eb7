"""Ledger digests and on-chain anchoring."""

from reputation.crypto.anchor import AnchorRecord, anchor_to_chain, canonical_hash

__all__ = ["AnchorRecord", "anchor_to_chain", "canonical_hash"]

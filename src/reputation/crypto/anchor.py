"""Ledger anchoring — publishes a ledger digest on Ethereum as tamper evidence.

An off-chain deployment of the protocol (a simulation, a staging host)
can prove that its ledger was in an exact state at an exact block by
embedding the canonical SHA-256 of the ledger records in a 0-value
self-send transaction. No code executes on-chain; the chain is a witness.

Canonical form: sorted keys, Unicode preserved, UTF-8 encoded.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

SEPOLIA_CHAIN_ID = 11155111


@dataclass(frozen=True)
class AnchorRecord:
    """A record of a successful on-chain anchor."""
    sha256_hash: str
    ledger_height: int
    tx_hash: str
    block_number: int
    chain_id: int
    timestamp_utc: str


def canonical_hash(records: dict[str, Any]) -> str:
    """SHA-256 hex digest of the canonical JSON form of ``records``."""
    canonical = json.dumps(records, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(canonical).hexdigest()


def anchor_to_chain(
    digest: str,
    ledger_height: int,
    rpc_url: str,
    private_key: str,
    chain_id: int = SEPOLIA_CHAIN_ID,
    gas: int = 30_000,
    gas_price_gwei: str = "2",
    timeout: int = 300,
) -> AnchorRecord:
    """Embed ``digest`` in a 0-value self-send and wait for one confirmation.

    Args:
        digest: SHA-256 hex string to anchor.
        ledger_height: Protocol block height the digest was taken at.
        rpc_url: Ethereum RPC endpoint URL.
        private_key: Hex-encoded signing key.
        chain_id: Network chain ID (default: Sepolia).
        gas: Gas limit for the transaction.
        gas_price_gwei: Gas price in gwei.
        timeout: Seconds to wait for the receipt.
    """
    from web3 import Web3, HTTPProvider
    from eth_account import Account

    w3 = Web3(HTTPProvider(rpc_url))
    acct = Account.from_key(private_key)

    nonce = w3.eth.get_transaction_count(acct.address)
    tx = {
        "to": acct.address,
        "value": 0,
        "gas": gas,
        "gasPrice": w3.to_wei(gas_price_gwei, "gwei"),
        "nonce": nonce,
        "chainId": chain_id,
        "data": bytes.fromhex(digest),
    }

    signed = acct.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    logger.info("Anchor tx sent: %s (ledger height %d)", tx_hash.hex(), ledger_height)

    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    logger.info("Anchor confirmed in block %d", receipt.blockNumber)

    return AnchorRecord(
        sha256_hash=digest,
        ledger_height=ledger_height,
        tx_hash=tx_hash.hex(),
        block_number=receipt.blockNumber,
        chain_id=chain_id,
        timestamp_utc=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    )

#!/usr/bin/env python3
"""Anchor a reputation ledger snapshot on Ethereum Sepolia.

Computes the canonical SHA-256 of a ledger snapshot written by the
service's StateStore and embeds it in a 0-value self-send, giving
tamper-evident proof that the ledger was in this exact state at this
exact protocol block height.

Usage:
    python3 tools/anchor_state.py data/state.json
    python3 tools/anchor_state.py data/state.json "Description of the snapshot"

Requires:
    SEPOLIA_RPC_URL and PRIVATE_KEY in a .env file at the project root.
"""

import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from dotenv import load_dotenv
from reputation.crypto.anchor import anchor_to_chain, canonical_hash
from reputation.persistence.state_store import StateStore, ledger_to_records

ANCHORS_FILE = ROOT / "docs" / "ANCHORS.md"


def main(argv: list[str]) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    load_dotenv(ROOT / ".env")

    rpc_url = os.getenv("SEPOLIA_RPC_URL")
    private_key = os.getenv("PRIVATE_KEY") or os.getenv("SEPOLIA_PRIVATE_KEY")
    if not rpc_url or not private_key:
        print("ERROR: Missing SEPOLIA_RPC_URL and/or PRIVATE_KEY in .env")
        return 1

    if not argv:
        print("ERROR: Missing snapshot path")
        return 1

    store = StateStore(Path(argv[0]))
    if not store.exists():
        print(f"ERROR: Snapshot not found: {store.storage_path}")
        return 1
    description = " ".join(argv[1:])

    ledger, height = store.load()
    digest = canonical_hash(ledger_to_records(ledger))

    print("=" * 60)
    print("REPUTATION LEDGER ANCHOR")
    print("=" * 60)
    print(f"  Snapshot:       {store.storage_path}")
    print(f"  Ledger height:  {height}")
    print(f"  SHA-256:        {digest}")
    if description:
        print(f"  Description:    {description}")
    print()

    record = anchor_to_chain(
        digest=digest,
        ledger_height=height,
        rpc_url=rpc_url,
        private_key=private_key,
        gas_price_gwei="10",
    )

    ANCHORS_FILE.parent.mkdir(parents=True, exist_ok=True)
    entry_lines = [
        f"## Ledger height {height}",
        "",
        f"- `{digest}` tx `{record.tx_hash}`",
        f"  Ethereum Block: {record.block_number} | Anchored: {record.timestamp_utc}",
    ]
    if description:
        entry_lines.append(f"  **{description}**")
    entry_lines.append("")
    with ANCHORS_FILE.open("a", encoding="utf-8") as f:
        f.write("\n".join(entry_lines) + "\n")

    print(f"  Tx:             {record.tx_hash}")
    print(f"  Eth Block:      {record.block_number}")
    print(f"  Logged:         {ANCHORS_FILE}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))

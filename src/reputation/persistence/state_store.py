"""State store — JSON snapshot of the whole ledger.

The snapshot is written after every accepted transition and read back on
service construction. Writes go to a temporary sibling file first and are
then renamed over the target, so a crash mid-write leaves the previous
snapshot intact.

Record layout (all keys are JSON-friendly; tuple keys are flattened into
the record body):
    {
      "protocol": {"paused": bool, "proposal_counter": int, "total_staked": int},
      "block_height": int,
      "identities": [...], "action_configs": [...], "daily_counters": [...],
      "attestations": [...], "proposals": [...], "votes": [...]
    }
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

from reputation.models.action import ActionConfig
from reputation.models.attestation import Attestation, AttestationType
from reputation.models.governance import Proposal, ProposalActionType, Vote
from reputation.models.identity import Identity, VerificationLevel
from reputation.models.protocol import ProtocolState
from reputation.storage.ledger import Ledger


def ledger_to_records(ledger: Ledger) -> dict[str, Any]:
    """Serialise every store. Lists are sorted by key for stable output."""
    return {
        "protocol": {
            "paused": ledger.protocol.paused,
            "proposal_counter": ledger.protocol.proposal_counter,
            "total_staked": ledger.protocol.total_staked,
        },
        "identities": [
            {**asdict(identity), "verification_level": int(identity.verification_level)}
            for _, identity in sorted(ledger.identities.items())
        ],
        "action_configs": [
            asdict(config) for _, config in sorted(ledger.action_configs.items())
        ],
        "daily_counters": [
            {"account": account, "day": day, "action_type": action_type, "count": count}
            for (account, day, action_type), count in sorted(ledger.daily_counters.items())
        ],
        "attestations": [
            {**asdict(att), "attestation_type": att.attestation_type.value}
            for _, att in sorted(ledger.attestations.items())
        ],
        "proposals": [
            {**asdict(proposal), "action_type": proposal.action_type.value}
            for _, proposal in sorted(ledger.proposals.items())
        ],
        "votes": [
            asdict(vote) for _, vote in sorted(ledger.votes.items())
        ],
    }


def ledger_from_records(data: dict[str, Any]) -> Ledger:
    """Rebuild a Ledger from ledger_to_records() output."""
    proto = data.get("protocol", {})
    ledger = Ledger(ProtocolState(
        paused=bool(proto.get("paused", False)),
        proposal_counter=int(proto.get("proposal_counter", 0)),
        total_staked=int(proto.get("total_staked", 0)),
    ))

    for rec in data.get("identities", []):
        identity = Identity(**{
            **rec, "verification_level": VerificationLevel(rec["verification_level"]),
        })
        ledger.identities.put(identity.account, identity)

    for rec in data.get("action_configs", []):
        config = ActionConfig(**rec)
        ledger.action_configs.put(config.action_type, config)

    for rec in data.get("daily_counters", []):
        ledger.daily_counters.put(
            (rec["account"], int(rec["day"]), rec["action_type"]), int(rec["count"]),
        )

    for rec in data.get("attestations", []):
        att = Attestation(**{
            **rec, "attestation_type": AttestationType(rec["attestation_type"]),
        })
        ledger.attestations.put((att.attester, att.target), att)

    for rec in data.get("proposals", []):
        proposal = Proposal(**{
            **rec, "action_type": ProposalActionType(rec["action_type"]),
        })
        ledger.proposals.put(proposal.proposal_id, proposal)

    for rec in data.get("votes", []):
        vote = Vote(**rec)
        ledger.votes.put((vote.proposal_id, vote.voter), vote)

    return ledger


class StateStore:
    """File-backed ledger snapshots."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = Path(storage_path)

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def exists(self) -> bool:
        return self._storage_path.exists()

    def save(self, ledger: Ledger, block_height: int) -> None:
        """Write a snapshot. Raises OSError on failure."""
        records = ledger_to_records(ledger)
        records["block_height"] = block_height
        tmp = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        tmp.write_text(json.dumps(records, sort_keys=True, indent=2), encoding="utf-8")
        tmp.replace(self._storage_path)

    def load(self) -> tuple[Optional[Ledger], int]:
        """Return (ledger, block_height); (None, 0) if no snapshot exists."""
        if not self._storage_path.exists():
            return None, 0
        data = json.loads(self._storage_path.read_text(encoding="utf-8"))
        return ledger_from_records(data), int(data.get("block_height", 0))

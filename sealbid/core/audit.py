"""
Audit Journal - append-only, hash-chained log of accepted operations.

Every mutating engine call appends one event inside its own transaction,
so the journal and the records it describes commit or roll back together.

Chaining:
    entry_hash = SHA-256(prev_hash || canonical_json(body))

where body = {seq, rfp_id, kind, actor, block, payload} and the first
event's prev_hash is 32 zero bytes. Rewriting or dropping any event breaks
every later entry_hash, which verify() detects.
"""

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from sealbid.crypto import HASH_SIZE, sha256
from sealbid.core.storage.record_store import RecordStore
from sealbid.utils.logger import get_logger

logger = get_logger("audit")

AUDIT_BUCKET = "audit"
AUDIT_COUNTER = "audit"
GENESIS_HASH = bytes(HASH_SIZE)


@dataclass
class AuditEvent:
    seq: int
    rfp_id: Optional[int]
    kind: str
    actor: str
    block: int
    payload: Dict[str, Any]
    prev_hash: str
    entry_hash: str

    def body(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "rfp_id": self.rfp_id,
            "kind": self.kind,
            "actor": self.actor,
            "block": self.block,
            "payload": self.payload,
        }


def compute_entry_hash(prev_hash: bytes, body: Dict[str, Any]) -> bytes:
    encoded = json.dumps(body, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return sha256(prev_hash + encoded)


def _event_key(seq: int) -> str:
    return f"{seq:020d}"


class AuditJournal:
    """Hash-chained journal stored alongside the engine records."""

    def __init__(self, store: RecordStore):
        self.store = store

    def append(
        self,
        rfp_id: Optional[int],
        kind: str,
        actor: str,
        block: int,
        payload: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """Append an event; must run inside the operation's transaction."""
        with self.store.transaction():
            seq = self.store.next_id(AUDIT_COUNTER)
            prev_hash = self._head_hash(seq)
            event = AuditEvent(
                seq=seq,
                rfp_id=rfp_id,
                kind=kind,
                actor=actor,
                block=block,
                payload=payload or {},
                prev_hash=prev_hash.hex(),
                entry_hash="",
            )
            event.entry_hash = compute_entry_hash(prev_hash, event.body()).hex()
            self.store.put(AUDIT_BUCKET, _event_key(seq), asdict(event))

        logger.debug(f"Audit #{seq} {kind} rfp={rfp_id} actor={actor} block={block}")
        return event

    def events(self, rfp_id: Optional[int] = None) -> List[AuditEvent]:
        """Events in append order, optionally restricted to one RFP."""
        events = [AuditEvent(**data) for _, data in self.store.items(AUDIT_BUCKET)]
        if rfp_id is not None:
            events = [e for e in events if e.rfp_id == rfp_id]
        return events

    def verify(self) -> Tuple[bool, str]:
        """
        Recompute the whole chain.

        Returns:
            (is_valid, error_message)
        """
        prev_hash = GENESIS_HASH
        for expected_seq, event in enumerate(self.events(), start=1):
            if event.seq != expected_seq:
                return False, f"Sequence gap: expected {expected_seq}, found {event.seq}"
            if event.prev_hash != prev_hash.hex():
                return False, f"Event {event.seq} does not link to its predecessor"
            recomputed = compute_entry_hash(prev_hash, event.body())
            if recomputed.hex() != event.entry_hash:
                return False, f"Event {event.seq} hash mismatch"
            prev_hash = recomputed
        return True, ""

    def _head_hash(self, seq: int) -> bytes:
        if seq == 1:
            return GENESIS_HASH
        previous = self.store.get(AUDIT_BUCKET, _event_key(seq - 1))
        return bytes.fromhex(previous["entry_hash"])

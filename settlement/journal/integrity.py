"""
Hash chain integrity for the settlement journal.

Each record carries the hash of the previous record, so rewriting any past
event changes every hash after it.
"""

import hashlib
from typing import Any, Dict, Iterable

from ..core.canonical import canonical_json_bytes
from ..core.errors import IntegrityError
from ..core.events import Event

ZERO_HASH = "0" * 64


def event_to_dict(event: Event) -> Dict[str, Any]:
    return {
        "type": event.type,
        "aggregate_id": event.aggregate_id,
        "seq": event.seq,
        "ts": event.ts,
        "payload": event.payload,
    }


def event_from_dict(data: Dict[str, Any]) -> Event:
    return Event(
        type=data["type"],
        aggregate_id=data["aggregate_id"],
        ts=data["ts"],
        payload=data.get("payload", {}),
        seq=data.get("seq"),
    )


def hash_event(prev_hash: str, event: Event) -> str:
    """
    Hash of event chained to previous hash.

    Hash input: prev_hash + canonical_json(event_data)

    Returns:
        SHA-256 hash as hex string
    """
    b = prev_hash.encode("utf-8") + canonical_json_bytes(event_to_dict(event))
    return hashlib.sha256(b).hexdigest()


def chain_record(prev_hash: str, event: Event) -> Dict[str, Any]:
    """
    Record ready for storage: prev_hash, event_hash and the event itself.
    """
    return {
        "prev_hash": prev_hash,
        "event_hash": hash_event(prev_hash, event),
        "event": event_to_dict(event),
    }


def verify_chain(records: Iterable[Dict[str, Any]]) -> int:
    """
    Check every link of a sequence of chain records.

    Returns:
        Number of verified records

    Raises:
        IntegrityError: At the first broken link, naming its position
    """
    prev = ZERO_HASH
    count = 0
    for i, rec in enumerate(records):
        if rec.get("prev_hash") != prev:
            raise IntegrityError(f"record {i}: prev_hash does not match previous event_hash")
        try:
            event = event_from_dict(rec["event"])
        except (KeyError, TypeError) as ex:
            raise IntegrityError(f"record {i}: malformed event") from ex
        if event.seq != i:
            raise IntegrityError(f"record {i}: unexpected seq {event.seq}")
        if hash_event(prev, event) != rec.get("event_hash"):
            raise IntegrityError(f"record {i}: event_hash mismatch")
        prev = rec["event_hash"]
        count += 1
    return count

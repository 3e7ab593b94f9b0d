"""
Settlement journal: hash-chained record of every applied mutation.

- EventStore: abstract interface
- MemoryEventStore: in-process journal
- FileEventStore: append-only JSONL journal
- Integrity: hash chain construction and verification
"""

from .file_store import FileEventStore
from .integrity import ZERO_HASH, chain_record, hash_event, verify_chain
from .store import AppendResult, EventStore, MemoryEventStore

__all__ = [
    "EventStore",
    "AppendResult",
    "MemoryEventStore",
    "FileEventStore",
    "ZERO_HASH",
    "hash_event",
    "chain_record",
    "verify_chain",
]

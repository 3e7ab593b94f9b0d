"""
Core settlement primitives.

- Errors: taxonomy shared by every component
- Canonical: deterministic serialization
- Clock: injected time source
- Hashing: node, leaf and address derivation
- KeyedLocks: per-key operation ordering
- SettlementConfig: fixed challenge periods and tree depth
"""

from .canonical import canonicalize, canonical_json_bytes, canonical_json_str, strict_json_loads
from .clock import Clock, DeterministicClock, SystemClock
from .config import SettlementConfig
from .errors import (
    AbsentError,
    AlreadyBuiltError,
    DuplicateEntryError,
    EventStoreError,
    IntegrityError,
    InvalidEncodingError,
    InvalidTransactionError,
    PreconditionFailedError,
    SettlementError,
)
from .events import Event
from .hashing import address_from_public_key, hash_pair, sha256, uint_to_bytes32
from .locks import KeyedLocks, asset_key, checkpoint_key

__all__ = [
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_str",
    "strict_json_loads",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "SettlementConfig",
    "AbsentError",
    "AlreadyBuiltError",
    "DuplicateEntryError",
    "EventStoreError",
    "IntegrityError",
    "InvalidEncodingError",
    "InvalidTransactionError",
    "PreconditionFailedError",
    "SettlementError",
    "Event",
    "address_from_public_key",
    "hash_pair",
    "sha256",
    "uint_to_bytes32",
    "KeyedLocks",
    "asset_key",
    "checkpoint_key",
]

"""
Per-key serialization for state machine operations.

Every mutating operation on an asset or checkpoint takes the lock for its
key, so operations on the same key are totally ordered while different keys
proceed independently.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterator


@dataclass
class _KeyLock:
    lock: Any = field(default_factory=threading.RLock)
    users: int = 0


class KeyedLocks:
    """
    Registry of re-entrant locks, one per key in use.

    A key's lock exists only while some thread holds or waits for it, so the
    registry stays as small as the number of keys under contention.

    Usage:
        locks = KeyedLocks()
        with locks.hold(("asset", 7)):
            ...
    """

    def __init__(self) -> None:
        self._locks: Dict[Hashable, _KeyLock] = {}
        self._registry_lock = threading.Lock()

    def _acquire_entry(self, key: Hashable) -> _KeyLock:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = _KeyLock()
                self._locks[key] = entry
            entry.users += 1
            return entry

    def _release_entry(self, key: Hashable, entry: _KeyLock) -> None:
        with self._registry_lock:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        entry = self._acquire_entry(key)
        try:
            with entry.lock:
                yield
        finally:
            self._release_entry(key, entry)

    def __len__(self) -> int:
        return len(self._locks)


def asset_key(asset_id: int) -> tuple:
    """Lock key shared by every operation touching one asset."""
    return ("asset", asset_id)


def checkpoint_key(root: bytes) -> tuple:
    return ("checkpoint", bytes(root))

"""
In-memory reference implementations of the ledger collaborators.
"""

import threading
from typing import Dict, Optional

from ..core.errors import DuplicateEntryError, PreconditionFailedError
from ..core.hashing import HASH_SIZE
from .interfaces import BlockLedger, CustodyLedger


class InMemoryBlockLedger(BlockLedger):
    """
    Append-only block root registry.

    Block numbers must strictly increase; a root, once recorded, is never
    replaced.
    """

    def __init__(self) -> None:
        self._roots: Dict[int, bytes] = {}
        self._last_block = 0
        self._lock = threading.Lock()

    def submit(self, block_number: int, root: bytes) -> None:
        """
        Record root for block_number.

        Raises:
            DuplicateEntryError: If the block number already has a root
            PreconditionFailedError: If block_number does not exceed the last
                submitted block, or root is not 32 bytes
        """
        if len(root) != HASH_SIZE:
            raise PreconditionFailedError(f"block root must be {HASH_SIZE} bytes")
        with self._lock:
            if block_number in self._roots:
                raise DuplicateEntryError(f"block {block_number} already submitted")
            if block_number <= self._last_block:
                raise PreconditionFailedError(
                    f"block {block_number} must be greater than last block {self._last_block}"
                )
            self._roots[block_number] = bytes(root)
            self._last_block = block_number

    def root_at(self, block_number: int) -> Optional[bytes]:
        return self._roots.get(block_number)

    @property
    def last_block(self) -> int:
        return self._last_block


class CustodyRecords(CustodyLedger):
    """Asset id -> registered value."""

    def __init__(self) -> None:
        self._values: Dict[int, int] = {}
        self._lock = threading.Lock()

    def register(self, asset_id: int, amount: int) -> None:
        if amount <= 0:
            raise PreconditionFailedError("custodied amount must be positive")
        with self._lock:
            if self._values.get(asset_id):
                raise DuplicateEntryError(f"asset {asset_id} already custodied")
            self._values[asset_id] = amount

    def value_of(self, asset_id: int) -> int:
        return self._values.get(asset_id, 0)

    def clear(self, asset_id: int) -> None:
        with self._lock:
            self._values.pop(asset_id, None)

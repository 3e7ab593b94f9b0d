"""
Checkpoint block: asset id -> nonce snapshot.
"""

from typing import Any, Optional

from ..core.errors import InvalidEncodingError, PreconditionFailedError
from ..core.hashing import uint_to_bytes32
from .base import SparseBlock


def nonce_leaf(nonce: int) -> bytes:
    """
    Merkle leaf of a nonce recorded in a checkpoint.

    Raises:
        PreconditionFailedError: If nonce is not a 256-bit unsigned integer
    """
    if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce < 0 or nonce.bit_length() > 256:
        raise PreconditionFailedError(f"nonce must be a 256-bit unsigned integer, got {nonce!r}")
    return uint_to_bytes32(nonce)


class CheckpointBlock(SparseBlock[int]):
    """
    Periodic summary of the latest nonce of every asset.

    Usage:
        block = CheckpointBlock()
        block.add_entry(7, 4)
        root = block.build()
        proof = block.proof(7)
    """

    def leaf_for(self, value: int) -> bytes:
        return nonce_leaf(value)

    def _check_value(self, value: Any) -> int:
        nonce_leaf(value)
        return value

    def _encode_value(self, value: int) -> Any:
        return value

    def _decode_value(self, encoded: Any) -> int:
        if isinstance(encoded, bool) or not isinstance(encoded, int):
            raise InvalidEncodingError(f"nonce must be a JSON integer, got {encoded!r}")
        return encoded

    def add_checkpoint(self, uid: int, nonce: int) -> None:
        self.add_entry(uid, nonce)

    def get_nonce(self, uid: int) -> Optional[int]:
        return self.value_of(uid)

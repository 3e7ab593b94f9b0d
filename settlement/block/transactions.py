"""
Transaction block: asset id -> raw transaction moving that asset.
"""

from typing import Any

from ..core.errors import InvalidEncodingError, PreconditionFailedError
from ..tx.codec import transaction_leaf
from .base import SparseBlock


class TransactionBlock(SparseBlock[bytes]):
    """
    Block of the primary ledger; at most one transaction per asset.

    The root of a built TransactionBlock is what the operator submits to the
    BlockLedger.
    """

    def leaf_for(self, value: bytes) -> bytes:
        return transaction_leaf(value)

    def _check_value(self, value: Any) -> bytes:
        if not isinstance(value, (bytes, bytearray)) or not value:
            raise PreconditionFailedError("transaction must be non-empty bytes")
        return bytes(value)

    def _encode_value(self, value: bytes) -> Any:
        return value.hex()

    def _decode_value(self, encoded: Any) -> bytes:
        if not isinstance(encoded, str):
            raise InvalidEncodingError("transaction must be hex encoded")
        try:
            return bytes.fromhex(encoded)
        except ValueError as ex:
            raise InvalidEncodingError(f"bad transaction hex: {ex}") from ex

    def add_transaction(self, uid: int, raw: bytes) -> None:
        self.add_entry(uid, raw)

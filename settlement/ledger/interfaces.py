"""
Interfaces of the external collaborators consumed by the settlement layer.

Implementations must guarantee:
- BlockLedger roots are write-once per block number and never rewritten
- ProofVerifier is pure (same input -> same answer)
- TransactionDecoder raises InvalidTransactionError on malformed bytes
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Transaction:
    """
    Decoded asset transaction.

    Fields:
        uid: Asset id
        amount: Custodied value the transaction moves
        nonce: Per-asset counter, strictly increasing along the custody chain
        prev_block: Block number holding the previous transaction of the asset
        signer: Address that signed the transaction (current owner)
        new_owner: Address receiving custody
        content_hash: SHA-256 of the unsigned canonical body
        raw: Exact bytes the transaction was decoded from
    """
    uid: int
    amount: int
    nonce: int
    prev_block: int
    signer: str
    new_owner: str
    content_hash: bytes
    raw: bytes


class BlockLedger(ABC):
    """Append-only, monotonically numbered sequence of block roots."""

    @abstractmethod
    def root_at(self, block_number: int) -> Optional[bytes]:
        """Return the root committed at block_number, or None if none was."""
        ...


class ProofVerifier(ABC):
    """Fixed-depth Merkle path verification."""

    @abstractmethod
    def verify(self, leaf: bytes, asset_id: int, root: Optional[bytes], proof: Optional[bytes]) -> bool:
        ...


class TransactionDecoder(ABC):
    """Turns raw transaction bytes into a Transaction."""

    @abstractmethod
    def decode(self, raw: bytes) -> Transaction:
        ...


class CustodyLedger(ABC):
    """
    Registered value per custodied asset.

    Funding and transfer accounting live elsewhere; the settlement layer only
    reads the value and clears it once an exit finalizes.
    """

    @abstractmethod
    def value_of(self, asset_id: int) -> int:
        """Registered value, 0 if the asset is not custodied."""
        ...

    @abstractmethod
    def clear(self, asset_id: int) -> None:
        ...

"""
Block builders.

- CheckpointBlock: asset id -> nonce
- TransactionBlock: asset id -> raw transaction
"""

from .base import SparseBlock
from .checkpoint import CheckpointBlock, nonce_leaf
from .transactions import TransactionBlock

__all__ = [
    "SparseBlock",
    "CheckpointBlock",
    "nonce_leaf",
    "TransactionBlock",
]

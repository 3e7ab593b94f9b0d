"""
Ledger collaborators: interfaces plus in-memory reference implementations.
"""

from .interfaces import BlockLedger, CustodyLedger, ProofVerifier, Transaction, TransactionDecoder
from .memory import CustodyRecords, InMemoryBlockLedger

__all__ = [
    "BlockLedger",
    "CustodyLedger",
    "ProofVerifier",
    "Transaction",
    "TransactionDecoder",
    "CustodyRecords",
    "InMemoryBlockLedger",
]

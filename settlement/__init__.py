"""
Plasma Settlement Layer

Checkpoint block builder, sparse Merkle proofs and the exit/dispute state
machines that let an asset owner withdraw custody against the ledger of record.
"""

__version__ = "0.1.0"

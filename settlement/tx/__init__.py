"""
Transaction signing, encoding and decoding.
"""

from .codec import TransactionCodec, encode_transaction, transaction_leaf
from .signer import SigningKey, VerifyingKey, ensure_keypair

__all__ = [
    "TransactionCodec",
    "encode_transaction",
    "transaction_leaf",
    "SigningKey",
    "VerifyingKey",
    "ensure_keypair",
]

"""
Transaction wire format.

Raw transaction bytes are the canonical JSON of:

    {
      "body": {"uid": .., "amount": .., "nonce": .., "prev_block": .., "new_owner": ".."},
      "public_key": "<hex raw ed25519 key>",
      "signature": "<hex signature over canonical body>"
    }

The signer address is derived from the public key, so a valid signature
binds the transaction to its signer.
"""

import hashlib
from typing import Any, Dict

from ..core.canonical import canonical_json_bytes, strict_json_loads
from ..core.errors import InvalidEncodingError, InvalidTransactionError
from ..ledger.interfaces import Transaction, TransactionDecoder
from .signer import SigningKey, VerifyingKey

BODY_FIELDS = ("amount", "new_owner", "nonce", "prev_block", "uid")


def _body(uid: int, amount: int, nonce: int, prev_block: int, new_owner: str) -> Dict[str, Any]:
    return {
        "uid": uid,
        "amount": amount,
        "nonce": nonce,
        "prev_block": prev_block,
        "new_owner": new_owner,
    }


def encode_transaction(
    key: SigningKey,
    uid: int,
    amount: int,
    nonce: int,
    prev_block: int,
    new_owner: str,
) -> bytes:
    """
    Build and sign a transaction moving asset uid to new_owner.

    Returns:
        Canonical raw transaction bytes
    """
    body = _body(uid, amount, nonce, prev_block, new_owner)
    return canonical_json_bytes(
        {
            "body": body,
            "public_key": key.public_key_bytes(),
            "signature": key.sign(body),
        }
    )


def transaction_leaf(raw: bytes) -> bytes:
    """Merkle leaf of a raw transaction in a transaction block."""
    return hashlib.sha256(raw).digest()


class TransactionCodec(TransactionDecoder):
    """Decodes and authenticates raw transactions."""

    def decode(self, raw: bytes) -> Transaction:
        """
        Raises:
            InvalidTransactionError: If raw is malformed or the signature does not verify
        """
        try:
            doc = strict_json_loads(raw)
        except InvalidEncodingError as ex:
            raise InvalidTransactionError(str(ex)) from ex
        if not isinstance(doc, dict) or set(doc) != {"body", "public_key", "signature"}:
            raise InvalidTransactionError("transaction must have body, public_key and signature")

        body = doc["body"]
        if not isinstance(body, dict) or tuple(sorted(body)) != BODY_FIELDS:
            raise InvalidTransactionError("transaction body has unexpected fields")
        for name in ("uid", "amount", "nonce", "prev_block"):
            value = body[name]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidTransactionError(f"{name} must be a non-negative integer")
        if not isinstance(body["new_owner"], str) or not body["new_owner"]:
            raise InvalidTransactionError("new_owner must be a non-empty string")

        try:
            public_key = bytes.fromhex(doc["public_key"])
            signature = bytes.fromhex(doc["signature"])
            verifying_key = VerifyingKey.from_raw(public_key)
        except (TypeError, ValueError) as ex:
            raise InvalidTransactionError(f"bad key material: {ex}") from ex

        if not verifying_key.verify(body, signature):
            raise InvalidTransactionError("invalid transaction signature")

        return Transaction(
            uid=body["uid"],
            amount=body["amount"],
            nonce=body["nonce"],
            prev_block=body["prev_block"],
            signer=verifying_key.address,
            new_owner=body["new_owner"],
            content_hash=hashlib.sha256(canonical_json_bytes(body)).digest(),
            raw=bytes(raw),
        )

"""
Hash and identifier helpers.

All tree nodes, transaction leaves and owner addresses are derived here so
every component agrees on byte widths.
"""

import hashlib

HASH_SIZE = 32
ZERO_HASH_BYTES = b"\x00" * HASH_SIZE


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def hash_pair(left: bytes, right: bytes) -> bytes:
    """Parent node of two 32-byte children."""
    return hashlib.sha256(left + right).digest()


def uint_to_bytes32(value: int) -> bytes:
    """
    Encode a non-negative integer as a 32-byte big-endian word.

    Raises:
        ValueError: If value is negative or does not fit in 256 bits
    """
    if value < 0:
        raise ValueError(f"negative value: {value}")
    return value.to_bytes(HASH_SIZE, "big")


def address_from_public_key(raw_public_key: bytes) -> str:
    """
    Owner address for a raw Ed25519 public key.

    Returns:
        "0x" followed by the first 20 bytes of SHA-256(public key), hex encoded

    Example:
        address_from_public_key(pub) -> "0x3fa2..."
    """
    return "0x" + hashlib.sha256(raw_public_key).hexdigest()[:40]


def short_hex(value: bytes, size: int = 8) -> str:
    """Hex prefix for logs and filenames."""
    return value.hex()[: size * 2]

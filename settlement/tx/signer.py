"""
Ed25519 keys for transaction signing.

Key management:
- Dev mode: ~/.plasma/keys/
- Tests: SigningKey.generate()
"""

import os
from pathlib import Path
from typing import Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from ..core.canonical import canonical_json_bytes
from ..core.hashing import address_from_public_key


class SigningKey:
    """
    Ed25519 signing key wrapper.

    Provides:
    - Key generation
    - PEM load/save
    - Signing over canonical payload bytes
    - Owner address derivation
    """

    def __init__(self, private_key: Ed25519PrivateKey):
        self.private_key = private_key
        self.public_key = private_key.public_key()

    @classmethod
    def generate(cls) -> "SigningKey":
        """Generate new Ed25519 keypair."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def load_from_file(cls, path: str) -> "SigningKey":
        """
        Load private key from PEM file.

        Raises:
            FileNotFoundError: If key file doesn't exist
            ValueError: If key format is invalid
        """
        with open(path, "rb") as f:
            private_key = serialization.load_pem_private_key(f.read(), password=None)

        if not isinstance(private_key, Ed25519PrivateKey):
            raise ValueError("Key file is not Ed25519 private key")

        return cls(private_key)

    def save_to_file(self, path: str, public_path: Optional[str] = None) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

        private_pem = self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        with open(path, "wb") as f:
            f.write(private_pem)

        if public_path:
            public_pem = self.public_key.public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
            with open(public_path, "wb") as f:
                f.write(public_pem)

    def public_key_bytes(self) -> bytes:
        """Raw 32-byte public key."""
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    def sign(self, payload: dict) -> bytes:
        """Sign the canonical bytes of payload."""
        return self.private_key.sign(canonical_json_bytes(payload))

    @property
    def address(self) -> str:
        return address_from_public_key(self.public_key_bytes())


class VerifyingKey:
    """
    Ed25519 verifying key (public key only).
    """

    def __init__(self, public_key: Ed25519PublicKey):
        self.public_key = public_key

    @classmethod
    def from_raw(cls, raw: bytes) -> "VerifyingKey":
        """
        Raises:
            ValueError: If raw is not a 32-byte Ed25519 public key
        """
        return cls(Ed25519PublicKey.from_public_bytes(raw))

    @classmethod
    def from_signing_key(cls, signing_key: SigningKey) -> "VerifyingKey":
        return cls(signing_key.public_key)

    def verify(self, payload: dict, signature: bytes) -> bool:
        """
        Verify signature on payload.

        Returns:
            True if signature is valid, False otherwise
        """
        try:
            self.public_key.verify(signature, canonical_json_bytes(payload))
            return True
        except InvalidSignature:
            return False

    @property
    def address(self) -> str:
        raw = self.public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        return address_from_public_key(raw)


def get_default_key_path() -> Path:
    """~/.plasma/keys/owner_ed25519"""
    return Path.home() / ".plasma" / "keys" / "owner_ed25519"


def ensure_keypair(key_path: Optional[str] = None) -> Tuple[str, str]:
    """
    Ensure keypair exists (generate if missing).

    Returns:
        (private_key_path, public_key_path) tuple
    """
    if key_path is None:
        key_path = str(get_default_key_path())

    public_key_path = key_path + ".pub"

    if not os.path.exists(key_path):
        SigningKey.generate().save_to_file(key_path, public_key_path)

    return key_path, public_key_path

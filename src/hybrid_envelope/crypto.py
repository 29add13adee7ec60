"""
Symmetric primitives shared by the envelope components.

This module provides:
- SecureKey: Session key wrapper with explicit and automatic zeroization
- EncryptedData: AEAD payload with nonce and ciphertext
- AesGcmCipher: AES-256-GCM encryption/decryption operations
- Sha256Hash: SHA-256 digest used to condition session key material
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import AuthenticationFailedError, InvalidKeyError

# Cryptographic constants
AES_256_KEY_SIZE: int = 32  # 256 bits
NONCE_SIZE: int = 12  # 96 bits (standard for AES-GCM)
TAG_SIZE: int = 16  # 128 bits (authentication tag)


class SecureKey:
    """
    Secure key wrapper with memory cleanup.

    Uses bytearray internally so the material can be zeroed in place, either
    explicitly via zeroize() / the context manager, or on deletion.
    Python's garbage collector doesn't guarantee immediate cleanup,
    so deletion-time zeroization is best-effort.
    """

    __slots__ = ("_bytes",)

    def __init__(self, key_bytes: bytes | bytearray) -> None:
        """
        Create a SecureKey from raw bytes.

        Args:
            key_bytes: Raw key material
        """
        if not isinstance(key_bytes, (bytes, bytearray)):
            raise InvalidKeyError("Key must be bytes or bytearray")
        self._bytes = bytearray(key_bytes)

    def as_bytes(self) -> bytes:
        """Return key as immutable bytes."""
        return bytes(self._bytes)

    def zeroize(self) -> None:
        """Overwrite the key material with zeros."""
        for i in range(len(self._bytes)):
            self._bytes[i] = 0

    def __len__(self) -> int:
        return len(self._bytes)

    def __repr__(self) -> str:
        """Redacted representation to prevent accidental key disclosure."""
        return "SecureKey([REDACTED])"

    def __enter__(self) -> SecureKey:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.zeroize()

    def __del__(self) -> None:
        if hasattr(self, "_bytes"):
            self.zeroize()


@dataclass(frozen=True)
class EncryptedData:
    """
    Encrypted data container with nonce and ciphertext.

    The ciphertext includes the 16-byte authentication tag appended by AESGCM.
    """

    nonce: bytes  # 12 bytes
    ciphertext: bytes  # Ciphertext + 16-byte auth tag

    def to_aead_blob(self) -> bytes:
        """Convert to AEAD blob format: nonce || ciphertext || tag."""
        return self.nonce + self.ciphertext

    @classmethod
    def from_aead_blob(cls, blob: bytes) -> EncryptedData:
        """
        Parse from AEAD blob format: nonce || ciphertext || tag.

        Args:
            blob: Raw AEAD blob bytes

        Returns:
            EncryptedData instance

        Raises:
            AuthenticationFailedError: If blob is too small to hold a nonce and tag
        """
        min_size = NONCE_SIZE + TAG_SIZE
        if len(blob) < min_size:
            raise AuthenticationFailedError(
                f"AEAD blob too small: expected at least {min_size} bytes, got {len(blob)}"
            )
        return cls(nonce=blob[:NONCE_SIZE], ciphertext=blob[NONCE_SIZE:])


class AesGcmCipher:
    """
    AES-256-GCM authenticated encryption.

    Provides static methods for encryption and decryption with optional
    Additional Authenticated Data (AAD) for binding.
    """

    @staticmethod
    def encrypt(
        key: SecureKey | bytes,
        plaintext: bytes,
        aad: Optional[bytes] = None,
    ) -> EncryptedData:
        """
        Encrypt plaintext with AES-256-GCM.

        Args:
            key: 32-byte encryption key
            plaintext: Data to encrypt
            aad: Optional Additional Authenticated Data for binding

        Returns:
            EncryptedData with nonce and ciphertext (includes auth tag)

        Raises:
            InvalidKeyError: If key size is invalid
        """
        aesgcm = AESGCM(_key_bytes(key))
        nonce = os.urandom(NONCE_SIZE)
        return EncryptedData(nonce=nonce, ciphertext=aesgcm.encrypt(nonce, plaintext, aad))

    @staticmethod
    def decrypt(
        key: SecureKey | bytes,
        encrypted: EncryptedData,
        aad: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt ciphertext with AES-256-GCM.

        Args:
            key: 32-byte decryption key
            encrypted: EncryptedData with nonce and ciphertext
            aad: Optional Additional Authenticated Data (must match encryption)

        Returns:
            Decrypted plaintext bytes

        Raises:
            InvalidKeyError: If key size is invalid
            AuthenticationFailedError: If the tag does not verify
        """
        aesgcm = AESGCM(_key_bytes(key))

        if len(encrypted.nonce) != NONCE_SIZE:
            raise AuthenticationFailedError(
                f"Invalid nonce size: expected {NONCE_SIZE}, got {len(encrypted.nonce)}"
            )

        try:
            return aesgcm.decrypt(encrypted.nonce, encrypted.ciphertext, aad)
        except InvalidTag:
            # Generic error to prevent oracle attacks
            raise AuthenticationFailedError("Decryption failed") from None


class Sha256Hash:
    """SHA-256 digest."""

    @property
    def digest_size(self) -> int:
        return hashes.SHA256.digest_size

    def digest(self, data: bytes) -> bytes:
        h = hashes.Hash(hashes.SHA256())
        h.update(data)
        return h.finalize()


def _key_bytes(key: SecureKey | bytes) -> bytes:
    if len(key) != AES_256_KEY_SIZE:
        raise InvalidKeyError(
            f"Invalid key size: expected {AES_256_KEY_SIZE}, got {len(key)}"
        )
    return key.as_bytes() if isinstance(key, SecureKey) else bytes(key)


def generate_random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Number of bytes to generate

    Returns:
        Random bytes of specified length
    """
    return os.urandom(length)

"""
Authenticated payload ciphers.

Both ciphers frame their output the same way:

    [2-byte big-endian context length][context][cipher body]

Everything ahead of the AEAD blob is passed as associated data, so the
context (the wrapped session key) cannot be altered or swapped without the
tag failing. The context is carried in the clear so open() can check it
against what the caller supplied.
"""

from __future__ import annotations

import hmac
import struct
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .crypto import AES_256_KEY_SIZE, AesGcmCipher, EncryptedData, SecureKey, generate_random_bytes
from .errors import AuthenticationFailedError, InvalidInputError

_CONTEXT_LEN = struct.Struct(">H")
MAX_CONTEXT_SIZE: int = 0xFFFF

SALT_SIZE: int = 16
DEFAULT_PBKDF2_ITERATIONS: int = 100_000
MIN_PBKDF2_ITERATIONS: int = 10_000


def _split_context(ciphertext: bytes) -> Tuple[bytes, bytes, bytes]:
    """Return (header, context, body); header includes the context."""
    if len(ciphertext) < _CONTEXT_LEN.size:
        raise AuthenticationFailedError("Ciphertext truncated")
    (length,) = _CONTEXT_LEN.unpack_from(ciphertext)
    end = _CONTEXT_LEN.size + length
    if len(ciphertext) < end:
        raise AuthenticationFailedError("Ciphertext truncated")
    return ciphertext[:end], ciphertext[_CONTEXT_LEN.size:end], ciphertext[end:]


class _ContextBoundCipher(ABC):
    """Shared framing for the payload ciphers."""

    @abstractmethod
    def _seal_body(self, plaintext: bytes, key: SecureKey, aad: bytes) -> bytes:
        """Encrypt plaintext, authenticating aad; return the cipher body."""
        pass

    @abstractmethod
    def _open_body(self, body: bytes, key: SecureKey, aad: bytes) -> bytes:
        """Verify and decrypt a cipher body."""
        pass

    def seal(self, plaintext: bytes, key: SecureKey, context: bytes) -> bytes:
        """
        Encrypt plaintext and bind context into the authentication tag.

        Args:
            plaintext: Data to encrypt
            key: Session key
            context: Associated data carried alongside the ciphertext

        Returns:
            Framed ciphertext

        Raises:
            InvalidInputError: If context exceeds 65535 bytes
        """
        if len(context) > MAX_CONTEXT_SIZE:
            raise InvalidInputError(f"Context too large: {len(context)} bytes")
        header = _CONTEXT_LEN.pack(len(context)) + bytes(context)
        return header + self._seal_body(bytes(plaintext), key, header)

    def open(
        self,
        ciphertext: bytes,
        key: SecureKey,
        expected_context: Optional[bytes] = None,
    ) -> bytes:
        """
        Verify and decrypt a framed ciphertext.

        Args:
            ciphertext: Output of seal()
            key: Session key
            expected_context: If given, the bound context must equal it

        Returns:
            Plaintext

        Raises:
            AuthenticationFailedError: If the ciphertext is malformed, the tag
                does not verify, or the context differs from expected_context
        """
        header, context, body = _split_context(bytes(ciphertext))
        if expected_context is not None and not hmac.compare_digest(
            context, bytes(expected_context)
        ):
            raise AuthenticationFailedError("Decryption failed")
        return self._open_body(body, key, header)

    @staticmethod
    def context_of(ciphertext: bytes) -> bytes:
        """Return the context bound into ciphertext, without verifying it."""
        return _split_context(bytes(ciphertext))[1]


class AesGcmPayloadCipher(_ContextBoundCipher):
    """AES-256-GCM keyed directly by the 32-byte session key."""

    def _seal_body(self, plaintext: bytes, key: SecureKey, aad: bytes) -> bytes:
        return AesGcmCipher.encrypt(key, plaintext, aad).to_aead_blob()

    def _open_body(self, body: bytes, key: SecureKey, aad: bytes) -> bytes:
        return AesGcmCipher.decrypt(key, EncryptedData.from_aead_blob(body), aad)


class PasswordPayloadCipher(_ContextBoundCipher):
    """
    AES-256-GCM under a PBKDF2-HMAC-SHA256 key derived from the session key.

    Treats the session key as a password, the way the key is handled when it
    is exchanged as text. Body layout: salt(16) || nonce(12) || ciphertext || tag(16).
    """

    def __init__(self, iterations: int = DEFAULT_PBKDF2_ITERATIONS) -> None:
        if iterations < MIN_PBKDF2_ITERATIONS:
            raise InvalidInputError(
                f"PBKDF2 iterations must be at least {MIN_PBKDF2_ITERATIONS}, got {iterations}"
            )
        self._iterations = iterations

    @property
    def iterations(self) -> int:
        return self._iterations

    def _derive(self, password: SecureKey, salt: bytes) -> SecureKey:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=AES_256_KEY_SIZE,
            salt=salt,
            iterations=self._iterations,
        )
        return SecureKey(kdf.derive(password.as_bytes()))

    def _seal_body(self, plaintext: bytes, key: SecureKey, aad: bytes) -> bytes:
        salt = generate_random_bytes(SALT_SIZE)
        with self._derive(key, salt) as derived:
            return salt + AesGcmCipher.encrypt(derived, plaintext, aad + salt).to_aead_blob()

    def _open_body(self, body: bytes, key: SecureKey, aad: bytes) -> bytes:
        if len(body) < SALT_SIZE:
            raise AuthenticationFailedError("Ciphertext truncated")
        salt, blob = body[:SALT_SIZE], body[SALT_SIZE:]
        encrypted = EncryptedData.from_aead_blob(blob)
        with self._derive(key, salt) as derived:
            return AesGcmCipher.decrypt(derived, encrypted, aad + salt)

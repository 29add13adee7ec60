"""
RSA-OAEP key wrapping for session keys.

Keys travel as opaque text: Base64 of DER (SubjectPublicKeyInfo for the
public half, unencrypted PKCS#8 for the private half). The wrapper is the only
code that parses them.

The transform only accepts short inputs: with OAEP over SHA-256 a k-byte
modulus wraps at most k - 2*32 - 2 bytes.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .errors import (
    DecryptionFailedError,
    InvalidInputError,
    InvalidKeyError,
    KeyGenerationError,
)

logger = logging.getLogger(__name__)

PUBLIC_EXPONENT: int = 65537
DEFAULT_RSA_KEY_SIZE: int = 2048
MIN_RSA_KEY_SIZE: int = 1024


@dataclass(frozen=True)
class KeyPair:
    """Base64-encoded RSA key pair. Only ``public_key`` is meant to be shared."""

    public_key: str
    private_key: str = field(repr=False)


class RsaKeyWrapper:
    """RSA-OAEP (SHA-256) wrap/unwrap of session key material."""

    def __init__(self, key_size: int = DEFAULT_RSA_KEY_SIZE) -> None:
        if key_size < MIN_RSA_KEY_SIZE:
            raise InvalidInputError(
                f"RSA key size must be at least {MIN_RSA_KEY_SIZE} bits, got {key_size}"
            )
        self._key_size = key_size

    @property
    def key_size(self) -> int:
        return self._key_size

    def generate(self) -> KeyPair:
        """
        Generate a fresh RSA key pair.

        Returns:
            KeyPair with Base64 DER encoded halves

        Raises:
            KeyGenerationError: If the backend cannot produce a key
        """
        try:
            private_key = rsa.generate_private_key(
                public_exponent=PUBLIC_EXPONENT,
                key_size=self._key_size,
            )
        except (ValueError, UnsupportedAlgorithm, OSError) as e:
            raise KeyGenerationError(f"RSA key generation failed: {e}") from e

        public_der = private_key.public_key().public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        private_der = private_key.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
        logger.info(f"Generated RSA-{self._key_size} key pair")
        return KeyPair(
            public_key=base64.standard_b64encode(public_der).decode("ascii"),
            private_key=base64.standard_b64encode(private_der).decode("ascii"),
        )

    def max_input_size(self, public_key: str) -> int:
        """Largest number of bytes ``public_key`` can wrap."""
        return _max_oaep_input(_load_public_key(public_key))

    def wrap(self, public_key: str, material: bytes) -> bytes:
        """
        Encrypt session key material under a recipient's public key.

        Args:
            public_key: Recipient's Base64 DER public key
            material: Session key bytes

        Returns:
            Wrapped session key

        Raises:
            InvalidKeyError: If the public key is empty or malformed
            InvalidInputError: If material is empty or too large for the key
        """
        key = _load_public_key(public_key)
        limit = _max_oaep_input(key)
        if not material:
            raise InvalidInputError("Session key material required")
        if len(material) > limit:
            raise InvalidInputError(
                f"Session key material too large: {len(material)} bytes, "
                f"RSA-{key.key_size} OAEP accepts at most {limit}"
            )

        wrapped = key.encrypt(bytes(material), _oaep())
        logger.debug(f"Wrapped {len(material)}B session key -> {len(wrapped)}B")
        return wrapped

    def unwrap(
        self,
        private_key: str,
        wrapped: bytes,
        expected_size: Optional[int] = None,
    ) -> bytes:
        """
        Recover session key material with the matching private key.

        Args:
            private_key: Own Base64 DER private key
            wrapped: Wrapped session key
            expected_size: Reject material of any other length

        Returns:
            Session key bytes

        Raises:
            InvalidKeyError: If the private key is empty or malformed
            DecryptionFailedError: If the wrapped key does not decrypt under
                this key or has the wrong length
        """
        key = _load_private_key(private_key)
        if not wrapped:
            raise DecryptionFailedError("Session key unwrap failed")

        try:
            material = key.decrypt(bytes(wrapped), _oaep())
        except ValueError:
            # Generic error so a wrong key and corrupted bytes look alike
            raise DecryptionFailedError("Session key unwrap failed") from None

        if expected_size is not None and len(material) != expected_size:
            raise DecryptionFailedError("Session key unwrap failed")
        return material


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def _max_oaep_input(key: rsa.RSAPublicKey) -> int:
    return key.key_size // 8 - 2 * hashes.SHA256.digest_size - 2


def _decode_key(blob: str, name: str) -> bytes:
    if not blob or not blob.strip():
        raise InvalidKeyError(f"{name} required")
    try:
        return base64.b64decode(blob, validate=True)
    except ValueError as e:
        raise InvalidKeyError(f"{name} is not valid Base64") from e


def _load_public_key(blob: str) -> rsa.RSAPublicKey:
    der = _decode_key(blob, "Public key")
    try:
        key = serialization.load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError("Public key is malformed") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise InvalidKeyError(f"Public key is not RSA: {type(key).__name__}")
    return key


def _load_private_key(blob: str) -> rsa.RSAPrivateKey:
    der = _decode_key(blob, "Private key")
    try:
        key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError("Private key is malformed") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidKeyError(f"Private key is not RSA: {type(key).__name__}")
    return key

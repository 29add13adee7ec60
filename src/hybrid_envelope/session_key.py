"""
Session key generation.

A session key is the hash of a large buffer of secure random bytes. Its
length is the digest size of the hash: 32 bytes for SHA-256, matching AES-256.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from .crypto import SecureKey, Sha256Hash
from .errors import CryptoError, InvalidInputError, RandomSourceUnavailableError
from .interfaces import HashFunction, RandomSource

logger = logging.getLogger(__name__)

MIN_ENTROPY_SIZE: int = 256
DEFAULT_ENTROPY_SIZE: int = 256


class SystemRandomSource:
    """Operating system CSPRNG (``os.urandom``)."""

    def fill(self, buffer: bytearray) -> None:
        try:
            buffer[:] = os.urandom(len(buffer))
        except (OSError, NotImplementedError) as e:
            raise RandomSourceUnavailableError(f"System random source unavailable: {e}") from e


class SessionKeyGenerator:
    """
    Produces one fresh session key per call.

    The random source is only touched inside generate(); the raw entropy buffer
    is local to that call and zeroed before it returns.
    """

    def __init__(
        self,
        random_source: Optional[RandomSource] = None,
        hash_function: Optional[HashFunction] = None,
        entropy_size: int = DEFAULT_ENTROPY_SIZE,
    ) -> None:
        """
        Args:
            random_source: Secure random source (defaults to the OS CSPRNG)
            hash_function: Conditioning hash (defaults to SHA-256)
            entropy_size: Bytes of raw entropy drawn per key, at least 256
        """
        if entropy_size < MIN_ENTROPY_SIZE:
            raise InvalidInputError(
                f"Entropy size must be at least {MIN_ENTROPY_SIZE} bytes, got {entropy_size}"
            )
        self._random = random_source if random_source is not None else SystemRandomSource()
        self._hash = hash_function if hash_function is not None else Sha256Hash()
        self._entropy_size = entropy_size

    @property
    def key_size(self) -> int:
        """Length in bytes of every generated key."""
        return self._hash.digest_size

    def generate(self) -> SecureKey:
        """
        Generate session key material.

        Returns:
            SecureKey of key_size bytes

        Raises:
            RandomSourceUnavailableError: If the random source fails or
                under-fills the buffer
        """
        buffer = bytearray(self._entropy_size)
        try:
            try:
                self._random.fill(buffer)
            except RandomSourceUnavailableError:
                raise
            except Exception as e:
                raise RandomSourceUnavailableError(f"Random source unavailable: {e}") from e

            if len(buffer) != self._entropy_size:
                raise RandomSourceUnavailableError(
                    f"Random source returned {len(buffer)} bytes, expected {self._entropy_size}"
                )

            material = self._hash.digest(bytes(buffer))
        finally:
            for i in range(len(buffer)):
                buffer[i] = 0

        if len(material) != self.key_size:
            raise CryptoError(
                f"Hash produced {len(material)} bytes, expected {self.key_size}"
            )
        logger.debug(f"Generated {len(material)}B session key from {self._entropy_size}B entropy")
        return SecureKey(material)

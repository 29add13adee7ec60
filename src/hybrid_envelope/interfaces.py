"""
Capability interfaces for the primitives the envelope protocol composes.

The envelope never talks to a cryptographic backend directly; it is handed
objects satisfying these protocols.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .asymmetric import KeyPair
from .crypto import SecureKey


@runtime_checkable
class RandomSource(Protocol):
    """Source of cryptographically secure random bytes."""

    def fill(self, buffer: bytearray) -> None:
        """Fill ``buffer`` completely with random bytes."""
        ...


@runtime_checkable
class HashFunction(Protocol):
    """One-way hash producing a fixed-length digest."""

    @property
    def digest_size(self) -> int: ...

    def digest(self, data: bytes) -> bytes: ...


@runtime_checkable
class KeyWrapper(Protocol):
    """Asymmetric transform used to wrap and unwrap session keys."""

    def generate(self) -> KeyPair: ...

    def wrap(self, public_key: str, material: bytes) -> bytes: ...

    def unwrap(
        self,
        private_key: str,
        wrapped: bytes,
        expected_size: Optional[int] = None,
    ) -> bytes: ...


@runtime_checkable
class PayloadCipher(Protocol):
    """Authenticated symmetric cipher binding an associated context."""

    def seal(self, plaintext: bytes, key: SecureKey, context: bytes) -> bytes: ...

    def open(
        self,
        ciphertext: bytes,
        key: SecureKey,
        expected_context: Optional[bytes] = None,
    ) -> bytes: ...

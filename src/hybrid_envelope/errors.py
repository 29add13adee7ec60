"""
Exception classes for hybrid envelope operations.

Every failure raised by the library derives from EnvelopeError. Cryptographic
failures share the CryptoError branch so callers can catch them as a group.
"""

from __future__ import annotations


class EnvelopeError(Exception):
    """Base exception for all envelope operations."""

    pass


class InvalidArgumentError(EnvelopeError, ValueError):
    """Caller supplied an empty or missing plaintext, key, or ciphertext."""

    pass


class InvalidInputError(InvalidArgumentError):
    """Input to a primitive is empty or too large for it."""

    pass


class CryptoError(EnvelopeError):
    """Cryptographic operation failed."""

    pass


class InvalidKeyError(CryptoError):
    """Key blob is malformed or of the wrong type for the operation."""

    pass


class DecryptionFailedError(CryptoError):
    """Wrapped session key could not be unwrapped."""

    pass


class AuthenticationFailedError(CryptoError):
    """Payload failed integrity verification."""

    pass


class RandomSourceUnavailableError(CryptoError):
    """Secure random source could not supply entropy."""

    pass


class KeyGenerationError(CryptoError):
    """Key pair generation failed."""

    pass


class SerializationError(EnvelopeError):
    """Serialization or deserialization error."""

    pass


class ConfigError(EnvelopeError):
    """Configuration error."""

    pass

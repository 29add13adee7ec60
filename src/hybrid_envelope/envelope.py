"""
Hybrid envelope encryption service.

This module provides:
- Envelope: One party's identity plus the encrypt/decrypt protocol
- SealedMessage: Ciphertext bound to its wrapped session key
- EnvelopeState: Protocol states

Protocol:
- Encrypt: fresh session key -> wrap under recipient public key -> seal
  plaintext under session key with the wrapped key as associated data
- Decrypt: unwrap session key with own private key -> open ciphertext,
  checking the bound wrapped key matches the one supplied

Each call keeps its session key and intermediate state local, so an Envelope
can be shared between threads. Only the last completed state is recorded on
the instance.
"""

from __future__ import annotations

import base64
import binascii
import logging
import struct
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .asymmetric import KeyPair
from .config import EnvelopeConfig
from .crypto import SecureKey
from .errors import InvalidArgumentError, SerializationError
from .interfaces import KeyWrapper, PayloadCipher
from .session_key import SessionKeyGenerator

logger = logging.getLogger(__name__)

_WRAPPED_LEN = struct.Struct(">I")


# =============================================================================
# Protocol State
# =============================================================================


class EnvelopeState(Enum):
    """Envelope protocol states."""

    IDLE = "IDLE"
    ENCRYPT_REQUESTED = "ENCRYPT_REQUESTED"
    ENCRYPTED = "ENCRYPTED"
    DECRYPT_REQUESTED = "DECRYPT_REQUESTED"
    DECRYPTED = "DECRYPTED"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Sealed Message
# =============================================================================


@dataclass(frozen=True)
class SealedMessage:
    """
    Result of Envelope.encrypt.

    Both fields are required to decrypt; the wrapped key cannot be recovered
    from the ciphertext by the recipient's private key alone.

    Wire format: [4-byte wrapped key length][wrapped session key][ciphertext]
    """

    ciphertext: bytes
    wrapped_session_key: bytes

    def to_bytes(self) -> bytes:
        """Serialize to the length-prefixed wire format."""
        return (
            _WRAPPED_LEN.pack(len(self.wrapped_session_key))
            + self.wrapped_session_key
            + self.ciphertext
        )

    @classmethod
    def from_bytes(cls, blob: bytes) -> SealedMessage:
        """
        Parse the length-prefixed wire format.

        Args:
            blob: Output of to_bytes()

        Returns:
            SealedMessage instance

        Raises:
            SerializationError: If the blob is truncated or either part is empty
        """
        if len(blob) < _WRAPPED_LEN.size:
            raise SerializationError("Sealed message too short")
        (key_len,) = _WRAPPED_LEN.unpack_from(blob)
        end = _WRAPPED_LEN.size + key_len
        if key_len == 0 or len(blob) <= end:
            raise SerializationError(
                f"Sealed message malformed: wrapped key length {key_len}, total {len(blob)} bytes"
            )
        return cls(ciphertext=bytes(blob[end:]), wrapped_session_key=bytes(blob[_WRAPPED_LEN.size:end]))

    def to_base64(self) -> str:
        """Encode the wire format as a base64 string."""
        return base64.standard_b64encode(self.to_bytes()).decode("ascii")

    @classmethod
    def from_base64(cls, encoded: str) -> SealedMessage:
        """
        Decode from base64 string.

        Raises:
            SerializationError: If decoding fails or the message is malformed
        """
        try:
            decoded = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SerializationError(f"Base64 decode error: {e}") from e
        return cls.from_bytes(decoded)


# =============================================================================
# Envelope
# =============================================================================


class Envelope:
    """
    One party in a hybrid encryption exchange.

    Holds its own RSA key pair. Anyone with ``public_key`` can encrypt for this
    party; only this instance can decrypt.
    """

    def __init__(
        self,
        key_pair: KeyPair,
        *,
        key_wrapper: KeyWrapper,
        session_keys: SessionKeyGenerator,
        payload_cipher: PayloadCipher,
    ) -> None:
        """
        Adopt an existing identity.

        Args:
            key_pair: This party's key pair (stored by the caller out of band)
            key_wrapper: Asymmetric wrap/unwrap of session keys
            session_keys: Session key generator
            payload_cipher: Authenticated cipher for the payload
        """
        self._key_pair = key_pair
        self._key_wrapper = key_wrapper
        self._session_keys = session_keys
        self._payload_cipher = payload_cipher
        self._state = EnvelopeState.IDLE
        self._state_lock = threading.Lock()

    @classmethod
    def create(
        cls,
        config: Optional[EnvelopeConfig] = None,
        *,
        key_wrapper: Optional[KeyWrapper] = None,
        session_keys: Optional[SessionKeyGenerator] = None,
        payload_cipher: Optional[PayloadCipher] = None,
    ) -> Envelope:
        """
        Create an Envelope with a freshly generated identity.

        Collaborators not passed explicitly are built from ``config``
        (defaults to EnvelopeConfig()).

        Returns:
            New Envelope in state IDLE

        Raises:
            KeyGenerationError: If the key pair cannot be generated
        """
        config = config if config is not None else EnvelopeConfig()
        key_wrapper = key_wrapper if key_wrapper is not None else config.key_wrapper()
        key_pair = key_wrapper.generate()
        return cls(
            key_pair,
            key_wrapper=key_wrapper,
            session_keys=session_keys if session_keys is not None else config.session_key_generator(),
            payload_cipher=payload_cipher if payload_cipher is not None else config.payload_cipher(),
        )

    @property
    def public_key(self) -> str:
        """This party's shareable public key."""
        return self._key_pair.public_key

    @property
    def key_pair(self) -> KeyPair:
        """Full key pair, for the caller to persist. Contains the private key."""
        return self._key_pair

    @property
    def state(self) -> EnvelopeState:
        """State reached by the last successfully completed operation."""
        with self._state_lock:
            return self._state

    def _complete(self, state: EnvelopeState) -> None:
        with self._state_lock:
            self._state = state

    def encrypt(self, plaintext: bytes, recipient_public_key: str) -> SealedMessage:
        """
        Encrypt plaintext for the holder of recipient_public_key.

        Args:
            plaintext: Non-empty data to encrypt
            recipient_public_key: Recipient's Base64 public key

        Returns:
            SealedMessage with ciphertext and wrapped session key

        Raises:
            InvalidArgumentError: If plaintext or recipient_public_key is empty
            InvalidKeyError: If recipient_public_key is malformed
            RandomSourceUnavailableError: If no session key can be generated
        """
        if not recipient_public_key or not recipient_public_key.strip():
            raise InvalidArgumentError("Recipient public key required")
        if isinstance(plaintext, str):
            raise InvalidArgumentError("Plaintext must be bytes; use encrypt_text for str")
        if not plaintext:
            raise InvalidArgumentError("Plaintext required")

        state = EnvelopeState.ENCRYPT_REQUESTED
        logger.debug(f"Envelope {state}: {len(plaintext)}B plaintext")

        with self._session_keys.generate() as session_key:
            wrapped = self._key_wrapper.wrap(recipient_public_key, session_key.as_bytes())
            ciphertext = self._payload_cipher.seal(bytes(plaintext), session_key, wrapped)

        self._complete(EnvelopeState.ENCRYPTED)
        logger.debug(
            f"Envelope {state} -> {EnvelopeState.ENCRYPTED}: "
            f"ct={len(ciphertext)}B wrapped={len(wrapped)}B"
        )
        return SealedMessage(ciphertext=ciphertext, wrapped_session_key=wrapped)

    def decrypt(self, ciphertext: bytes, wrapped_session_key: bytes) -> bytes:
        """
        Decrypt a message sent to this party.

        Args:
            ciphertext: Payload ciphertext from SealedMessage
            wrapped_session_key: Wrapped session key from SealedMessage

        Returns:
            Plaintext bytes

        Raises:
            InvalidArgumentError: If either argument is empty or a str
            InvalidKeyError: If this party's private key is malformed
            DecryptionFailedError: If the session key does not unwrap
            AuthenticationFailedError: If the payload fails verification
        """
        if not ciphertext:
            raise InvalidArgumentError("Ciphertext required")
        if not wrapped_session_key:
            raise InvalidArgumentError("Wrapped session key required")
        if isinstance(ciphertext, str) or isinstance(wrapped_session_key, str):
            raise InvalidArgumentError("Ciphertext and wrapped session key must be bytes")

        state = EnvelopeState.DECRYPT_REQUESTED
        logger.debug(f"Envelope {state}: ct={len(ciphertext)}B wrapped={len(wrapped_session_key)}B")

        material = self._key_wrapper.unwrap(
            self._key_pair.private_key,
            bytes(wrapped_session_key),
            expected_size=self._session_keys.key_size,
        )
        with SecureKey(material) as session_key:
            plaintext = self._payload_cipher.open(
                bytes(ciphertext), session_key, expected_context=bytes(wrapped_session_key)
            )

        self._complete(EnvelopeState.DECRYPTED)
        logger.debug(f"Envelope {state} -> {EnvelopeState.DECRYPTED}: {len(plaintext)}B plaintext")
        return plaintext

    def decrypt_message(self, sealed: SealedMessage) -> bytes:
        """Decrypt a SealedMessage."""
        return self.decrypt(sealed.ciphertext, sealed.wrapped_session_key)

    def encrypt_text(self, text: str, recipient_public_key: str) -> SealedMessage:
        """Encrypt a UTF-8 string."""
        if not text:
            raise InvalidArgumentError("Plaintext required")
        return self.encrypt(text.encode("utf-8"), recipient_public_key)

    def decrypt_text(self, ciphertext: bytes, wrapped_session_key: bytes) -> str:
        """
        Decrypt a message produced by encrypt_text.

        Raises:
            SerializationError: If the plaintext is not valid UTF-8
        """
        plaintext = self.decrypt(ciphertext, wrapped_session_key)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SerializationError(f"Plaintext is not UTF-8: {e}") from e

    def __repr__(self) -> str:
        return f"Envelope(state={self.state}, public_key={self.public_key[:16]}...)"

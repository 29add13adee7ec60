"""
Hybrid Envelope Encryption Library

A Python implementation of hybrid ("envelope") encryption: each message is
sealed under a fresh session key, and the session key is wrapped under the
recipient's RSA public key.

Overview
--------
- **Session keys** are one-time keys: SHA-256 over 256+ bytes of OS entropy
- **Key wrapping** uses RSA-OAEP (SHA-256); only the matching private key unwraps
- **Payloads** are sealed with AES-256-GCM, with the wrapped key bound as
  associated data so the two cannot be spliced

Quick Start
-----------
```python
from hybrid_envelope import Envelope

alice = Envelope.create()
bob = Envelope.create()

# Alice encrypts for Bob using his public key
sealed = alice.encrypt(b"hello", bob.public_key)

# Send sealed.to_bytes() (or sealed.to_base64()) over any channel
assert bob.decrypt(sealed.ciphertext, sealed.wrapped_session_key) == b"hello"
```

Modules
-------
- `envelope`: Envelope protocol and sealed message wire format
- `asymmetric`: RSA key pairs and session key wrapping
- `session_key`: Session key generation
- `payload`: Authenticated payload ciphers
- `crypto`: AES-256-GCM and SHA-256 primitives
- `interfaces`: Capability protocols for the primitives
- `config`: Environment-driven configuration
- `errors`: Error types and exception classes
"""

__version__ = "0.1.0"

# ============================================================================
# Crypto Exports
# ============================================================================

from .crypto import (
    AES_256_KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    AesGcmCipher,
    EncryptedData,
    SecureKey,
    Sha256Hash,
    generate_random_bytes,
)

# ============================================================================
# Error Exports
# ============================================================================

from .errors import (
    AuthenticationFailedError,
    ConfigError,
    CryptoError,
    DecryptionFailedError,
    EnvelopeError,
    InvalidArgumentError,
    InvalidInputError,
    InvalidKeyError,
    KeyGenerationError,
    RandomSourceUnavailableError,
    SerializationError,
)

# ============================================================================
# Component Exports
# ============================================================================

from .asymmetric import KeyPair, RsaKeyWrapper
from .interfaces import HashFunction, KeyWrapper, PayloadCipher, RandomSource
from .payload import AesGcmPayloadCipher, PasswordPayloadCipher
from .session_key import SessionKeyGenerator, SystemRandomSource

# ============================================================================
# Envelope Exports (Primary API)
# ============================================================================

from .config import EnvelopeConfig
from .envelope import Envelope, EnvelopeState, SealedMessage

# ============================================================================
# Public API
# ============================================================================

__all__ = [
    # Version
    "__version__",
    # Crypto
    "AES_256_KEY_SIZE",
    "NONCE_SIZE",
    "TAG_SIZE",
    "AesGcmCipher",
    "EncryptedData",
    "SecureKey",
    "Sha256Hash",
    "generate_random_bytes",
    # Errors
    "EnvelopeError",
    "InvalidArgumentError",
    "InvalidInputError",
    "CryptoError",
    "InvalidKeyError",
    "DecryptionFailedError",
    "AuthenticationFailedError",
    "RandomSourceUnavailableError",
    "KeyGenerationError",
    "SerializationError",
    "ConfigError",
    # Components
    "KeyPair",
    "RsaKeyWrapper",
    "SessionKeyGenerator",
    "SystemRandomSource",
    "AesGcmPayloadCipher",
    "PasswordPayloadCipher",
    "RandomSource",
    "HashFunction",
    "KeyWrapper",
    "PayloadCipher",
    # Envelope (Primary API)
    "EnvelopeConfig",
    "Envelope",
    "EnvelopeState",
    "SealedMessage",
]

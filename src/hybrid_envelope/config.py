"""
Envelope configuration.

Settings are read from the process environment, optionally seeded from a
``.env`` file:

    ENVELOPE_RSA_KEY_SIZE        RSA modulus in bits (default 2048)
    ENVELOPE_ENTROPY_SIZE        Random bytes drawn per session key (default 256)
    ENVELOPE_PAYLOAD_CIPHER      "aes-gcm" (default) or "password"
    ENVELOPE_PBKDF2_ITERATIONS   Iterations for the password cipher (default 100000)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import find_dotenv, load_dotenv

from .asymmetric import DEFAULT_RSA_KEY_SIZE, MIN_RSA_KEY_SIZE, RsaKeyWrapper
from .errors import ConfigError
from .payload import (
    DEFAULT_PBKDF2_ITERATIONS,
    MIN_PBKDF2_ITERATIONS,
    AesGcmPayloadCipher,
    PasswordPayloadCipher,
)
from .session_key import DEFAULT_ENTROPY_SIZE, MIN_ENTROPY_SIZE, SessionKeyGenerator

PAYLOAD_CIPHERS = ("aes-gcm", "password")


@dataclass(frozen=True)
class EnvelopeConfig:
    """Settings used to build the default envelope collaborators."""

    rsa_key_size: int = DEFAULT_RSA_KEY_SIZE
    entropy_size: int = DEFAULT_ENTROPY_SIZE
    payload_cipher_name: str = "aes-gcm"
    pbkdf2_iterations: int = DEFAULT_PBKDF2_ITERATIONS

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Check every setting.

        Raises:
            ConfigError: If any setting is out of range
        """
        if self.rsa_key_size < MIN_RSA_KEY_SIZE:
            raise ConfigError(
                f"rsa_key_size must be at least {MIN_RSA_KEY_SIZE}, got {self.rsa_key_size}"
            )
        if self.entropy_size < MIN_ENTROPY_SIZE:
            raise ConfigError(
                f"entropy_size must be at least {MIN_ENTROPY_SIZE}, got {self.entropy_size}"
            )
        if self.payload_cipher_name not in PAYLOAD_CIPHERS:
            raise ConfigError(
                f"payload_cipher must be one of {', '.join(PAYLOAD_CIPHERS)}, "
                f"got {self.payload_cipher_name!r}"
            )
        if self.pbkdf2_iterations < MIN_PBKDF2_ITERATIONS:
            raise ConfigError(
                f"pbkdf2_iterations must be at least {MIN_PBKDF2_ITERATIONS}, "
                f"got {self.pbkdf2_iterations}"
            )

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> EnvelopeConfig:
        """
        Load settings from environment variables.

        Args:
            env_file: Optional .env file loaded first (existing variables win)
            environ: Mapping to read instead of os.environ

        Returns:
            EnvelopeConfig instance

        Raises:
            ConfigError: If a value is not an integer or out of range
        """
        if environ is None:
            load_dotenv(env_file if env_file is not None else find_dotenv(usecwd=True))
            environ = os.environ

        return cls(
            rsa_key_size=_int_setting(environ, "ENVELOPE_RSA_KEY_SIZE", DEFAULT_RSA_KEY_SIZE),
            entropy_size=_int_setting(environ, "ENVELOPE_ENTROPY_SIZE", DEFAULT_ENTROPY_SIZE),
            payload_cipher_name=environ.get("ENVELOPE_PAYLOAD_CIPHER", "aes-gcm").strip().lower(),
            pbkdf2_iterations=_int_setting(
                environ, "ENVELOPE_PBKDF2_ITERATIONS", DEFAULT_PBKDF2_ITERATIONS
            ),
        )

    def key_wrapper(self) -> RsaKeyWrapper:
        return RsaKeyWrapper(key_size=self.rsa_key_size)

    def session_key_generator(self) -> SessionKeyGenerator:
        return SessionKeyGenerator(entropy_size=self.entropy_size)

    def payload_cipher(self) -> Union[AesGcmPayloadCipher, PasswordPayloadCipher]:
        if self.payload_cipher_name == "password":
            return PasswordPayloadCipher(iterations=self.pbkdf2_iterations)
        return AesGcmPayloadCipher()


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None

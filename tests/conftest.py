"""
Pytest configuration and fixtures for hybrid envelope tests.
"""

from __future__ import annotations

import os
import random
from typing import Callable, Iterator, Optional

import pytest

from hybrid_envelope import (
    AesGcmPayloadCipher,
    Envelope,
    KeyPair,
    PayloadCipher,
    RsaKeyWrapper,
    SessionKeyGenerator,
)

ENV_VARS = (
    "ENVELOPE_RSA_KEY_SIZE",
    "ENVELOPE_ENTROPY_SIZE",
    "ENVELOPE_PAYLOAD_CIPHER",
    "ENVELOPE_PBKDF2_ITERATIONS",
)


class CountingRandomSource:
    """Deterministic random source that records how often it was used."""

    def __init__(self, seed: int = 0) -> None:
        self._rng = random.Random(seed)
        self.calls = 0
        self.last_buffer: Optional[bytearray] = None

    def fill(self, buffer: bytearray) -> None:
        self.calls += 1
        self.last_buffer = buffer
        buffer[:] = bytes(self._rng.getrandbits(8) for _ in range(len(buffer)))


@pytest.fixture(scope="session")
def wrapper() -> RsaKeyWrapper:
    """RSA-2048 key wrapper."""
    return RsaKeyWrapper(key_size=2048)


@pytest.fixture(scope="session")
def alice_keys(wrapper: RsaKeyWrapper) -> KeyPair:
    return wrapper.generate()


@pytest.fixture(scope="session")
def bob_keys(wrapper: RsaKeyWrapper) -> KeyPair:
    return wrapper.generate()


@pytest.fixture
def random_source() -> CountingRandomSource:
    return CountingRandomSource(seed=1234)


@pytest.fixture
def make_envelope(
    wrapper: RsaKeyWrapper,
) -> Callable[..., Envelope]:
    """Build an Envelope around an existing key pair without regenerating RSA keys."""

    def _make(
        key_pair: KeyPair,
        random_source: Optional[CountingRandomSource] = None,
        payload_cipher: Optional[PayloadCipher] = None,
    ) -> Envelope:
        return Envelope(
            key_pair,
            key_wrapper=wrapper,
            session_keys=SessionKeyGenerator(random_source=random_source),
            payload_cipher=payload_cipher if payload_cipher is not None else AesGcmPayloadCipher(),
        )

    return _make


@pytest.fixture
def alice(make_envelope: Callable[..., Envelope], alice_keys: KeyPair) -> Envelope:
    return make_envelope(alice_keys)


@pytest.fixture
def bob(make_envelope: Callable[..., Envelope], bob_keys: KeyPair) -> Envelope:
    return make_envelope(bob_keys)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Remove ENVELOPE_* variables and run from an empty directory (no stray .env).

    Variables loaded from a .env file during the test are dropped afterwards.
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    for name in ENV_VARS:
        os.environ.pop(name, None)

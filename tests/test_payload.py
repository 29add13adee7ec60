"""
Tests for the context-bound payload ciphers.
"""

from __future__ import annotations

import pytest

from hybrid_envelope import (
    AesGcmPayloadCipher,
    AuthenticationFailedError,
    InvalidInputError,
    PasswordPayloadCipher,
    SecureKey,
    generate_random_bytes,
)
from hybrid_envelope.payload import _ContextBoundCipher

MSG = b"attack at dawn"
CONTEXT = b"\x5a" * 256


@pytest.fixture(params=["aes-gcm", "password"])
def cipher(request):
    if request.param == "password":
        return PasswordPayloadCipher(iterations=10_000)
    return AesGcmPayloadCipher()


@pytest.fixture
def key() -> SecureKey:
    return SecureKey(generate_random_bytes(32))


def test_roundtrip(cipher, key: SecureKey):
    sealed = cipher.seal(MSG, key, CONTEXT)
    assert MSG not in sealed
    assert cipher.open(sealed, key) == MSG
    assert cipher.open(sealed, key, expected_context=CONTEXT) == MSG


def test_context_is_carried_in_header(cipher, key: SecureKey):
    sealed = cipher.seal(MSG, key, CONTEXT)
    assert cipher.context_of(sealed) == CONTEXT
    assert sealed[:2] == len(CONTEXT).to_bytes(2, "big")


def test_mismatched_expected_context_fails(cipher, key: SecureKey):
    sealed = cipher.seal(MSG, key, CONTEXT)
    with pytest.raises(AuthenticationFailedError):
        cipher.open(sealed, key, expected_context=b"\x5b" * 256)


def test_tampered_context_fails_tag(cipher, key: SecureKey):
    sealed = bytearray(cipher.seal(MSG, key, CONTEXT))
    sealed[10] ^= 0x01
    with pytest.raises(AuthenticationFailedError):
        cipher.open(bytes(sealed), key)


def test_tampered_body_fails(cipher, key: SecureKey):
    sealed = cipher.seal(MSG, key, CONTEXT)
    for i in range(2 + len(CONTEXT), len(sealed)):
        tampered = bytearray(sealed)
        tampered[i] ^= 0x80
        with pytest.raises(AuthenticationFailedError):
            cipher.open(bytes(tampered), key)


def test_wrong_key_fails(cipher, key: SecureKey):
    sealed = cipher.seal(MSG, key, CONTEXT)
    with pytest.raises(AuthenticationFailedError):
        cipher.open(sealed, SecureKey(generate_random_bytes(32)))


@pytest.mark.parametrize("blob", [b"", b"\x00", b"\x01\x00", b"\x00\x04abc"])
def test_truncated_ciphertext_fails(cipher, key: SecureKey, blob: bytes):
    with pytest.raises(AuthenticationFailedError):
        cipher.open(blob, key)


def test_context_too_large_rejected(cipher, key: SecureKey):
    with pytest.raises(InvalidInputError):
        cipher.seal(MSG, key, b"\x00" * 0x10000)


def test_password_cipher_salts_each_seal(key: SecureKey):
    cipher = PasswordPayloadCipher(iterations=10_000)
    assert cipher.seal(MSG, key, CONTEXT) != cipher.seal(MSG, key, CONTEXT)


def test_password_cipher_minimum_iterations():
    with pytest.raises(InvalidInputError):
        PasswordPayloadCipher(iterations=1_000)


def test_framing_base_is_abstract():
    with pytest.raises(TypeError):
        _ContextBoundCipher()

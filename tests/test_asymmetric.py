"""
Tests for RSA-OAEP session key wrapping.
"""

from __future__ import annotations

import base64

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives import serialization

from hybrid_envelope import (
    DecryptionFailedError,
    InvalidInputError,
    InvalidKeyError,
    KeyGenerationError,
    KeyPair,
    RsaKeyWrapper,
)

SESSION_KEY = bytes(range(32))


def test_generate_produces_base64_der_keys(alice_keys: KeyPair):
    public = serialization.load_der_public_key(base64.b64decode(alice_keys.public_key))
    private = serialization.load_der_private_key(
        base64.b64decode(alice_keys.private_key), password=None
    )
    assert isinstance(public, rsa.RSAPublicKey)
    assert isinstance(private, rsa.RSAPrivateKey)
    assert public.key_size == 2048


def test_key_pair_repr_hides_private_key(alice_keys: KeyPair):
    assert alice_keys.private_key not in repr(alice_keys)
    assert alice_keys.public_key in repr(alice_keys)


def test_wrap_unwrap_roundtrip(wrapper: RsaKeyWrapper, bob_keys: KeyPair):
    wrapped = wrapper.wrap(bob_keys.public_key, SESSION_KEY)
    assert len(wrapped) == 256
    assert wrapper.unwrap(bob_keys.private_key, wrapped, expected_size=32) == SESSION_KEY


def test_wrap_is_randomized(wrapper: RsaKeyWrapper, bob_keys: KeyPair):
    assert wrapper.wrap(bob_keys.public_key, SESSION_KEY) != wrapper.wrap(
        bob_keys.public_key, SESSION_KEY
    )


def test_unwrap_with_other_private_key_fails(
    wrapper: RsaKeyWrapper, alice_keys: KeyPair, bob_keys: KeyPair
):
    wrapped = wrapper.wrap(bob_keys.public_key, SESSION_KEY)
    with pytest.raises(DecryptionFailedError):
        wrapper.unwrap(alice_keys.private_key, wrapped)


def test_unwrap_corrupted_bytes_fails(wrapper: RsaKeyWrapper, bob_keys: KeyPair):
    wrapped = bytearray(wrapper.wrap(bob_keys.public_key, SESSION_KEY))
    wrapped[100] ^= 0x01
    with pytest.raises(DecryptionFailedError):
        wrapper.unwrap(bob_keys.private_key, bytes(wrapped))


def test_unwrap_empty_fails(wrapper: RsaKeyWrapper, bob_keys: KeyPair):
    with pytest.raises(DecryptionFailedError):
        wrapper.unwrap(bob_keys.private_key, b"")


def test_unwrap_rejects_unexpected_length(wrapper: RsaKeyWrapper, bob_keys: KeyPair):
    wrapped = wrapper.wrap(bob_keys.public_key, b"\x07" * 16)
    with pytest.raises(DecryptionFailedError):
        wrapper.unwrap(bob_keys.private_key, wrapped, expected_size=32)


@pytest.mark.parametrize("bad_key", ["", "   ", "not base64 !!", base64.b64encode(b"junk").decode()])
def test_wrap_rejects_malformed_public_key(wrapper: RsaKeyWrapper, bad_key: str):
    with pytest.raises(InvalidKeyError):
        wrapper.wrap(bad_key, SESSION_KEY)


def test_wrap_rejects_private_key_as_public(wrapper: RsaKeyWrapper, bob_keys: KeyPair):
    with pytest.raises(InvalidKeyError):
        wrapper.wrap(bob_keys.private_key, SESSION_KEY)


def test_wrap_rejects_non_rsa_key(wrapper: RsaKeyWrapper):
    ec_public = ec.generate_private_key(ec.SECP256R1()).public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    with pytest.raises(InvalidKeyError):
        wrapper.wrap(base64.b64encode(ec_public).decode(), SESSION_KEY)


def test_unwrap_rejects_malformed_private_key(wrapper: RsaKeyWrapper, bob_keys: KeyPair):
    wrapped = wrapper.wrap(bob_keys.public_key, SESSION_KEY)
    with pytest.raises(InvalidKeyError):
        wrapper.unwrap("", wrapped)
    with pytest.raises(InvalidKeyError):
        wrapper.unwrap(bob_keys.public_key, wrapped)


def test_wrap_input_size_limits(wrapper: RsaKeyWrapper, bob_keys: KeyPair):
    limit = wrapper.max_input_size(bob_keys.public_key)
    assert limit == 256 - 2 * 32 - 2

    assert wrapper.unwrap(
        bob_keys.private_key, wrapper.wrap(bob_keys.public_key, b"\x01" * limit)
    ) == b"\x01" * limit

    with pytest.raises(InvalidInputError):
        wrapper.wrap(bob_keys.public_key, b"\x01" * (limit + 1))
    with pytest.raises(InvalidInputError):
        wrapper.wrap(bob_keys.public_key, b"")


def test_key_size_below_minimum_rejected():
    with pytest.raises(InvalidInputError):
        RsaKeyWrapper(key_size=512)


def test_generation_failure_raises_key_generation_error(monkeypatch: pytest.MonkeyPatch):
    def broken(*args, **kwargs):
        raise ValueError("backend exploded")

    monkeypatch.setattr(rsa, "generate_private_key", broken)
    with pytest.raises(KeyGenerationError):
        RsaKeyWrapper().generate()

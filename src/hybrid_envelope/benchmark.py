"""
Hybrid Envelope Benchmark CLI.

Usage:
    envelope-benchmark [PARTIES]

Or run directly:
    python -m hybrid_envelope.benchmark

Settings (key size, payload cipher, ...) come from ENVELOPE_* environment
variables or a .env file; see hybrid_envelope.config.
"""

from __future__ import annotations

import logging
import random
import sys
import time
from typing import List, Optional

from hybrid_envelope.config import EnvelopeConfig
from hybrid_envelope.envelope import Envelope, SealedMessage
from hybrid_envelope.errors import CryptoError, EnvelopeError

DEFAULT_PARTIES = 10


def _banner(title: str) -> None:
    print("+" + "-" * 68 + "+")
    print(f"|  {title}" + " " * max(0, 66 - len(title)) + "|")
    print("+" + "-" * 68 + "+")


def _rate_line(label: str, seconds: float, count: int = 1) -> str:
    rate = f"{count / seconds:.2f}"
    return f"|  {label:<19}{rate} ops/sec" + " " * max(0, 38 - len(rate)) + "|"


def run_benchmark(parties: int, config: EnvelopeConfig) -> bool:
    """
    Run the benchmark.

    Returns:
        True if every correctness check passed
    """
    ok = True
    print("=== Hybrid Envelope Benchmark ===\n")
    print(f"Testing with {parties} parties\n")

    print("=" * 70)
    print("                    BENCHMARK START")
    print("=" * 70 + "\n")

    # ========================================================================
    # Demo 1: Create parties
    # ========================================================================
    _banner(f"Demo 1: Create {parties} Parties (RSA-{config.rsa_key_size})")

    envelopes: List[Envelope] = []
    demo1_start = time.perf_counter()
    for i in range(parties):
        envelopes.append(Envelope.create(config))
        if (i + 1) % 5 == 0 or (i + 1) == parties:
            print(f"  Progress: {i + 1}/{parties}")
    demo1_duration = time.perf_counter() - demo1_start

    print(f"[OK] Created {parties} identities")
    print(f"[PERF] Time: {demo1_duration * 1000:.3f}ms | Rate: {parties / demo1_duration:.2f} ops/sec\n")

    # ========================================================================
    # Demo 2: Encryption/Decryption
    # ========================================================================
    _banner("Demo 2: Encryption/Decryption Benchmark")

    sender = envelopes[0]
    recipient = envelopes[-1] if parties > 1 else envelopes[0]
    plaintext = b"Sensitive data protected by envelope encryption"

    encrypt_start = time.perf_counter()
    sealed = sender.encrypt(plaintext, recipient.public_key)
    encrypt_time = time.perf_counter() - encrypt_start

    decrypt_start = time.perf_counter()
    decrypted = recipient.decrypt_message(sealed)
    decrypt_time = time.perf_counter() - decrypt_start

    if decrypted == plaintext:
        print("[OK] Data encrypted/decrypted successfully")
    else:
        print("[ERROR] Round trip returned different plaintext")
        ok = False
    print(f"[PERF] Encryption: {encrypt_time * 1000:.3f}ms ({1.0 / encrypt_time:.2f} ops/sec)")
    print(f"[PERF] Decryption: {decrypt_time * 1000:.3f}ms ({1.0 / decrypt_time:.2f} ops/sec)")
    print(f"[DEBUG] Ciphertext: {len(sealed.ciphertext)}B | Wrapped key: {len(sealed.wrapped_session_key)}B\n")

    # ========================================================================
    # Demo 3: Fan-out to every party
    # ========================================================================
    _banner(f"Demo 3: Fan-out to {parties} Recipients")

    demo3_start = time.perf_counter()
    messages = [(env, sender.encrypt(plaintext, env.public_key)) for env in envelopes]
    for env, message in messages:
        if env.decrypt_message(message) != plaintext:
            print("[ERROR] Fan-out round trip failed")
            ok = False
    demo3_duration = time.perf_counter() - demo3_start

    print(f"[OK] {parties} messages sealed and opened")
    print(f"[PERF] Time: {demo3_duration * 1000:.3f}ms | Rate: {parties / demo3_duration:.2f} ops/sec\n")

    # ========================================================================
    # Demo 4: Tamper and wrong-recipient detection
    # ========================================================================
    _banner("Demo 4: Tamper Detection")

    tampered = bytearray(sealed.ciphertext)
    tampered[random.randrange(len(tampered))] ^= 0x01
    try:
        recipient.decrypt(bytes(tampered), sealed.wrapped_session_key)
        print("[ERROR] Tampered ciphertext was accepted")
        ok = False
    except CryptoError as e:
        print(f"[OK] Tampered ciphertext rejected ({type(e).__name__})")

    if parties > 1:
        try:
            sender.decrypt_message(sealed)
            print("[ERROR] Wrong recipient decrypted the message")
            ok = False
        except CryptoError as e:
            print(f"[OK] Wrong recipient rejected ({type(e).__name__})")
    print()

    # ========================================================================
    # Demo 5: Wire format
    # ========================================================================
    _banner("Demo 5: Wire Format")

    wire = sealed.to_base64()
    if recipient.decrypt_message(SealedMessage.from_base64(wire)) == plaintext:
        print(f"[OK] Base64 wire message ({len(wire)} chars) decrypts\n")
    else:
        print("[ERROR] Wire round trip failed\n")
        ok = False

    # ========================================================================
    # Summary
    # ========================================================================
    print("=" * 70)
    print("                    BENCHMARK SUMMARY")
    print("=" * 70 + "\n")

    print("+- Performance Summary ----------------------------------------------+")
    print("|                                                                    |")
    print(_rate_line("Key Generation:", demo1_duration, parties))
    print(_rate_line("Encryption:", encrypt_time))
    print(_rate_line("Decryption:", decrypt_time))
    print(_rate_line("Fan-out:", demo3_duration, parties))
    print("|                                                                    |")
    print("+--------------------------------------------------------------------+")

    print("\nTest Configuration:")
    print(f"  - Parties: {parties}")
    print(f"  - Key wrap: RSA-{config.rsa_key_size} OAEP (SHA-256)")
    print(f"  - Payload: {config.payload_cipher_name} with wrapped key as AAD")
    print(f"  - Session key: SHA-256 over {config.entropy_size} random bytes")

    print("\n" + "=" * 70)
    print("                    BENCHMARK COMPLETE" if ok else "                    BENCHMARK FAILED")
    print("=" * 70 + "\n")
    return ok


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point for envelope-benchmark command."""
    logging.basicConfig(level=logging.INFO, format=" %(message)s")
    args = sys.argv[1:] if argv is None else argv

    try:
        config = EnvelopeConfig.from_env()
    except EnvelopeError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    if args:
        raw = args[0]
    else:
        raw = input(f"Enter number of parties to test (default: {DEFAULT_PARTIES}): ").strip()
    try:
        parties = int(raw) if raw else DEFAULT_PARTIES
    except ValueError:
        parties = DEFAULT_PARTIES
    parties = max(1, parties)

    if not run_benchmark(parties, config):
        sys.exit(1)


if __name__ == "__main__":
    main()

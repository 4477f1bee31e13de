"""
Deterministic ECDSA nonces (RFC 6979 §3.2, HMAC-SHA256).

The nonce is a function of the private key and the message digest only,
so signing never depends on the quality of a runtime RNG and the same
(key, digest) pair always yields the same signature.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Iterator

from .constants import MESSAGE_HASH_BYTES, ORDER, SCALAR_BYTES


def _hmac(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha256).digest()


def bits2octets(digest: bytes) -> bytes:
    """RFC 6979 §2.3.4 for a 256-bit digest:  (h mod n) as 32 bytes."""
    return (int.from_bytes(digest, "big") % ORDER).to_bytes(SCALAR_BYTES, "big")


def rfc6979_nonces(secret: bytes, digest: bytes) -> Iterator[int]:
    """
    Yield the RFC 6979 candidate sequence  k_1, k_2, …  in [1, n-1].

    The generator is infinite; the signer pulls the next candidate when a
    nonce yields r = 0 or s = 0 (§3.2 step h.3).
    """
    if len(secret) != SCALAR_BYTES:
        raise ValueError(f"secret must be {SCALAR_BYTES} bytes")
    if len(digest) != MESSAGE_HASH_BYTES:
        raise ValueError(f"digest must be {MESSAGE_HASH_BYTES} bytes")

    h1 = bits2octets(digest)
    v = b"\x01" * 32
    k = b"\x00" * 32

    k = _hmac(k, v + b"\x00" + secret + h1)
    v = _hmac(k, v)
    k = _hmac(k, v + b"\x01" + secret + h1)
    v = _hmac(k, v)

    while True:
        v = _hmac(k, v)
        candidate = int.from_bytes(v, "big")
        if 1 <= candidate < ORDER:
            yield candidate
        k = _hmac(k, v + b"\x00")
        v = _hmac(k, v)

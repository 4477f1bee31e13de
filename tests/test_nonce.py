"""
Unit tests for eccore.nonce: RFC 6979 deterministic nonce generation.
"""

import hashlib
from itertools import islice

import pytest

from eccore import ORDER, G, Scalar
from eccore.nonce import bits2octets, rfc6979_nonces

KEY_ONE = (1).to_bytes(32, "big")


class TestRFC6979:
    def test_known_vector(self):
        # Widely published secp256k1 / SHA-256 vector (key = 1).
        digest = hashlib.sha256(b"Satoshi Nakamoto").digest()
        k = next(rfc6979_nonces(KEY_ONE, digest))
        assert k == 0x8F8A276C19F4149656B280621E358CCE24F5F52542772691EE69063B74F15D15

    def test_deterministic(self):
        digest = hashlib.sha256(b"sample").digest()
        first = list(islice(rfc6979_nonces(KEY_ONE, digest), 3))
        second = list(islice(rfc6979_nonces(KEY_ONE, digest), 3))
        assert first == second

    def test_candidates_are_distinct_and_in_range(self):
        digest = hashlib.sha256(b"sample").digest()
        candidates = list(islice(rfc6979_nonces(KEY_ONE, digest), 5))
        assert len(set(candidates)) == 5
        assert all(1 <= k < ORDER for k in candidates)

    def test_depends_on_key_and_digest(self):
        d1 = hashlib.sha256(b"a").digest()
        d2 = hashlib.sha256(b"b").digest()
        other_key = (2).to_bytes(32, "big")
        assert next(rfc6979_nonces(KEY_ONE, d1)) != next(rfc6979_nonces(KEY_ONE, d2))
        assert next(rfc6979_nonces(KEY_ONE, d1)) != next(rfc6979_nonces(other_key, d1))

    def test_rejects_bad_lengths(self):
        with pytest.raises(ValueError):
            next(rfc6979_nonces(KEY_ONE[:31], bytes(32)))
        with pytest.raises(ValueError):
            next(rfc6979_nonces(KEY_ONE, bytes(31)))

    def test_bits2octets_reduces(self):
        assert bits2octets(ORDER.to_bytes(32, "big")) == bytes(32)
        assert bits2octets((ORDER + 1).to_bytes(32, "big")) == KEY_ONE

    def test_nonce_point_is_finite(self):
        k = next(rfc6979_nonces(KEY_ONE, hashlib.sha256(b"x").digest()))
        assert not (Scalar(k) * G).is_inf()

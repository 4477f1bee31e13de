"""
Unit tests for eccore.signature: signature value types and encodings.
"""

import hashlib

import coincurve
import pytest

from eccore import (
    ORDER,
    InvalidSignature,
    RecoverableSignature,
    Signature,
    normalize_s,
)
from eccore.constants import HALF_ORDER


@pytest.fixture
def backend_der(secret_bytes, digest):
    return coincurve.PrivateKey(secret_bytes).sign(digest, hasher=None)


class TestSignature:
    def test_compact_layout(self):
        sig = Signature(r=1, s=2)
        raw = sig.to_compact()
        assert raw == (1).to_bytes(32, "big") + (2).to_bytes(32, "big")
        assert Signature.from_compact(raw) == sig
        assert bytes(sig) == raw

    def test_compact_wrong_length(self):
        with pytest.raises(InvalidSignature):
            Signature.from_compact(bytes(63))

    def test_from_compact_does_not_range_check(self):
        sig = Signature.from_compact(bytes(64))
        assert not sig.in_range()

    def test_der_matches_backend(self, backend_der):
        sig = Signature.from_der(backend_der)
        assert sig.in_range()
        assert sig.to_der() == backend_der

    def test_malformed_der(self, backend_der):
        with pytest.raises(InvalidSignature):
            Signature.from_der(backend_der[:-3])
        with pytest.raises(InvalidSignature):
            Signature.from_der(b"\x30\x00")

    def test_out_of_range_cannot_be_der_encoded(self):
        with pytest.raises(InvalidSignature):
            Signature(r=0, s=1).to_der()

    def test_normalize(self):
        high = Signature(r=5, s=ORDER - 1)
        low = normalize_s(high)
        assert not high.is_low_s
        assert low == Signature(r=5, s=1)
        assert low.normalize() is low

    def test_half_order_is_low(self):
        assert Signature(r=1, s=HALF_ORDER).is_low_s
        assert not Signature(r=1, s=HALF_ORDER + 1).is_low_s


class TestRecoverableSignature:
    def test_layout(self):
        rsig = RecoverableSignature(Signature(r=3, s=4), recovery_id=1)
        raw = rsig.to_bytes()
        assert len(raw) == 65
        assert raw[-1] == 1
        assert RecoverableSignature.from_bytes(raw) == rsig
        assert (rsig.r, rsig.s) == (3, 4)

    @pytest.mark.parametrize("rec_id", [-1, 4, 27])
    def test_rejects_bad_recovery_id(self, rec_id):
        with pytest.raises(InvalidSignature):
            RecoverableSignature(Signature(r=3, s=4), recovery_id=rec_id)

    def test_wrong_length(self):
        with pytest.raises(InvalidSignature):
            RecoverableSignature.from_bytes(bytes(64))

    def test_matches_backend_layout(self, secret_bytes):
        digest = hashlib.sha256(b"layout").digest()
        raw = coincurve.PrivateKey(secret_bytes).sign_recoverable(digest, hasher=None)
        rsig = RecoverableSignature.from_bytes(raw)
        assert rsig.recovery_id in (0, 1, 2, 3)
        assert rsig.to_bytes() == raw

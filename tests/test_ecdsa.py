"""
Unit tests for eccore.ecdsa: deterministic signing, verification, and
public key recovery.

Signatures are cross-checked byte-for-byte against libsecp256k1's own
RFC 6979 signer via coincurve.
"""

import hashlib
import itertools
import logging
import secrets

import coincurve
import pytest

from eccore import (
    ORDER,
    CoreConfig,
    InvalidMessageHash,
    InvalidPrivateKey,
    InvalidPublicKey,
    InvalidSignature,
    PrivateKey,
    RecoverableSignature,
    RecoveryFailed,
    Signature,
    SignatureCreationFailed,
    derive_public_key,
    recover_public_key,
    set_config,
    sign,
    sign_recoverable,
    verify,
)
from eccore import ecdsa as ecdsa_module
from eccore.constants import G_X, HALF_ORDER
from eccore.nonce import rfc6979_nonces

KEY_ONE = (1).to_bytes(32, "big")


# ==============================================================================
# Signing
# ==============================================================================


class TestSign:
    def test_known_vector(self):
        digest = hashlib.sha256(b"Satoshi Nakamoto").digest()
        sig = sign(digest, KEY_ONE)
        assert sig.to_compact().hex() == (
            "934b1ea10a4b3c1757e2b0c017d0b6143ce3c9a7e6a4a49860d7a6ab210ee3d8"
            "2442ce9d2b916064108014783e923ec36b49743e2ffa1c4496f01a512aafd9e5"
        )

    def test_matches_libsecp256k1(self):
        for _ in range(16):
            secret = PrivateKey.generate().to_bytes()
            digest = secrets.token_bytes(32)
            expected = coincurve.PrivateKey(secret).sign_recoverable(digest, hasher=None)
            assert sign_recoverable(digest, secret).to_bytes() == expected

    def test_deterministic(self, private_key, digest):
        assert sign(digest, private_key) == sign(digest, private_key)

    def test_low_s(self, private_key):
        for i in range(32):
            digest = hashlib.sha256(i.to_bytes(4, "big")).digest()
            sig = sign(digest, private_key)
            assert sig.s <= HALF_ORDER
            assert sig.in_range()

    def test_recoverable_carries_same_signature(self, private_key, digest):
        assert sign_recoverable(digest, private_key).signature == sign(digest, private_key)

    @pytest.mark.parametrize("size", [0, 20, 31, 33, 64])
    def test_rejects_wrong_digest_length(self, private_key, size):
        with pytest.raises(InvalidMessageHash):
            sign(bytes(size), private_key)

    def test_rejects_invalid_key(self, digest):
        with pytest.raises(InvalidPrivateKey):
            sign(digest, bytes(32))

    def test_wiped_key_cannot_sign(self, secret_bytes, digest):
        key = PrivateKey(secret_bytes)
        key.wipe()
        with pytest.raises(InvalidPrivateKey):
            sign(digest, key)


class TestNonceRetry:
    """Force degenerate nonces by pinning the candidate sequence to k = 1.

    With k = 1, r = G.x mod n, and choosing e = -r·d makes s = 0.
    """

    @pytest.fixture
    def degenerate(self, private_key):
        r = G_X % ORDER
        e = (-r * private_key.scalar.value) % ORDER
        return private_key, e.to_bytes(32, "big")

    def test_gives_up_after_configured_attempts(self, monkeypatch, degenerate, caplog):
        key, digest = degenerate
        monkeypatch.setattr(ecdsa_module, "rfc6979_nonces", lambda secret, d: itertools.repeat(1))
        set_config(CoreConfig(max_nonce_retries=3))
        with caplog.at_level(logging.WARNING, logger="eccore.ecdsa"):
            with pytest.raises(SignatureCreationFailed):
                sign(digest, key)
        assert len(caplog.records) == 3

    def test_moves_to_next_candidate(self, monkeypatch, degenerate):
        key, digest = degenerate
        monkeypatch.setattr(
            ecdsa_module,
            "rfc6979_nonces",
            lambda secret, d: itertools.chain([1], rfc6979_nonces(secret, d)),
        )
        sig = sign(digest, key)
        assert verify(sig, digest, key.public_key())


# ==============================================================================
# Verification
# ==============================================================================


class TestVerify:
    def test_round_trip(self):
        for _ in range(8):
            key = PrivateKey.generate()
            digest = secrets.token_bytes(32)
            assert verify(sign(digest, key), digest, derive_public_key(key))

    def test_accepts_encodings(self, private_key, digest):
        sig = sign(digest, private_key)
        pub = private_key.public_key()
        assert verify(sig.to_compact(), digest, pub.format())
        assert verify(sig, digest, pub.format(compressed=False))

    def test_accepts_backend_signature(self, secret_bytes, digest):
        der = coincurve.PrivateKey(secret_bytes).sign(digest, hasher=None)
        assert verify(Signature.from_der(der), digest, derive_public_key(secret_bytes))

    def test_backend_accepts_our_signature(self, secret_bytes, digest):
        der = sign(digest, secret_bytes).to_der()
        pub = coincurve.PublicKey(derive_public_key(secret_bytes).format())
        assert pub.verify(der, digest, hasher=None)

    def test_single_bit_flip_fails(self, private_key, digest):
        raw = sign(digest, private_key).to_compact()
        pub = private_key.public_key()
        for bit in range(len(raw) * 8):
            tampered = bytearray(raw)
            tampered[bit // 8] ^= 1 << (bit % 8)
            assert not verify(bytes(tampered), digest, pub), f"bit {bit} still verifies"

    def test_wrong_digest_fails(self, private_key, digest):
        sig = sign(digest, private_key)
        assert not verify(sig, hashlib.sha256(b"other").digest(), private_key.public_key())

    def test_wrong_key_fails(self, private_key, digest):
        sig = sign(digest, private_key)
        assert not verify(sig, digest, derive_public_key(KEY_ONE))

    def test_high_s_rejected_under_strict_policy(self, private_key, digest):
        sig = sign(digest, private_key)
        high = Signature(sig.r, ORDER - sig.s)
        assert not verify(high, digest, private_key.public_key())

    def test_high_s_accepted_when_relaxed(self, private_key, digest):
        set_config(CoreConfig(strict_low_s=False))
        sig = sign(digest, private_key)
        high = Signature(sig.r, ORDER - sig.s)
        assert verify(high, digest, private_key.public_key())

    @pytest.mark.parametrize("r, s", [(0, 1), (1, 0), (ORDER, 1), (1, ORDER)])
    def test_out_of_range_values_fail(self, private_key, digest, r, s):
        assert not verify(Signature(r, s), digest, private_key.public_key())

    def test_malformed_inputs_raise(self, private_key, digest):
        sig = sign(digest, private_key)
        with pytest.raises(InvalidMessageHash):
            verify(sig, digest[:31], private_key.public_key())
        with pytest.raises(InvalidPublicKey):
            verify(sig, digest, bytes(33))
        with pytest.raises(InvalidSignature):
            verify(sig.to_compact()[:63], digest, private_key.public_key())


# ==============================================================================
# Recovery
# ==============================================================================


class TestRecover:
    def test_round_trip(self):
        for _ in range(8):
            key = PrivateKey.generate()
            digest = secrets.token_bytes(32)
            rsig = sign_recoverable(digest, key)
            assert recover_public_key(rsig, digest) == derive_public_key(key)

    def test_matches_backend(self, secret_bytes, digest):
        raw = coincurve.PrivateKey(secret_bytes).sign_recoverable(digest, hasher=None)
        expected = coincurve.PublicKey.from_signature_and_message(raw, digest, hasher=None)
        assert recover_public_key(raw, digest).format() == expected.format()

    def test_from_bytes_and_explicit_id(self, private_key, digest):
        rsig = sign_recoverable(digest, private_key)
        expected = private_key.public_key()
        assert recover_public_key(rsig.to_bytes(), digest) == expected
        assert recover_public_key(rsig.signature, digest, recovery_id=rsig.recovery_id) == expected

    def test_explicit_id_overrides_trailing_byte(self, private_key, digest):
        rsig = sign_recoverable(digest, private_key)
        raw = rsig.to_bytes()
        expected = private_key.public_key()
        assert recover_public_key(raw, digest, recovery_id=rsig.recovery_id) == expected
        other = recover_public_key(raw, digest, recovery_id=rsig.recovery_id ^ 1)
        assert other != expected

    def test_uncompressed_output(self, private_key, digest):
        rsig = sign_recoverable(digest, private_key)
        recovered = recover_public_key(rsig, digest, compressed=False)
        assert len(recovered.format()) == 65

    def test_other_parity_recovers_different_key(self, private_key, digest):
        rsig = sign_recoverable(digest, private_key)
        other = recover_public_key(rsig.signature, digest, recovery_id=rsig.recovery_id ^ 1)
        assert other != private_key.public_key()

    def test_overflowing_x_fails(self, private_key, digest):
        rsig = sign_recoverable(digest, private_key)
        with pytest.raises(RecoveryFailed):
            recover_public_key(rsig.signature, digest, recovery_id=(rsig.recovery_id & 1) | 2)

    @pytest.mark.parametrize("rec_id", [-1, 4, 27])
    def test_invalid_recovery_id(self, private_key, digest, rec_id):
        sig = sign(digest, private_key)
        with pytest.raises(RecoveryFailed):
            recover_public_key(sig, digest, recovery_id=rec_id)

    def test_plain_signature_needs_id(self, private_key, digest):
        with pytest.raises(RecoveryFailed):
            recover_public_key(sign(digest, private_key), digest)

    def test_out_of_range_signature(self, digest):
        rsig = RecoverableSignature(Signature(0, 1), 0)
        with pytest.raises(RecoveryFailed):
            recover_public_key(rsig, digest)

    def test_x_not_on_curve(self, digest):
        # about half of all x-coordinates have no curve point
        from eccore import Point

        for r in range(1, 64):
            try:
                Point.from_x(r, odd=False)
            except InvalidPublicKey:
                break
        else:
            pytest.skip("no small non-residue x found")
        with pytest.raises(RecoveryFailed):
            recover_public_key(Signature(r, 1), digest, recovery_id=0)

    def test_rejects_wrong_digest_length(self, private_key, digest):
        rsig = sign_recoverable(digest, private_key)
        with pytest.raises(InvalidMessageHash):
            recover_public_key(rsig, digest[:16])


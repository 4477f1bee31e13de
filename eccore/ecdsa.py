"""
Deterministic ECDSA over secp256k1: signing, verification, key recovery.

Signing (digest *e*, key *d*, RFC 6979 nonce *k*):

    R = k·G,   r = R.x mod n,   s = k⁻¹ (e + r·d) mod n

and s is replaced by n − s when s > n/2, so every (key, digest) pair has
exactly one canonical signature.  A candidate nonce giving r = 0 or
s = 0 is discarded and the next RFC 6979 candidate is used.

Verification:

    u1 = e·s⁻¹,  u2 = r·s⁻¹,  X = u1·G + u2·Q,  valid iff X.x mod n == r

Recovery rebuilds R from (r, recovery id) and returns
Q = r⁻¹ (s·R − e·G).

The message digest is computed by the caller (double-SHA256, Keccak-256,
…); this module only accepts the 32-byte result.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from .config import get_config
from .constants import FIELD_PRIME, MESSAGE_HASH_BYTES, ORDER
from .curve import G, Point, Scalar
from .errors import (
    InvalidMessageHash, InvalidPublicKey, RecoveryFailed,
    SignatureCreationFailed,
)
from .keys import PrivateKeyLike, PublicKey, PublicKeyLike, _private_scalar, _public_point
from .nonce import rfc6979_nonces
from .signature import RecoverableSignature, Signature

logger = logging.getLogger("eccore.ecdsa")

SignatureLike = Union[Signature, bytes, bytearray]


def _digest_scalar(message_hash: bytes) -> Scalar:
    if not isinstance(message_hash, (bytes, bytearray)) or len(message_hash) != MESSAGE_HASH_BYTES:
        size = len(message_hash) if isinstance(message_hash, (bytes, bytearray)) else "non-bytes"
        raise InvalidMessageHash(
            f"message hash must be {MESSAGE_HASH_BYTES} bytes, got {size}"
        )
    return Scalar.from_bytes_reduce(bytes(message_hash))


def _coerce_signature(signature: SignatureLike) -> Signature:
    if isinstance(signature, Signature):
        return signature
    if isinstance(signature, RecoverableSignature):
        return signature.signature
    return Signature.from_compact(bytes(signature))


# ── signing ─────────────────────────────────────────────────────────────

def _sign(message_hash: bytes, private_key: PrivateKeyLike) -> RecoverableSignature:
    e = _digest_scalar(message_hash)
    d = _private_scalar(private_key)
    max_attempts = get_config().max_nonce_retries

    for attempt, k_int in enumerate(rfc6979_nonces(d.to_bytes(), bytes(message_hash))):
        if attempt >= max_attempts:
            break
        k = Scalar(k_int)
        R = Point.from_scalar(k)
        rx, ry = R.coordinates()
        r = Scalar(rx)
        if r.is_zero():
            logger.warning(f"nonce candidate {attempt} gave r = 0, retrying")
            continue
        s = k.inv() * (e + r * d)
        if s.is_zero():
            logger.warning(f"nonce candidate {attempt} gave s = 0, retrying")
            continue

        recovery_id = (ry & 1) | (2 if rx >= ORDER else 0)
        if s.is_high():
            s = -s
            recovery_id ^= 1
        return RecoverableSignature(Signature(r.value, s.value), recovery_id)

    raise SignatureCreationFailed(
        f"no valid nonce within {max_attempts} RFC 6979 candidates"
    )


def sign(message_hash: bytes, private_key: PrivateKeyLike) -> Signature:
    """
    Produce a deterministic, low-s ECDSA signature over a 32-byte digest.

    Raises
    ------
    InvalidMessageHash
        If the digest is not 32 bytes.
    InvalidPrivateKey
        If the key is not a valid secp256k1 scalar.
    SignatureCreationFailed
        If no usable nonce was found (probability ≈ 0).
    """
    return _sign(message_hash, private_key).signature


def sign_recoverable(message_hash: bytes, private_key: PrivateKeyLike) -> RecoverableSignature:
    """Like :func:`sign`, additionally returning the recovery id."""
    return _sign(message_hash, private_key)


# ── verification ────────────────────────────────────────────────────────

def _verify_point(sig: Signature, e: Scalar, Q: Point) -> bool:
    if not sig.in_range():
        return False
    w = Scalar(sig.s).inv()
    u1 = e * w
    u2 = Scalar(sig.r) * w
    X = (u1 * G) + (u2 * Q)
    if X.is_inf():
        return False
    return X.x % ORDER == sig.r


def verify(
    signature: SignatureLike,
    message_hash: bytes,
    public_key: PublicKeyLike,
) -> bool:
    """
    Check an ECDSA signature.

    Returns ``False`` for any signature that does not verify, including
    out-of-range r/s and (under ``strict_low_s``) high-s signatures.
    Raises only for malformed *inputs*: ``InvalidMessageHash``,
    ``InvalidPublicKey``, or ``InvalidSignature`` for a wrong-length
    encoding.
    """
    e = _digest_scalar(message_hash)
    Q = _public_point(public_key)
    sig = _coerce_signature(signature)
    if get_config().strict_low_s and not sig.is_low_s:
        return False
    return _verify_point(sig, e, Q)


# ── recovery ────────────────────────────────────────────────────────────

def recover_public_key(
    signature: Union[RecoverableSignature, SignatureLike],
    message_hash: bytes,
    recovery_id: Optional[int] = None,
    compressed: bool = True,
) -> PublicKey:
    """
    Recover the signer's public key.

    *signature* is a ``RecoverableSignature``, a 65-byte ``r ‖ s ‖ v``
    blob, or a plain signature together with an explicit *recovery_id*.
    An explicit *recovery_id* takes precedence over an embedded one.

    Raises ``RecoveryFailed`` if the id is out of range, the candidate R
    is not on the curve, or the recovered key does not verify.
    """
    e = _digest_scalar(message_hash)

    if isinstance(signature, RecoverableSignature):
        sig = signature.signature
        rec_id = signature.recovery_id if recovery_id is None else recovery_id
    elif isinstance(signature, (bytes, bytearray)) and len(signature) == 65:
        sig = Signature.from_compact(bytes(signature[:64]))
        rec_id = signature[64] if recovery_id is None else recovery_id
    else:
        if recovery_id is None:
            raise RecoveryFailed("recovery id is required for a plain signature")
        sig = _coerce_signature(signature)
        rec_id = recovery_id

    if not 0 <= rec_id <= 3:
        raise RecoveryFailed(f"recovery id must be 0-3, got {rec_id}")
    if not sig.in_range():
        raise RecoveryFailed("signature values out of range")

    x = sig.r + ORDER if rec_id & 2 else sig.r
    if x >= FIELD_PRIME:
        raise RecoveryFailed("R.x overflows the field")
    try:
        R = Point.from_x(x, odd=bool(rec_id & 1))
    except InvalidPublicKey as exc:
        raise RecoveryFailed("no curve point with the given x-coordinate") from exc

    r_inv = Scalar(sig.r).inv()
    Q = r_inv * ((Scalar(sig.s) * R) - (e * G))
    if Q.is_inf():
        raise RecoveryFailed("recovered key is the point at infinity")
    if not _verify_point(sig, e, Q):
        raise RecoveryFailed("recovered key does not verify the signature")
    return PublicKey(Q, compressed=compressed)

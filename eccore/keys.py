"""
Private/public key handling and tweak arithmetic.

The tweak operations are the primitives hierarchical (BIP-32 style)
derivation is built from:

- hardened / private derivation:   child = (parent + tweak) mod n
- non-hardened / public derivation: Child = Parent + tweak·G

A zero child key is an error (``InvalidPrivateKey``); the caller is
expected to skip that derivation index.

Secret buffers
--------------
``PrivateKey`` keeps its secret in a ``bytearray`` and zeroes it on
``wipe()`` or when used as a context manager.  Python may still hold
transient immutable copies (``bytes``/``int``) during arithmetic; the
guarantee covers only buffers owned by this module.
"""

from __future__ import annotations

import hmac
import secrets
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Union

from .constants import ORDER, PRIVATE_KEY_BYTES
from .curve import G, Point, Scalar, validate_private_key, validate_public_key
from .errors import InvalidPrivateKey, InvalidPublicKey


@contextmanager
def secret_scope(data: Union[bytes, bytearray]) -> Iterator[bytearray]:
    """Yield a mutable copy of *data* that is zeroed on every exit path."""
    buf = bytearray(data)
    try:
        yield buf
    finally:
        for i in range(len(buf)):
            buf[i] = 0


class PrivateKey:
    """
    A validated secp256k1 private key.

    Usage::

        with PrivateKey(secret_bytes) as key:
            sig = sign(digest, key)
        # secret buffer zeroed here
    """

    __slots__ = ("_secret", "_wiped")

    def __init__(self, secret: Union[bytes, bytearray]) -> None:
        validate_private_key(bytes(secret))
        self._secret = bytearray(secret)
        self._wiped = False

    @classmethod
    def generate(cls) -> PrivateKey:
        """Uniform in [1, n-1] via rejection sampling."""
        while True:
            with secret_scope(secrets.token_bytes(PRIVATE_KEY_BYTES)) as candidate:
                v = int.from_bytes(candidate, "big")
                if 0 < v < ORDER:
                    return cls(candidate)

    @classmethod
    def from_scalar(cls, s: Scalar) -> PrivateKey:
        if s.is_zero():
            raise InvalidPrivateKey("private key is zero")
        return cls(s.to_bytes())

    def _require_live(self) -> None:
        if self._wiped:
            raise InvalidPrivateKey("private key has been wiped")

    @property
    def scalar(self) -> Scalar:
        self._require_live()
        return Scalar(int.from_bytes(self._secret, "big"))

    def to_bytes(self) -> bytes:
        """Explicit export of the 32-byte big-endian secret."""
        self._require_live()
        return bytes(self._secret)

    def public_key(self, compressed: bool = True) -> PublicKey:
        return PublicKey(self.scalar * G, compressed=compressed)

    def wipe(self) -> None:
        for i in range(len(self._secret)):
            self._secret[i] = 0
        self._wiped = True

    @property
    def wiped(self) -> bool:
        return self._wiped

    def __enter__(self) -> PrivateKey:
        return self

    def __exit__(self, *exc_info) -> None:
        self.wipe()

    def __eq__(self, o: object) -> bool:
        if not isinstance(o, PrivateKey):
            return NotImplemented
        return hmac.compare_digest(bytes(self._secret), bytes(o._secret))

    def __hash__(self) -> int:
        return id(self)

    def __repr__(self) -> str:
        return "PrivateKey(<wiped>)" if self._wiped else "PrivateKey(<secret>)"


@dataclass(frozen=True)
class PublicKey:
    """A curve point derived from a private key (never the identity)."""

    point: Point
    compressed: bool = field(default=True, compare=False)

    def __post_init__(self) -> None:
        if self.point.is_inf():
            raise InvalidPublicKey("public key is the point at infinity")

    @classmethod
    def from_bytes(cls, data: bytes) -> PublicKey:
        point = validate_public_key(data)
        return cls(point, compressed=len(data) == 33)

    def format(self, compressed: Optional[bool] = None) -> bytes:
        if compressed is None:
            compressed = self.compressed
        return self.point.format(compressed=compressed)

    def to_bytes(self) -> bytes:
        return self.format()

    def __bytes__(self) -> bytes:
        return self.format()

    def __repr__(self) -> str:
        return f"PublicKey({self.format(compressed=True).hex()})"


PrivateKeyLike = Union[PrivateKey, bytes, bytearray]
PublicKeyLike = Union[PublicKey, bytes, bytearray]


def _private_scalar(key: PrivateKeyLike) -> Scalar:
    if isinstance(key, PrivateKey):
        return key.scalar
    with secret_scope(key) as buf:
        return validate_private_key(bytes(buf))


def _public_point(key: PublicKeyLike) -> Point:
    if isinstance(key, PublicKey):
        return key.point
    return validate_public_key(bytes(key))


def _tweak_scalar(tweak: Union[bytes, bytearray, Scalar]) -> Scalar:
    if isinstance(tweak, Scalar):
        return tweak
    if len(tweak) != PRIVATE_KEY_BYTES:
        raise InvalidPrivateKey(
            f"tweak must be {PRIVATE_KEY_BYTES} bytes, got {len(tweak)}"
        )
    v = int.from_bytes(tweak, "big")
    if v >= ORDER:
        raise InvalidPrivateKey("tweak out of range")
    return Scalar(v)


# ── derivation and tweaks ───────────────────────────────────────────────

def generate_private_key() -> PrivateKey:
    return PrivateKey.generate()


def derive_public_key(private_key: PrivateKeyLike, compressed: bool = True) -> PublicKey:
    """privateKey·G.  Raises ``InvalidPrivateKey`` on invalid input."""
    return PublicKey(_private_scalar(private_key) * G, compressed=compressed)


def private_key_tweak_add(key: PrivateKeyLike, tweak) -> PrivateKey:
    """(key + tweak) mod n; a zero result raises ``InvalidPrivateKey``."""
    result = _private_scalar(key) + _tweak_scalar(tweak)
    if result.is_zero():
        raise InvalidPrivateKey("tweaked private key is zero")
    return PrivateKey.from_scalar(result)


def private_key_tweak_multiply(key: PrivateKeyLike, tweak) -> PrivateKey:
    """(key · tweak) mod n; a zero result raises ``InvalidPrivateKey``."""
    result = _private_scalar(key) * _tweak_scalar(tweak)
    if result.is_zero():
        raise InvalidPrivateKey("tweaked private key is zero")
    return PrivateKey.from_scalar(result)


def private_key_negate(key: PrivateKeyLike) -> PrivateKey:
    """(n - key) mod n."""
    return PrivateKey.from_scalar(-_private_scalar(key))


def public_key_tweak_add(
    pubkey: PublicKeyLike,
    tweak,
    compressed: bool = True,
) -> PublicKey:
    """pubkey + tweak·G, without needing the private key."""
    result = _public_point(pubkey) + (_tweak_scalar(tweak) * G)
    if result.is_inf():
        raise InvalidPublicKey("tweaked public key is the point at infinity")
    return PublicKey(result, compressed=compressed)


def public_key_combine(keys: Sequence[PublicKeyLike], compressed: bool = True) -> PublicKey:
    """Sum of public keys."""
    if not keys:
        raise InvalidPublicKey("no public keys to combine")
    total = Point.sum_points(_public_point(k) for k in keys)
    if total.is_inf():
        raise InvalidPublicKey("combined public key is the point at infinity")
    return PublicKey(total, compressed=compressed)

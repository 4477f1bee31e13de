"""
Elliptic curve arithmetic on secp256k1 via libsecp256k1.

Scalar-field arithmetic (mod n) is plain Python integer arithmetic.  Every
group operation involving a point is delegated to ``coincurve``, so that
multiplication by a secret scalar runs through libsecp256k1's
constant-time ``ecmult_gen`` / ``ecmult_const`` rather than a
data-dependent double-and-add loop.

Besides the ``Scalar`` / ``Point`` value types, the module exposes the
functional interface used by the rest of the package:

    scalar_add, scalar_negate, scalar_multiply,
    point_add, point_multiply, is_on_curve,
    validate_private_key, validate_public_key

References
----------
- SEC 1 v2 §2.3.3 / §2.3.4  point encoding and decoding
- SEC 2 v2 §2.4.1           secp256k1 domain parameters
"""

from __future__ import annotations

import secrets
from typing import Iterable, Optional, Tuple

from .constants import (
    COMPRESSED_BYTES, CURVE_B, FIELD_PRIME, ORDER, PREFIX_EVEN, PREFIX_ODD,
    PREFIX_UNCOMPRESSED, PRIVATE_KEY_BYTES, SCALAR_BYTES, UNCOMPRESSED_BYTES,
)
from .context import _PK, _SK, init_context
from .errors import InvalidPrivateKey, InvalidPublicKey

# Hard failure at import time if the backend is missing or wrong.
CONTEXT = init_context()


# ── Scalar  (Z_n arithmetic) ────────────────────────────────────────────
class Scalar:
    """Element of the scalar field  Z_n  where *n* = ``ORDER``."""

    __slots__ = ("_v",)

    def __init__(self, value: int) -> None:
        self._v = value % ORDER

    @classmethod
    def zero(cls) -> Scalar:
        return cls(0)

    @classmethod
    def one(cls) -> Scalar:
        return cls(1)

    @classmethod
    def random(cls) -> Scalar:
        """Uniform in [1, n-1] via rejection sampling."""
        while True:
            c = int.from_bytes(secrets.token_bytes(SCALAR_BYTES), "big")
            if 0 < c < ORDER:
                return cls(c)

    @classmethod
    def from_bytes(cls, data: bytes) -> Scalar:
        """Strict decoding: exactly 32 bytes and below n."""
        if len(data) != SCALAR_BYTES:
            raise ValueError(f"need {SCALAR_BYTES} bytes, got {len(data)}")
        v = int.from_bytes(data, "big")
        if v >= ORDER:
            raise ValueError("scalar out of range")
        return cls(v)

    @classmethod
    def from_bytes_reduce(cls, data: bytes) -> Scalar:
        """Reduce arbitrary bytes modulo n (hash outputs, digests)."""
        return cls(int.from_bytes(data, "big"))

    def to_bytes(self) -> bytes:
        return self._v.to_bytes(SCALAR_BYTES, "big")

    @property
    def value(self) -> int:
        return self._v

    def is_zero(self) -> bool:
        return self._v == 0

    def is_high(self) -> bool:
        """True if the value exceeds n/2."""
        return self._v > ORDER >> 1

    def __add__(self, o: Scalar) -> Scalar:
        if not isinstance(o, Scalar):
            return NotImplemented
        return Scalar(self._v + o._v)

    def __radd__(self, o):
        if isinstance(o, int) and o == 0:
            return self                       # for sum()
        return NotImplemented

    def __sub__(self, o: Scalar) -> Scalar:
        if not isinstance(o, Scalar):
            return NotImplemented
        return Scalar(self._v - o._v)

    def __mul__(self, o):
        if isinstance(o, Scalar):
            return Scalar(self._v * o._v)
        if isinstance(o, Point):
            return o._smul(self)
        return NotImplemented

    def __rmul__(self, o):
        if isinstance(o, int):
            return Scalar(o * self._v)
        return NotImplemented

    def __neg__(self) -> Scalar:
        return Scalar(-self._v)

    def __truediv__(self, o: Scalar) -> Scalar:
        if not isinstance(o, Scalar):
            return NotImplemented
        return self * o.inv()

    def __pow__(self, e: int) -> Scalar:
        if e < 0:
            return self.inv() ** (-e)
        return Scalar(pow(self._v, e, ORDER))

    def inv(self) -> Scalar:
        """Multiplicative inverse via Fermat's little theorem."""
        if self._v == 0:
            raise ZeroDivisionError("cannot invert zero scalar")
        return Scalar(pow(self._v, ORDER - 2, ORDER))

    def __eq__(self, o: object) -> bool:
        if isinstance(o, Scalar):
            return self._v == o._v
        if isinstance(o, int):
            return self._v == o % ORDER
        return False

    def __hash__(self) -> int:
        return hash(self._v)

    def __bool__(self) -> bool:
        return self._v != 0

    def __repr__(self) -> str:
        # never print the full value; scalars are frequently secret
        return "Scalar(0)" if self._v == 0 else "Scalar(…)"


# ── Point  (secp256k1 group element via libsecp256k1) ───────────────────
class Point:
    """
    Point on secp256k1.

    The identity (point at infinity) is a flag rather than a
    ``coincurve.PublicKey``, since libsecp256k1 cannot represent it.  It
    only ever appears as an arithmetic intermediate; it has no encoding
    and is never a valid public key.
    """

    __slots__ = ("_pk", "_inf")

    def __init__(self, *, pk: Optional[_PK] = None, infinity: bool = False):
        if pk is None and not infinity:
            raise ValueError("a finite point needs a backend key")
        self._pk: Optional[_PK] = pk
        self._inf: bool = infinity

    # constructors -----------------------------------------------------------
    @classmethod
    def generator(cls) -> Point:
        return cls(pk=_SK((1).to_bytes(SCALAR_BYTES, "big")).public_key)

    @classmethod
    def identity(cls) -> Point:
        return cls(infinity=True)

    @classmethod
    def from_scalar(cls, s: Scalar) -> Point:
        """Compute  s·G  (constant time in *s*)."""
        if s.is_zero():
            return cls.identity()
        return cls(pk=_SK(s.to_bytes()).public_key)

    @classmethod
    def from_bytes(cls, data: bytes) -> Point:
        """
        Decode a SEC 1 compressed (33 B) or uncompressed (65 B) point.

        Raises ``InvalidPublicKey`` on an unknown prefix, a coordinate
        outside the field, a point off the curve, or an identity encoding.
        """
        data = bytes(data)
        if len(data) == COMPRESSED_BYTES:
            if data[0] not in (PREFIX_EVEN, PREFIX_ODD):
                raise InvalidPublicKey(f"unrecognised prefix 0x{data[0]:02x}")
            x = int.from_bytes(data[1:], "big")
            return cls.from_x(x, odd=data[0] == PREFIX_ODD)
        if len(data) == UNCOMPRESSED_BYTES:
            if data[0] != PREFIX_UNCOMPRESSED:
                raise InvalidPublicKey(f"unrecognised prefix 0x{data[0]:02x}")
            x = int.from_bytes(data[1:33], "big")
            y = int.from_bytes(data[33:], "big")
            if not is_on_curve(x, y):
                raise InvalidPublicKey("point does not satisfy y² = x³ + 7")
            return cls._from_backend(data)
        raise InvalidPublicKey(
            f"expected {COMPRESSED_BYTES} or {UNCOMPRESSED_BYTES} bytes, got {len(data)}"
        )

    @classmethod
    def from_x(cls, x: int, odd: bool) -> Point:
        """Lift an x-coordinate to the point with the requested y parity."""
        if not 0 <= x < FIELD_PRIME:
            raise InvalidPublicKey("x-coordinate outside the field")
        y_sq = (pow(x, 3, FIELD_PRIME) + CURVE_B) % FIELD_PRIME
        # p ≡ 3 (mod 4), so a square root is y_sq^((p+1)/4) when one exists
        y = pow(y_sq, (FIELD_PRIME + 1) // 4, FIELD_PRIME)
        if (y * y) % FIELD_PRIME != y_sq:
            raise InvalidPublicKey("x-coordinate is not on the curve")
        prefix = PREFIX_ODD if odd else PREFIX_EVEN
        return cls._from_backend(bytes([prefix]) + x.to_bytes(32, "big"))

    @classmethod
    def _from_backend(cls, encoded: bytes) -> Point:
        try:
            return cls(pk=_PK(encoded))
        except ValueError as e:
            raise InvalidPublicKey("backend rejected point encoding") from e

    # serialisation ----------------------------------------------------------
    def format(self, compressed: bool = True) -> bytes:
        if self._inf:
            raise InvalidPublicKey("the point at infinity has no encoding")
        return self._pk.format(compressed=compressed)  # type: ignore[union-attr]

    def to_bytes(self) -> bytes:
        return self.format(compressed=True)

    @property
    def x(self) -> int:
        return self.coordinates()[0]

    @property
    def y(self) -> int:
        return self.coordinates()[1]

    def coordinates(self) -> Tuple[int, int]:
        if self._inf:
            raise ValueError("the point at infinity has no affine coordinates")
        return self._pk.point()  # type: ignore[union-attr]

    def is_inf(self) -> bool:
        return self._inf

    # group operations -------------------------------------------------------
    def _smul(self, s: Scalar) -> Point:
        """Scalar multiplication  s · self  (libsecp256k1 ecmult_const)."""
        if self._inf or s.is_zero():
            return Point.identity()
        return Point(pk=self._pk.multiply(s.to_bytes()))  # type: ignore[union-attr]

    def __neg__(self) -> Point:
        if self._inf:
            return self
        raw = bytearray(self.format(compressed=True))
        raw[0] ^= 0x01            # 0x02 ↔ 0x03 flip parity
        return Point(pk=_PK(bytes(raw)))

    def __add__(self, o: Point) -> Point:
        if not isinstance(o, Point):
            return NotImplemented
        if self._inf:
            return o
        if o._inf:
            return self
        if self == -o:
            return Point.identity()
        return Point(pk=_PK.combine_keys([self._pk, o._pk]))  # type: ignore[list-item]

    def __sub__(self, o: Point) -> Point:
        return self + (-o)

    def __rmul__(self, s) -> Point:
        if isinstance(s, Scalar):
            return self._smul(s)
        if isinstance(s, int):
            return self._smul(Scalar(s))
        return NotImplemented

    def __eq__(self, o: object) -> bool:
        if not isinstance(o, Point):
            return False
        if self._inf or o._inf:
            return self._inf and o._inf
        return self._pk.format() == o._pk.format()  # type: ignore[union-attr]

    def __hash__(self) -> int:
        return hash(b"" if self._inf else self.to_bytes())

    def __repr__(self) -> str:
        if self._inf:
            return "Point(∞)"
        return f"Point({self.to_bytes().hex()})"

    @staticmethod
    def sum_points(points: Iterable[Point]) -> Point:
        """Add many points, skipping identities."""
        total = Point.identity()
        for p in points:
            total = total + p
        return total


G = Point.generator()


# ── functional interface ────────────────────────────────────────────────

def scalar_add(a: Scalar, b: Scalar) -> Scalar:
    return a + b


def scalar_negate(a: Scalar) -> Scalar:
    return -a


def scalar_multiply(a: Scalar, b: Scalar) -> Scalar:
    return a * b


def point_add(p: Point, q: Point) -> Point:
    return p + q


def point_multiply(k: Scalar, point: Optional[Point] = None) -> Point:
    """k·point, or k·G when *point* is omitted.  Constant time in *k*."""
    if point is None:
        return Point.from_scalar(k)
    return point._smul(k)


def is_on_curve(x: int, y: int) -> bool:
    """Check  y² ≡ x³ + 7 (mod p)  for field elements x, y."""
    if not (0 <= x < FIELD_PRIME and 0 <= y < FIELD_PRIME):
        return False
    return (y * y - pow(x, 3, FIELD_PRIME) - CURVE_B) % FIELD_PRIME == 0


def validate_private_key(data: bytes) -> Scalar:
    """Decode a 32-byte big-endian private key in [1, n-1]."""
    if len(data) != PRIVATE_KEY_BYTES:
        raise InvalidPrivateKey(
            f"private key must be {PRIVATE_KEY_BYTES} bytes, got {len(data)}"
        )
    v = int.from_bytes(data, "big")
    if v == 0:
        raise InvalidPrivateKey("private key is zero")
    if v >= ORDER:
        raise InvalidPrivateKey("private key is not below the group order")
    return Scalar(v)


def validate_public_key(data: bytes) -> Point:
    """Decode and validate a SEC 1 public key (never the identity)."""
    return Point.from_bytes(data)

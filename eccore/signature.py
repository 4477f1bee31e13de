"""
ECDSA signature value types and their encodings.

- compact:      64 bytes  r ‖ s  (big-endian)
- recoverable:  65 bytes  r ‖ s ‖ v,  v ∈ {0, 1, 2, 3}
- DER:          ASN.1 ``SEQUENCE { INTEGER r, INTEGER s }``

Parsing the compact form only checks the length; range checks on r and
s belong to verification, which reports them as a failed signature
rather than an exception.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import (
    COMPACT_SIGNATURE_BYTES, HALF_ORDER, ORDER, RECOVERABLE_SIGNATURE_BYTES,
    SCALAR_BYTES,
)
from .context import cdata_to_der, der_to_cdata, deserialize_compact, serialize_compact
from .errors import InvalidSignature


@dataclass(frozen=True)
class Signature:
    """ECDSA pair (r, s)."""

    r: int
    s: int

    @classmethod
    def from_compact(cls, data: bytes) -> Signature:
        if len(data) != COMPACT_SIGNATURE_BYTES:
            raise InvalidSignature(
                f"compact signature must be {COMPACT_SIGNATURE_BYTES} bytes, got {len(data)}"
            )
        return cls(
            r=int.from_bytes(data[:SCALAR_BYTES], "big"),
            s=int.from_bytes(data[SCALAR_BYTES:], "big"),
        )

    def to_compact(self) -> bytes:
        return self.r.to_bytes(SCALAR_BYTES, "big") + self.s.to_bytes(SCALAR_BYTES, "big")

    @classmethod
    def from_der(cls, data: bytes) -> Signature:
        """Parse a strict DER signature."""
        try:
            return cls.from_compact(serialize_compact(der_to_cdata(data)))
        except ValueError as e:
            raise InvalidSignature("malformed DER signature") from e

    def to_der(self) -> bytes:
        if not self.in_range():
            raise InvalidSignature("r and s must be in [1, n-1] to DER-encode")
        try:
            return cdata_to_der(deserialize_compact(self.to_compact()))
        except ValueError as e:
            raise InvalidSignature("signature cannot be DER-encoded") from e

    def in_range(self) -> bool:
        return 0 < self.r < ORDER and 0 < self.s < ORDER

    @property
    def is_low_s(self) -> bool:
        return self.s <= HALF_ORDER

    def normalize(self) -> Signature:
        """Return the low-s form (s ≤ n/2) of this signature."""
        if self.is_low_s:
            return self
        return Signature(self.r, ORDER - self.s)

    def __bytes__(self) -> bytes:
        return self.to_compact()


@dataclass(frozen=True)
class RecoverableSignature:
    """A signature plus the recovery id needed to rebuild the public key.

    Bit 0 of the id is the parity of R.y, bit 1 is set when R.x ≥ n.
    """

    signature: Signature
    recovery_id: int

    def __post_init__(self) -> None:
        if not 0 <= self.recovery_id <= 3:
            raise InvalidSignature(f"recovery id must be 0-3, got {self.recovery_id}")

    @property
    def r(self) -> int:
        return self.signature.r

    @property
    def s(self) -> int:
        return self.signature.s

    @classmethod
    def from_bytes(cls, data: bytes) -> RecoverableSignature:
        if len(data) != RECOVERABLE_SIGNATURE_BYTES:
            raise InvalidSignature(
                f"recoverable signature must be {RECOVERABLE_SIGNATURE_BYTES} bytes, got {len(data)}"
            )
        return cls(Signature.from_compact(data[:COMPACT_SIGNATURE_BYTES]), data[-1])

    def to_bytes(self) -> bytes:
        return self.signature.to_compact() + bytes([self.recovery_id])

    def __bytes__(self) -> bytes:
        return self.to_bytes()


def normalize_s(signature: Signature) -> Signature:
    return signature.normalize()

"""
Feldman polynomial commitments.

For a sharing polynomial  f(x) = a_0 + a_1 x + … + a_{t-1} x^{t-1}  the
commitment is the vector

    C_j = a_j·G   for  j = 0, …, t-1

and a share  s_i = f(i)  is valid iff

    s_i·G  ==  Σ_j  C_j · i^j.

C_0 = a_0·G is the public image of the shared secret; summing the C_0 of
every dealer gives the joint public key.

Feldman commitments are computationally hiding only (C_0 reveals
a_0·G), which is exactly what a DKG publishes anyway.

References
----------
- Feldman (1987). "A Practical Scheme for Non-Interactive Verifiable
  Secret Sharing."  FOCS 1987.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from .constants import COMPRESSED_BYTES
from .curve import Point, Scalar
from .polynomial import commit_polynomial, evaluate_commitments, verify_share_feldman


@dataclass(frozen=True)
class FeldmanCommitment:
    """Commitment to a polynomial of degree ``threshold - 1``."""

    points: Tuple[Point, ...]

    @classmethod
    def commit(cls, coeffs: Sequence[Scalar]) -> FeldmanCommitment:
        if not coeffs:
            raise ValueError("cannot commit to an empty polynomial")
        return cls(points=tuple(commit_polynomial(coeffs)))

    @property
    def threshold(self) -> int:
        return len(self.points)

    @property
    def constant(self) -> Point:
        """C_0 = a_0·G."""
        return self.points[0]

    def evaluate(self, index: int) -> Point:
        """f(index)·G computed from the commitments alone."""
        return evaluate_commitments(self.points, index)

    def verify_share(self, index: int, share: Scalar) -> bool:
        return verify_share_feldman(share, index, self.points)

    def __add__(self, o: FeldmanCommitment) -> FeldmanCommitment:
        """Commitment to the sum of two polynomials of equal degree."""
        if not isinstance(o, FeldmanCommitment):
            return NotImplemented
        if o.threshold != self.threshold:
            raise ValueError("commitments have different thresholds")
        return FeldmanCommitment(
            points=tuple(a + b for a, b in zip(self.points, o.points))
        )

    def to_bytes(self) -> bytes:
        """1-byte count followed by the compressed points."""
        return bytes([self.threshold]) + b"".join(p.to_bytes() for p in self.points)

    @classmethod
    def from_bytes(cls, data: bytes) -> FeldmanCommitment:
        if not data:
            raise ValueError("empty commitment encoding")
        count = data[0]
        if count == 0 or len(data) != 1 + count * COMPRESSED_BYTES:
            raise ValueError(
                f"commitment encoding length {len(data)} does not match count {count}"
            )
        points = tuple(
            Point.from_bytes(data[1 + i * COMPRESSED_BYTES: 1 + (i + 1) * COMPRESSED_BYTES])
            for i in range(count)
        )
        return cls(points=points)

"""
Polynomial arithmetic and Lagrange interpolation over Z_n.

A Shamir sharing of a secret *s* with threshold *t* is a random polynomial

    f(x) = a_0 + a_1 x + … + a_{t-1} x^{t-1},   a_0 = s

whose evaluations  f(1), …, f(n)  are the shares.  Any *t* of them
determine  f(0) = s  by Lagrange interpolation; Feldman commitments
C_j = a_j·G  let each holder check their share without learning *s*.

References
----------
- Shamir (1979). "How to Share a Secret."  CACM 22(11).
- Feldman (1987). "A Practical Scheme for Non-Interactive Verifiable
  Secret Sharing."  FOCS 1987.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .curve import G, Point, Scalar

#  coefficients[i] = a_i   so  f(x) = a_0 + a_1 x + a_2 x^2 + …


def sample_polynomial(
    degree: int,
    constant: Optional[Scalar] = None,
) -> List[Scalar]:
    """
    Sample a uniformly random polynomial of the given degree.

    If *constant* is given it becomes a_0 (the shared secret); a_0 = 0 is
    used for re-randomising existing shares.
    """
    if degree < 0:
        raise ValueError("degree must be ≥ 0")
    a0 = constant if constant is not None else Scalar.random()
    return [a0] + [Scalar.random() for _ in range(degree)]


def evaluate(coeffs: Sequence[Scalar], x: Scalar) -> Scalar:
    """Evaluate f(x) via Horner's method."""
    if not coeffs:
        return Scalar.zero()
    result = coeffs[-1]
    for c in reversed(coeffs[:-1]):
        result = result * x + c
    return result


def wipe_polynomial(coeffs: List[Scalar]) -> None:
    """Drop references to secret coefficients (best effort in Python)."""
    for i in range(len(coeffs)):
        coeffs[i] = Scalar.zero()
    coeffs.clear()


# ── Lagrange interpolation at x = 0 ─────────────────────────────────────

def batch_inverse(scalars: Sequence[Scalar]) -> List[Scalar]:
    """
    Invert non-zero scalars with a single modular inversion
    (Montgomery's trick).  Raises ``ZeroDivisionError`` on a zero.
    """
    n = len(scalars)
    if n == 0:
        return []

    prefix: List[Scalar] = [scalars[0]]
    for s in scalars[1:]:
        prefix.append(prefix[-1] * s)

    inv_all = prefix[-1].inv()
    result = [Scalar.zero()] * n
    for i in range(n - 1, 0, -1):
        result[i] = prefix[i - 1] * inv_all
        inv_all = inv_all * scalars[i]
    result[0] = inv_all
    return result


def lagrange_coefficients(indices: Sequence[int]) -> List[Scalar]:
    r"""
    Lagrange basis values at zero for every index in *indices*:

    .. math::
        \lambda_i = \prod_{j \ne i} \frac{j}{j - i}

    Indices must be distinct and non-zero.
    """
    if len(set(indices)) != len(indices):
        raise ValueError("interpolation indices must be distinct")
    nums: List[Scalar] = []
    dens: List[Scalar] = []
    for i in indices:
        if Scalar(i).is_zero():
            raise ValueError("interpolation index must be non-zero")
        num = Scalar.one()
        den = Scalar.one()
        for j in indices:
            if j == i:
                continue
            num = num * Scalar(j)
            den = den * (Scalar(j) - Scalar(i))
        nums.append(num)
        dens.append(den)
    return [n * d for n, d in zip(nums, batch_inverse(dens))]


def lagrange_coefficient(target: int, indices: Sequence[int]) -> Scalar:
    """Single Lagrange coefficient for *target* within *indices*."""
    if target not in indices:
        raise ValueError(f"target {target} not in indices")
    return lagrange_coefficients(indices)[list(indices).index(target)]


def interpolate_at_zero(indices: Sequence[int], values: Sequence[Scalar]) -> Scalar:
    """Recover f(0) from (i, f(i)) pairs."""
    if len(indices) != len(values):
        raise ValueError("indices and values must have equal length")
    total = Scalar.zero()
    for lam, v in zip(lagrange_coefficients(indices), values):
        total = total + lam * v
    return total


def interpolate_points_at_zero(indices: Sequence[int], points: Sequence[Point]) -> Point:
    """Same as :func:`interpolate_at_zero`, in the exponent: recovers f(0)·G."""
    if len(indices) != len(points):
        raise ValueError("indices and points must have equal length")
    return Point.sum_points(
        lam * p for lam, p in zip(lagrange_coefficients(indices), points)
    )


# ── Feldman commitments ─────────────────────────────────────────────────

def commit_polynomial(coeffs: Sequence[Scalar]) -> List[Point]:
    """Feldman commitment:  C_j = a_j · G  for each coefficient."""
    return [c * G for c in coeffs]


def evaluate_commitments(commitments: Sequence[Point], index: int) -> Point:
    """Σ_j  C_j · index^j, the public image  f(index)·G."""
    x = Scalar(index)
    x_pow = Scalar.one()
    acc = Point.identity()
    for c_j in commitments:
        acc = acc + (x_pow * c_j)
        x_pow = x_pow * x
    return acc


def verify_share_feldman(
    share: Scalar,
    index: int,
    commitments: Sequence[Point],
) -> bool:
    """Check  share · G  ==  Σ_j  C_j · index^j."""
    return share * G == evaluate_commitments(commitments, index)

"""
Proof that a DKG participant knows the secret behind its first commitment.

Each participant publishes  C_0 = a_0·G  and proves knowledge of a_0 with
a Fiat-Shamir Schnorr proof whose challenge covers the participant index
and the (t, n) parameters.  Without it, a participant who speaks last
could publish  C_0 = X − Σ(other C_0)  and force the joint key to an X it
controls (rogue-key attack).

The proof nonce is hedged as in BIP-340: it is derived from the secret,
the statement and 32 fresh random bytes, so a weak RNG alone does not
leak a_0.

References
----------
- Schnorr (1989). "Efficient Identification and Signatures for Smart
  Cards."  CRYPTO 1989.
- BIP-340 §Default Signing (auxiliary randomness).
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from .constants import COMPRESSED_BYTES, SCALAR_BYTES
from .curve import G, Point, Scalar
from .hash import TAG_PROOF_NONCE, hash_schnorr_proof, tagged_hash

PROOF_BYTES = COMPRESSED_BYTES + SCALAR_BYTES


def _proof_nonce(secret: Scalar, public: Point, context: bytes) -> Scalar:
    while True:
        aux = secrets.token_bytes(32)
        k = Scalar.from_bytes_reduce(tagged_hash(TAG_PROOF_NONCE, secret, public, context, aux))
        if not k.is_zero():
            return k


@dataclass(frozen=True)
class SchnorrProof:
    """
    Knowledge of  x  with  Y = x·G, as the pair (R, z):

        R = k·G,   c = H(R, Y, ctx),   z = k + c·x

    and accepted iff  z·G − c·Y == R.
    """

    R: Point
    z: Scalar

    @classmethod
    def prove(cls, secret: Scalar, public: Point, context: bytes = b"") -> SchnorrProof:
        if secret.is_zero():
            raise ValueError("cannot prove knowledge of a zero secret")
        k = _proof_nonce(secret, public, context)
        nonce_point = k * G
        challenge = hash_schnorr_proof(nonce_point, public, context)
        return cls(R=nonce_point, z=k + challenge * secret)

    def verify(self, public: Point, context: bytes = b"") -> bool:
        if self.R.is_inf() or public.is_inf():
            return False
        challenge = hash_schnorr_proof(self.R, public, context)
        return self.z * G - challenge * public == self.R

    def to_bytes(self) -> bytes:
        """R (33 B, compressed) ‖ z (32 B)."""
        return self.R.to_bytes() + self.z.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> SchnorrProof:
        if len(data) != PROOF_BYTES:
            raise ValueError(f"proof must be {PROOF_BYTES} bytes, got {len(data)}")
        return cls(
            R=Point.from_bytes(data[:COMPRESSED_BYTES]),
            z=Scalar.from_bytes(data[COMPRESSED_BYTES:]),
        )

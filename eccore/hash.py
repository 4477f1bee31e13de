"""
Tagged hashing for DKG Fiat-Shamir challenges.

Every challenge is a BIP-340 style tagged hash, SHA-256 over the 64-byte
prefix  SHA-256(tag) ‖ SHA-256(tag)  followed by the encoded arguments.
Distinct tags keep proofs from one purpose from being replayed as
another.

Signing does not hash here: ECDSA consumes a digest that the caller
already computed.
"""

from __future__ import annotations

import hashlib
from functools import lru_cache
from typing import Any

from .constants import SCALAR_BYTES
from .curve import Point, Scalar

TAG_PROOF_OF_KNOWLEDGE = b"eccore/v1/dkg/proof_of_knowledge"
TAG_DKG_CONTEXT = b"eccore/v1/dkg/context"
TAG_PROOF_NONCE = b"eccore/v1/dkg/proof_nonce"


@lru_cache(maxsize=None)
def _tag_prefix(tag: bytes) -> bytes:
    digest = hashlib.sha256(tag).digest()
    return digest + digest


def _encode_item(item: Any) -> bytes:
    """Canonical, length-prefixed encoding of one hash argument."""
    if isinstance(item, bool):
        raise TypeError("booleans are not hash arguments")
    if isinstance(item, (Scalar, Point)):
        return item.to_bytes()
    if isinstance(item, int):
        return item.to_bytes(SCALAR_BYTES, "big")
    if isinstance(item, (bytes, bytearray)):
        return len(item).to_bytes(4, "big") + bytes(item)
    if isinstance(item, (list, tuple)):
        return len(item).to_bytes(4, "big") + b"".join(map(_encode_item, item))
    raise TypeError(f"cannot hash {type(item).__name__}")


def tagged_hash(tag: bytes, *args: Any) -> bytes:
    h = hashlib.sha256(_tag_prefix(tag))
    for arg in args:
        h.update(_encode_item(arg))
    return h.digest()


def hash_schnorr_proof(R: Point, Y: Point, context: bytes = b"") -> Scalar:
    """Challenge  c = H(R, Y, context)  reduced mod n."""
    return Scalar.from_bytes_reduce(tagged_hash(TAG_PROOF_OF_KNOWLEDGE, R, Y, context))


def hash_dkg_context(participant: int, threshold: int, participants: int) -> bytes:
    """Binds a proof of knowledge to one participant of one (t, n) run."""
    return tagged_hash(TAG_DKG_CONTEXT, participant, threshold, participants)

"""
eccore: secp256k1 key handling, deterministic ECDSA and distributed key
generation for a multi-chain wallet.

- **Keys**: validation, public key derivation and BIP-32 style tweaks
- **ECDSA**: RFC 6979 deterministic, low-s signatures over caller-supplied
  32-byte digests, with public key recovery
- **DKG**: Pedersen-style distributed key generation with Feldman VSS,
  plus trusted-dealer splitting and proactive share refresh

All point arithmetic runs through libsecp256k1 (via ``coincurve``); the
backend is validated once at import and a missing or broken backend is a
hard ``ContextInitializationFailed``.

Quick start
-----------
::

    import hashlib
    from eccore import (
        generate_private_key, sign, sign_recoverable, verify, recover_public_key,
    )

    key = generate_private_key()
    digest = hashlib.sha256(b"transfer 1 BTC").digest()

    sig = sign(digest, key)
    assert verify(sig, digest, key.public_key())

    rsig = sign_recoverable(digest, key)
    assert recover_public_key(rsig, digest) == key.public_key()

Distributed key generation::

    from eccore import run_dkg, reconstruct_from_shares

    result = run_dkg(threshold=2, participants=3)
    print(result.joint_public_key)
"""

__version__ = "0.1.0"

# ── context & configuration ─────────────────────────────────────────────
from .context import CurveContext, init_context, get_context
from .config import CoreConfig, get_config, set_config

# ── errors ──────────────────────────────────────────────────────────────
from .errors import (
    ECCoreError,
    InvalidPrivateKey,
    InvalidPublicKey,
    InvalidMessageHash,
    InvalidSignature,
    SignatureCreationFailed,
    RecoveryFailed,
    ShareVerificationFailed,
    ThresholdNotMet,
    DKGStateError,
    ContextInitializationFailed,
    is_retryable,
)

# ── core types ──────────────────────────────────────────────────────────
from .constants import FIELD_PRIME, ORDER
from .curve import (
    Scalar,
    Point,
    G,
    scalar_add,
    scalar_negate,
    scalar_multiply,
    point_add,
    point_multiply,
    is_on_curve,
    validate_private_key,
    validate_public_key,
)

# ── keys ────────────────────────────────────────────────────────────────
from .keys import (
    PrivateKey,
    PublicKey,
    secret_scope,
    generate_private_key,
    derive_public_key,
    private_key_tweak_add,
    private_key_tweak_multiply,
    private_key_negate,
    public_key_tweak_add,
    public_key_combine,
)

# ── ECDSA ───────────────────────────────────────────────────────────────
from .signature import Signature, RecoverableSignature, normalize_s
from .nonce import rfc6979_nonces
from .ecdsa import sign, sign_recoverable, verify, recover_public_key

# ── DKG ─────────────────────────────────────────────────────────────────
from .dkg import (
    DKGState,
    DKGParticipant,
    DKGCommitment,
    DKGResult,
    ShareMessage,
    KeyShare,
    generate_shares,
    verify_commitment,
    verify_share,
    combine_shares,
    reconstruct_from_shares,
    run_dkg,
)
from .sharing import split_secret, accept_dealer_share, refresh_shares

# ── building blocks ─────────────────────────────────────────────────────
from .polynomial import sample_polynomial, evaluate, lagrange_coefficient, interpolate_at_zero
from .commitment import FeldmanCommitment
from .proofs import SchnorrProof

__all__ = [
    # version
    "__version__",
    # context & config
    "CurveContext", "init_context", "get_context",
    "CoreConfig", "get_config", "set_config",
    # errors
    "ECCoreError", "InvalidPrivateKey", "InvalidPublicKey", "InvalidMessageHash",
    "InvalidSignature", "SignatureCreationFailed", "RecoveryFailed",
    "ShareVerificationFailed", "ThresholdNotMet", "DKGStateError",
    "ContextInitializationFailed", "is_retryable",
    # core
    "Scalar", "Point", "G", "ORDER", "FIELD_PRIME",
    "scalar_add", "scalar_negate", "scalar_multiply",
    "point_add", "point_multiply", "is_on_curve",
    "validate_private_key", "validate_public_key",
    # keys
    "PrivateKey", "PublicKey", "secret_scope", "generate_private_key",
    "derive_public_key", "private_key_tweak_add", "private_key_tweak_multiply",
    "private_key_negate", "public_key_tweak_add", "public_key_combine",
    # ecdsa
    "Signature", "RecoverableSignature", "normalize_s", "rfc6979_nonces",
    "sign", "sign_recoverable", "verify", "recover_public_key",
    # dkg
    "DKGState", "DKGParticipant", "DKGCommitment", "DKGResult", "ShareMessage",
    "KeyShare", "generate_shares", "verify_commitment", "verify_share",
    "combine_shares", "reconstruct_from_shares", "run_dkg",
    "split_secret", "accept_dealer_share", "refresh_shares",
    # building blocks
    "sample_polynomial", "evaluate", "lagrange_coefficient", "interpolate_at_zero",
    "FeldmanCommitment", "SchnorrProof",
]

"""
Exception taxonomy for the cryptographic core.

Every public operation either returns a well-formed result or raises one
of the named errors below.  Callers at the wallet boundary only need
:func:`is_retryable`: every failure is final except
:class:`ShareVerificationFailed`, which is retried by restarting the whole
DKG run from scratch.
"""

from __future__ import annotations

from typing import Optional


class ECCoreError(Exception):
    """Base class for all errors raised by ``eccore``."""

    retryable: bool = False


class InvalidPrivateKey(ECCoreError, ValueError):
    """Private key (or tweak) is not a 32-byte scalar in [1, n-1]."""


class InvalidPublicKey(ECCoreError, ValueError):
    """Public key encoding is malformed, off-curve, or the identity."""


class InvalidMessageHash(ECCoreError, ValueError):
    """Message digest is not exactly 32 bytes."""


class InvalidSignature(ECCoreError, ValueError):
    """Signature encoding cannot be parsed (wrong length, bad DER)."""


class SignatureCreationFailed(ECCoreError):
    """No usable nonce was found within the configured retry budget."""


class RecoveryFailed(ECCoreError):
    """Public key could not be recovered from a signature."""


class ShareVerificationFailed(ECCoreError):
    """A DKG share or commitment failed verification; the run is aborted."""

    retryable = True

    def __init__(self, participant: Optional[int], reason: str = "") -> None:
        self.participant = participant
        self.reason = reason
        who = "unknown participant" if participant is None else f"participant {participant}"
        msg = f"share verification failed for {who}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ThresholdNotMet(ECCoreError):
    """Fewer distinct shares than the threshold were supplied."""

    def __init__(self, required: int, supplied: int) -> None:
        self.required = required
        self.supplied = supplied
        super().__init__(
            f"need at least {required} distinct shares, got {supplied}"
        )


class DKGStateError(ECCoreError, RuntimeError):
    """A DKG transition was requested from the wrong state."""


class ContextInitializationFailed(ECCoreError, RuntimeError):
    """The libsecp256k1 backend is unavailable or failed its self-test."""


def is_retryable(exc: BaseException) -> bool:
    """Whether the wallet layer may retry the failed operation."""
    return isinstance(exc, ECCoreError) and exc.retryable

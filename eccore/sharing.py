"""
Trusted-dealer Shamir sharing and proactive share refresh.

``split_secret`` is the single-dealer counterpart of the DKG: a party who
already holds a private key splits it into Feldman-verifiable shares.
Messages use the same ``ShareMessage`` format, with sender index 0
standing for the dealer.

``refresh_shares`` re-randomises an existing sharing without ever
reconstructing the secret: a random polynomial with zero constant term
is shared and added to every share, so old and new shares cannot be
mixed while the joint public key stays the same.

References
----------
- Herzberg, Jarecki, Krawczyk, Yung (1995). "Proactive Secret Sharing
  Or: How to Cope With Perpetual Leakage."  CRYPTO 1995.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

from .commitment import FeldmanCommitment
from .curve import Scalar
from .dkg import KeyShare, ShareMessage, check_parameters
from .errors import RecoveryFailed, ShareVerificationFailed, ThresholdNotMet
from .keys import PrivateKeyLike, _private_scalar
from .polynomial import (
    evaluate, interpolate_points_at_zero, sample_polynomial, wipe_polynomial,
)

logger = logging.getLogger("eccore.sharing")

DEALER_INDEX = 0


def split_secret(
    secret: PrivateKeyLike,
    threshold: int,
    participants: int,
) -> Tuple[FeldmanCommitment, Dict[int, ShareMessage]]:
    """
    Shamir-split *secret* into *participants* shares, any *threshold* of
    which reconstruct it.

    Returns the public commitment (its constant term is the public key
    of *secret*) and one ``ShareMessage`` per participant.
    """
    check_parameters(threshold, participants)
    coeffs = sample_polynomial(threshold - 1, constant=_private_scalar(secret))
    try:
        commitment = FeldmanCommitment.commit(coeffs)
        shares = {
            j: ShareMessage(
                sender=DEALER_INDEX,
                recipient=j,
                share=evaluate(coeffs, Scalar(j)),
                commitments=commitment.points,
            )
            for j in range(1, participants + 1)
        }
    finally:
        wipe_polynomial(coeffs)
    return commitment, shares


def accept_dealer_share(
    message: ShareMessage,
    commitment: FeldmanCommitment,
    participants: int,
) -> KeyShare:
    """
    Verify a dealer's share against the published commitment and turn
    it into a ``KeyShare``.
    """
    if message.sender != DEALER_INDEX:
        raise ShareVerificationFailed(message.sender, "share does not come from the dealer")
    if tuple(message.commitments) != commitment.points:
        raise ShareVerificationFailed(
            DEALER_INDEX, "share carries commitments that differ from the published ones",
        )
    if not commitment.verify_share(message.recipient, message.share):
        raise ShareVerificationFailed(DEALER_INDEX, "share does not match commitments")
    return KeyShare(
        index=message.recipient,
        share=message.share,
        threshold=commitment.threshold,
        participants=participants,
        joint_public_key=commitment.constant,
    )


def refresh_shares(key_shares: Sequence[KeyShare]) -> List[KeyShare]:
    """
    Re-randomise *key_shares* while keeping the joint secret.

    All shares must belong to the same sharing.  The joint public key is
    re-derived in the exponent from the new verification shares.

    Raises
    ------
    ThresholdNotMet
        If fewer than ``threshold`` shares are supplied.
    RecoveryFailed
        If the refreshed shares no longer open to the joint public key.
    """
    if not key_shares:
        raise ValueError("no shares to refresh")
    first = key_shares[0]
    threshold, participants, joint = first.threshold, first.participants, first.joint_public_key
    for ks in key_shares[1:]:
        if (ks.threshold, ks.participants, ks.joint_public_key) != (threshold, participants, joint):
            raise ValueError(f"share {ks.index} belongs to a different sharing")
    indices = [ks.index for ks in key_shares]
    if len(set(indices)) != len(indices):
        raise ValueError("duplicate share indices")
    if len(indices) < threshold:
        raise ThresholdNotMet(threshold, len(indices))

    delta = sample_polynomial(threshold - 1, constant=Scalar.zero())
    try:
        refreshed: List[KeyShare] = []
        for ks in key_shares:
            refreshed.append(KeyShare(
                index=ks.index,
                share=ks.share + evaluate(delta, Scalar(ks.index)),
                threshold=threshold,
                participants=participants,
                joint_public_key=joint,
            ))
    finally:
        wipe_polynomial(delta)

    sample = refreshed[:threshold]
    opened = interpolate_points_at_zero(
        [ks.index for ks in sample], [ks.verification_share for ks in sample],
    )
    if opened != joint:
        raise RecoveryFailed("refreshed shares do not open to the joint public key")

    logger.debug(f"refreshed {len(refreshed)} shares (t={threshold}, n={participants})")
    return refreshed

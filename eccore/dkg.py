"""
Distributed Key Generation (DKG) with Feldman verifiable secret sharing.

Every participant acts as a dealer: it samples a random polynomial of
degree t−1 whose constant term is its private contribution, publishes
Feldman commitments to the coefficients (plus a proof of knowledge of
the constant term), and privately sends  f_i(j)  to each participant j.
Recipients check every share against the sender's commitments; any
mismatch aborts the whole run.  Otherwise each participant's final share
is the sum of the shares it received, and the joint public key is the
sum of all constant-term commitments.  No party ever holds the joint
secret.

Per-participant state machine::

    UNINITIALIZED ─start()→ SHARES_DISTRIBUTED ─verify()→ SHARES_VERIFIED
                                   │                          │
                                   └──── failure ──→ ABORTED  └─combine()→ COMBINED

An aborted participant wipes everything it holds; ``restart()`` returns
a fresh participant, since nothing from a failed run may be reused.

Transport is out of scope: ``generate_shares``, ``verify_share`` and
``combine_shares`` are pure functions for a network layer to drive, and
``run_dkg`` simulates a complete run in one process.

References
----------
- Pedersen (1991). "A Threshold Cryptosystem Without a Trusted Party."
  EUROCRYPT 1991.
- Feldman (1987). "A Practical Scheme for Non-Interactive Verifiable
  Secret Sharing."  FOCS 1987.
- Gennaro, Jarecki, Krawczyk, Rabin (2007). "Secure Distributed Key
  Generation for Discrete-Log Based Cryptosystems."  J. Cryptology.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from .commitment import FeldmanCommitment
from .config import get_config
from .constants import SCALAR_BYTES
from .curve import G, Point, Scalar, validate_private_key
from .errors import (
    DKGStateError, RecoveryFailed, ShareVerificationFailed, ThresholdNotMet,
)
from .hash import hash_dkg_context
from .keys import PrivateKey, PublicKey
from .polynomial import evaluate, interpolate_at_zero, sample_polynomial, wipe_polynomial
from .proofs import PROOF_BYTES, SchnorrProof

logger = logging.getLogger("eccore.dkg")

Contribution = Union[Scalar, PrivateKey, bytes, None]


# ── data structures ─────────────────────────────────────────────────────

class DKGState(Enum):
    UNINITIALIZED = auto()
    SHARES_DISTRIBUTED = auto()
    SHARES_VERIFIED = auto()
    COMBINED = auto()
    ABORTED = auto()


@dataclass(frozen=True)
class DKGCommitment:
    """A participant's broadcast: Feldman commitments + proof of knowledge."""

    sender: int
    commitment: FeldmanCommitment
    proof: SchnorrProof

    @property
    def constant(self) -> Point:
        return self.commitment.constant

    def verify_proof(self, participants: int) -> bool:
        ctx = hash_dkg_context(self.sender, self.commitment.threshold, participants)
        return self.proof.verify(self.constant, ctx)

    def to_bytes(self) -> bytes:
        return (
            self.sender.to_bytes(4, "big")
            + self.commitment.to_bytes()
            + self.proof.to_bytes()
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> DKGCommitment:
        if len(data) < 4 + 1 + PROOF_BYTES:
            raise ValueError("commitment message too short")
        return cls(
            sender=int.from_bytes(data[:4], "big"),
            commitment=FeldmanCommitment.from_bytes(data[4:-PROOF_BYTES]),
            proof=SchnorrProof.from_bytes(data[-PROOF_BYTES:]),
        )


@dataclass(frozen=True)
class ShareMessage:
    """
    One private share  f_sender(recipient)  and the sender's commitments.

    Wire format: sender (4 B) ‖ recipient (4 B) ‖ share (32 B) ‖
    count t (1 B) ‖ t compressed commitment points (33 B each).
    """

    sender: int
    recipient: int
    share: Scalar = field(repr=False)
    commitments: Tuple[Point, ...]

    def to_bytes(self) -> bytes:
        return (
            self.sender.to_bytes(4, "big")
            + self.recipient.to_bytes(4, "big")
            + self.share.to_bytes()
            + FeldmanCommitment(points=self.commitments).to_bytes()
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> ShareMessage:
        header = 4 + 4 + SCALAR_BYTES
        if len(data) < header + 1:
            raise ValueError("share message too short")
        return cls(
            sender=int.from_bytes(data[:4], "big"),
            recipient=int.from_bytes(data[4:8], "big"),
            share=Scalar.from_bytes(data[8:header]),
            commitments=FeldmanCommitment.from_bytes(data[header:]).points,
        )


@dataclass
class KeyShare:
    """A participant's final output: its share of the joint secret."""

    index: int
    share: Scalar = field(repr=False)
    threshold: int
    participants: int
    joint_public_key: Point

    @property
    def verification_share(self) -> Point:
        """share·G, publishable so others can check partial results."""
        return self.share * G

    def public_key(self, compressed: bool = True) -> PublicKey:
        """The joint public key as a ``PublicKey``."""
        return PublicKey(self.joint_public_key, compressed=compressed)

    def wipe(self) -> None:
        self.share = Scalar.zero()


@dataclass
class DKGResult:
    """Output of a locally simulated DKG run."""

    joint_public_key: Point
    key_shares: Dict[int, KeyShare]
    verification_shares: Dict[int, Point]
    threshold: int
    participants: int

    def wipe(self) -> None:
        for ks in self.key_shares.values():
            ks.wipe()
        self.key_shares.clear()


# ── parameter checks ────────────────────────────────────────────────────

def check_parameters(threshold: int, participants: int) -> None:
    """Require  1 < t ≤ n ≤ max_participants."""
    limit = get_config().max_participants
    if not 1 < threshold <= participants:
        raise ValueError(f"threshold must satisfy 1 < t ≤ n, got t={threshold}, n={participants}")
    if participants > limit:
        raise ValueError(f"at most {limit} participants are supported, got {participants}")


def _check_index(index: int, participants: int) -> None:
    if not 1 <= index <= participants:
        raise ValueError(f"participant index must be in [1, {participants}], got {index}")


def _contribution_scalar(secret: Contribution) -> Optional[Scalar]:
    if secret is None or isinstance(secret, Scalar):
        return secret
    if isinstance(secret, PrivateKey):
        return secret.scalar
    return validate_private_key(bytes(secret))


# ── pure transition functions ───────────────────────────────────────────

def generate_shares(
    index: int,
    threshold: int,
    participants: int,
    secret: Contribution = None,
) -> Tuple[DKGCommitment, Dict[int, ShareMessage]]:
    """
    Dealer step for participant *index*.

    Returns the broadcast commitment and one ``ShareMessage`` per
    participant (including *index* itself).  The polynomial is discarded
    before returning.
    """
    check_parameters(threshold, participants)
    _check_index(index, participants)

    coeffs = sample_polynomial(threshold - 1, constant=_contribution_scalar(secret))
    try:
        commitment = FeldmanCommitment.commit(coeffs)
        ctx = hash_dkg_context(index, threshold, participants)
        proof = SchnorrProof.prove(coeffs[0], commitment.constant, ctx)
        shares = {
            j: ShareMessage(
                sender=index,
                recipient=j,
                share=evaluate(coeffs, Scalar(j)),
                commitments=commitment.points,
            )
            for j in range(1, participants + 1)
        }
    finally:
        wipe_polynomial(coeffs)

    return DKGCommitment(sender=index, commitment=commitment, proof=proof), shares


def verify_commitment(commitment: DKGCommitment, threshold: int, participants: int) -> None:
    """Check the degree and proof of knowledge of a broadcast commitment."""
    if commitment.commitment.threshold != threshold:
        raise ShareVerificationFailed(
            commitment.sender,
            f"expected {threshold} commitment points, got {commitment.commitment.threshold}",
        )
    if not commitment.verify_proof(participants):
        raise ShareVerificationFailed(commitment.sender, "invalid proof of knowledge")


def verify_share(
    share: ShareMessage,
    commitment: DKGCommitment,
    recipient: Optional[int] = None,
) -> None:
    """
    VSS check of one received share against its sender's commitment:

        share·G  ==  Σ_j  C_j · recipient^j

    Raises ``ShareVerificationFailed`` naming the sender on any mismatch.
    """
    sender = commitment.sender
    if share.sender != sender:
        raise ShareVerificationFailed(
            share.sender, f"share paired with commitment from participant {sender}",
        )
    if recipient is not None and share.recipient != recipient:
        raise ShareVerificationFailed(
            sender, f"share addressed to participant {share.recipient}, not {recipient}",
        )
    if tuple(share.commitments) != commitment.commitment.points:
        raise ShareVerificationFailed(
            sender, "share carries commitments that differ from the broadcast",
        )
    if not commitment.commitment.verify_share(share.recipient, share.share):
        raise ShareVerificationFailed(sender, "share does not match commitments")


def _aggregate(
    index: int,
    threshold: int,
    participants: int,
    shares: Mapping[int, ShareMessage],
    commitments: Mapping[int, DKGCommitment],
) -> KeyShare:
    final = Scalar.zero()
    for sender in sorted(shares):
        final = final + shares[sender].share
    joint = Point.sum_points(commitments[s].constant for s in sorted(commitments))
    if joint.is_inf():
        raise ShareVerificationFailed(None, "joint public key is the point at infinity")
    return KeyShare(
        index=index,
        share=final,
        threshold=threshold,
        participants=participants,
        joint_public_key=joint,
    )


def _require_complete(received: Iterable[int], participants: int, what: str) -> None:
    missing = sorted(set(range(1, participants + 1)) - set(received))
    if missing:
        raise ShareVerificationFailed(missing[0], f"no {what} received")


def combine_shares(
    index: int,
    threshold: int,
    participants: int,
    shares: Mapping[int, ShareMessage],
    commitments: Mapping[int, DKGCommitment],
) -> KeyShare:
    """
    Final step for participant *index*: verify everything received and
    sum it into a ``KeyShare``.

    *shares* and *commitments* are keyed by sender and must cover every
    participant, including *index* itself.
    """
    check_parameters(threshold, participants)
    _check_index(index, participants)
    _require_complete(commitments, participants, "commitment")
    _require_complete(shares, participants, "share")

    for sender in sorted(commitments):
        commitment = commitments[sender]
        if commitment.sender != sender:
            raise ShareVerificationFailed(sender, "commitment filed under the wrong sender")
        verify_commitment(commitment, threshold, participants)
        verify_share(shares[sender], commitment, recipient=index)

    return _aggregate(index, threshold, participants, shares, commitments)


# ── participant state machine ───────────────────────────────────────────

class DKGParticipant:
    """
    One participant's view of a DKG run.

    Typical use, with a transport delivering messages between calls::

        p = DKGParticipant(index=2, threshold=2, participants=3)
        commitment, outgoing = p.start()        # broadcast / send these
        p.receive_commitment(...)                # for every other sender
        p.receive_share(...)                     # for every other sender
        p.verify()
        key_share = p.combine()
    """

    def __init__(
        self,
        index: int,
        threshold: int,
        participants: int,
        secret: Contribution = None,
    ) -> None:
        check_parameters(threshold, participants)
        _check_index(index, participants)
        self.index = index
        self.threshold = threshold
        self.participants = participants
        self.state = DKGState.UNINITIALIZED
        self.failure: Optional[ShareVerificationFailed] = None

        self._contribution: Optional[Scalar] = _contribution_scalar(secret)
        self._commitments: Dict[int, DKGCommitment] = {}
        self._shares: Dict[int, ShareMessage] = {}
        self._key_share: Optional[KeyShare] = None

    # transitions ------------------------------------------------------------
    def _require(self, *states: DKGState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.name for s in states)
            raise DKGStateError(
                f"participant {self.index} is {self.state.name}, expected {allowed}"
            )

    def _transition(self, new_state: DKGState) -> None:
        logger.debug(f"participant {self.index}: {self.state.name} -> {new_state.name}")
        self.state = new_state

    def start(self) -> Tuple[DKGCommitment, Dict[int, ShareMessage]]:
        """
        Sample the polynomial and produce outgoing messages.

        Returns the commitment to broadcast and the shares to send,
        keyed by recipient (this participant's own share is kept).
        """
        self._require(DKGState.UNINITIALIZED)
        commitment, outgoing = generate_shares(
            self.index, self.threshold, self.participants, self._contribution,
        )
        self._contribution = None
        self._commitments[self.index] = commitment
        self._shares[self.index] = outgoing.pop(self.index)
        self._transition(DKGState.SHARES_DISTRIBUTED)
        return commitment, outgoing

    def receive_commitment(self, commitment: DKGCommitment) -> None:
        self._require(DKGState.UNINITIALIZED, DKGState.SHARES_DISTRIBUTED)
        sender = commitment.sender
        _check_index(sender, self.participants)
        existing = self._commitments.get(sender)
        if existing is not None and existing != commitment:
            self._fail(ShareVerificationFailed(sender, "conflicting commitments broadcast"))
        self._commitments[sender] = commitment

    def receive_share(self, share: ShareMessage) -> None:
        self._require(DKGState.UNINITIALIZED, DKGState.SHARES_DISTRIBUTED)
        _check_index(share.sender, self.participants)
        if share.sender == self.index:
            self._fail(ShareVerificationFailed(
                share.sender, "incoming share claims to come from this participant",
            ))
        if share.recipient != self.index:
            self._fail(ShareVerificationFailed(
                share.sender, f"share addressed to participant {share.recipient}",
            ))
        existing = self._shares.get(share.sender)
        if existing is not None and existing != share:
            self._fail(ShareVerificationFailed(share.sender, "conflicting shares received"))
        self._shares[share.sender] = share

    def pending(self) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
        """Senders whose (commitment, share) has not arrived yet."""
        everyone = set(range(1, self.participants + 1))
        return (
            tuple(sorted(everyone - set(self._commitments))),
            tuple(sorted(everyone - set(self._shares))),
        )

    def verify(self) -> None:
        """
        Check every received share against its sender's commitments.

        Raises ``DKGStateError`` if messages are still outstanding (the
        run is not aborted), or ``ShareVerificationFailed`` after moving
        to ``ABORTED``.
        """
        self._require(DKGState.SHARES_DISTRIBUTED)
        missing_commitments, missing_shares = self.pending()
        if missing_commitments or missing_shares:
            raise DKGStateError(
                f"participant {self.index} still waiting for commitments "
                f"{list(missing_commitments)} and shares {list(missing_shares)}"
            )
        try:
            for sender in sorted(self._commitments):
                verify_commitment(self._commitments[sender], self.threshold, self.participants)
                verify_share(self._shares[sender], self._commitments[sender], recipient=self.index)
        except ShareVerificationFailed as exc:
            self._fail(exc)
        self._transition(DKGState.SHARES_VERIFIED)

    def combine(self) -> KeyShare:
        self._require(DKGState.SHARES_VERIFIED)
        try:
            key_share = _aggregate(
                self.index, self.threshold, self.participants,
                self._shares, self._commitments,
            )
        except ShareVerificationFailed as exc:
            self._fail(exc)
        self._shares.clear()
        self._key_share = key_share
        self._transition(DKGState.COMBINED)
        return key_share

    # failure handling -------------------------------------------------------
    def _fail(self, exc: ShareVerificationFailed) -> None:
        self.abort(exc)
        raise exc

    def abort(self, reason: Optional[ShareVerificationFailed] = None) -> None:
        """Discard all run state.  Terminal."""
        if self.state is DKGState.ABORTED:
            return
        if reason is not None:
            logger.warning(f"participant {self.index}: DKG aborted: {reason}")
        self.failure = reason
        self._contribution = None
        self._shares.clear()
        self._commitments.clear()
        if self._key_share is not None:
            self._key_share.wipe()
            self._key_share = None
        self._transition(DKGState.ABORTED)

    def restart(self, secret: Contribution = None) -> DKGParticipant:
        """A fresh participant for a new run with the same parameters."""
        self._require(DKGState.ABORTED)
        return DKGParticipant(self.index, self.threshold, self.participants, secret)

    @property
    def key_share(self) -> Optional[KeyShare]:
        return self._key_share

    def __repr__(self) -> str:
        return (
            f"DKGParticipant(index={self.index}, t={self.threshold}, "
            f"n={self.participants}, state={self.state.name})"
        )


# ── local orchestration ─────────────────────────────────────────────────

Transport = Callable[[ShareMessage], ShareMessage]


def run_dkg(
    threshold: int,
    participants: int,
    contributions: Optional[Mapping[int, Contribution]] = None,
    transport: Optional[Transport] = None,
) -> DKGResult:
    """
    Run the complete DKG for all participants in one process.

    *transport*, if given, sees every share in flight and returns the
    message to deliver (tests use it to simulate a corrupted share).

    Raises ``ShareVerificationFailed`` if any participant rejects a
    share; every participant is aborted and nothing is returned.
    """
    check_parameters(threshold, participants)
    contributions = contributions or {}
    ids = range(1, participants + 1)
    parties = {
        i: DKGParticipant(i, threshold, participants, contributions.get(i))
        for i in ids
    }

    try:
        broadcasts: Dict[int, DKGCommitment] = {}
        outboxes: Dict[int, Dict[int, ShareMessage]] = {}
        for i, party in parties.items():
            broadcasts[i], outboxes[i] = party.start()

        for i, party in parties.items():
            for sender, commitment in broadcasts.items():
                if sender != i:
                    party.receive_commitment(commitment)

        for sender, outgoing in outboxes.items():
            for recipient, message in outgoing.items():
                if transport is not None:
                    message = transport(message)
                parties[recipient].receive_share(message)
        outboxes.clear()

        for party in parties.values():
            party.verify()

        key_shares = {i: party.combine() for i, party in parties.items()}
    except ShareVerificationFailed as exc:
        for party in parties.values():
            party.abort(exc)
        raise

    joint_keys = {ks.joint_public_key for ks in key_shares.values()}
    if len(joint_keys) != 1:
        raise ShareVerificationFailed(None, "participants derived different joint keys")
    joint = joint_keys.pop()

    logger.debug(f"DKG complete: t={threshold}, n={participants}, joint key {joint!r}")
    return DKGResult(
        joint_public_key=joint,
        key_shares=key_shares,
        verification_shares={i: ks.verification_share for i, ks in key_shares.items()},
        threshold=threshold,
        participants=participants,
    )


# ── reconstruction (testing / recovery only) ────────────────────────────

ShareLike = Union[KeyShare, Tuple[int, Scalar]]


def reconstruct_from_shares(
    shares: Sequence[ShareLike],
    threshold: Optional[int] = None,
    expected_public_key: Optional[Point] = None,
) -> Scalar:
    """
    Lagrange-interpolate the joint secret at x = 0.

    This materialises the secret in one place and is meant for
    verification and tests, never for normal signing.

    Raises
    ------
    ThresholdNotMet
        If fewer than *threshold* distinct indices are supplied.
    ShareVerificationFailed
        If two different values are supplied for the same index.
    RecoveryFailed
        If the result does not match the joint public key.
    """
    by_index: Dict[int, Scalar] = {}
    joint: Optional[Point] = expected_public_key
    for item in shares:
        if isinstance(item, KeyShare):
            index, value = item.index, item.share
            # a share's own threshold is a floor the caller cannot lower
            threshold = item.threshold if threshold is None else max(threshold, item.threshold)
            if joint is None and get_config().verify_reconstruction:
                joint = item.joint_public_key
        else:
            index, value = item
        if index < 1:
            raise ValueError(f"share index must be positive, got {index}")
        if index in by_index and by_index[index] != value:
            raise ShareVerificationFailed(index, "conflicting shares for the same index")
        by_index[index] = value

    if threshold is None:
        raise ValueError("threshold is required when shares are plain (index, value) pairs")
    if len(by_index) < threshold:
        raise ThresholdNotMet(threshold, len(by_index))

    indices = sorted(by_index)
    secret = interpolate_at_zero(indices, [by_index[i] for i in indices])
    if joint is not None and secret * G != joint:
        raise RecoveryFailed("reconstructed secret does not match the joint public key")
    return secret

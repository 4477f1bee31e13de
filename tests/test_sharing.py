"""
Unit tests for eccore.sharing: trusted-dealer splitting and proactive
share refresh.
"""

import dataclasses

import pytest

from eccore import (
    G,
    RecoveryFailed,
    Scalar,
    ShareVerificationFailed,
    ThresholdNotMet,
    accept_dealer_share,
    reconstruct_from_shares,
    refresh_shares,
    split_secret,
)
from eccore.sharing import DEALER_INDEX


@pytest.fixture
def dealt(private_key):
    commitment, messages = split_secret(private_key, threshold=3, participants=5)
    key_shares = [accept_dealer_share(m, commitment, participants=5) for m in messages.values()]
    return commitment, messages, key_shares


class TestSplitSecret:
    def test_commitment_opens_to_public_key(self, private_key, dealt):
        commitment, _, _ = dealt
        assert commitment.constant == private_key.public_key().point
        assert commitment.threshold == 3

    def test_reconstructs_original_key(self, private_key, dealt):
        _, _, key_shares = dealt
        assert reconstruct_from_shares(key_shares[1:4]) == private_key.scalar
        assert reconstruct_from_shares(key_shares) == private_key.scalar

    def test_messages_come_from_dealer(self, dealt):
        _, messages, _ = dealt
        assert {m.sender for m in messages.values()} == {DEALER_INDEX}
        assert sorted(messages) == [1, 2, 3, 4, 5]

    def test_accepts_raw_secret(self, secret_bytes):
        commitment, messages = split_secret(secret_bytes, threshold=2, participants=2)
        shares = [accept_dealer_share(m, commitment, participants=2) for m in messages.values()]
        assert reconstruct_from_shares(shares).to_bytes() == secret_bytes

    def test_tampered_share_is_rejected(self, dealt):
        commitment, messages, _ = dealt
        bad = dataclasses.replace(messages[2], share=messages[2].share + Scalar.one())
        with pytest.raises(ShareVerificationFailed) as excinfo:
            accept_dealer_share(bad, commitment, participants=5)
        assert excinfo.value.participant == DEALER_INDEX

    def test_non_dealer_sender_is_rejected(self, dealt):
        commitment, messages, _ = dealt
        forged = dataclasses.replace(messages[2], sender=4)
        with pytest.raises(ShareVerificationFailed):
            accept_dealer_share(forged, commitment, participants=5)

    def test_invalid_parameters(self, private_key):
        with pytest.raises(ValueError):
            split_secret(private_key, threshold=6, participants=5)


class TestRefreshShares:
    def test_secret_and_joint_key_unchanged(self, private_key, dealt):
        _, _, key_shares = dealt
        refreshed = refresh_shares(key_shares)
        assert reconstruct_from_shares(refreshed[2:5]) == private_key.scalar
        assert all(ks.joint_public_key == private_key.public_key().point for ks in refreshed)

    def test_individual_shares_change(self, dealt):
        _, _, key_shares = dealt
        refreshed = refresh_shares(key_shares)
        assert [ks.index for ks in refreshed] == [ks.index for ks in key_shares]
        assert all(new.share != old.share for new, old in zip(refreshed, key_shares))

    def test_old_and_new_shares_do_not_mix(self, dealt):
        _, _, key_shares = dealt
        refreshed = refresh_shares(key_shares)
        with pytest.raises(RecoveryFailed):
            reconstruct_from_shares([key_shares[0], key_shares[1], refreshed[2]])

    def test_needs_threshold_shares(self, dealt):
        _, _, key_shares = dealt
        with pytest.raises(ThresholdNotMet):
            refresh_shares(key_shares[:2])

    def test_rejects_mixed_sharings(self, dealt):
        _, _, key_shares = dealt
        other = dataclasses.replace(key_shares[0], joint_public_key=G)
        with pytest.raises(ValueError):
            refresh_shares([other] + key_shares[1:])

    def test_rejects_duplicate_indices(self, dealt):
        _, _, key_shares = dealt
        with pytest.raises(ValueError):
            refresh_shares([key_shares[0], key_shares[0], key_shares[1]])

    def test_empty(self):
        with pytest.raises(ValueError):
            refresh_shares([])

"""
Unit tests for eccore.errors: exception hierarchy and retry policy.
"""

import pytest

from eccore import (
    ContextInitializationFailed,
    DKGStateError,
    ECCoreError,
    InvalidMessageHash,
    InvalidPrivateKey,
    InvalidPublicKey,
    InvalidSignature,
    RecoveryFailed,
    ShareVerificationFailed,
    SignatureCreationFailed,
    ThresholdNotMet,
    is_retryable,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [InvalidPrivateKey, InvalidPublicKey, InvalidMessageHash, InvalidSignature],
    )
    def test_input_errors_are_value_errors(self, exc_type):
        assert issubclass(exc_type, ECCoreError)
        assert issubclass(exc_type, ValueError)

    @pytest.mark.parametrize(
        "exc_type",
        [SignatureCreationFailed, RecoveryFailed, DKGStateError, ContextInitializationFailed],
    )
    def test_all_share_the_base(self, exc_type):
        assert issubclass(exc_type, ECCoreError)


class TestShareVerificationFailed:
    def test_names_participant(self):
        exc = ShareVerificationFailed(4, "share does not match commitments")
        assert exc.participant == 4
        assert exc.reason == "share does not match commitments"
        assert "participant 4" in str(exc)

    def test_unknown_participant(self):
        assert "unknown participant" in str(ShareVerificationFailed(None))


class TestRetryPolicy:
    def test_only_share_verification_is_retryable(self):
        assert is_retryable(ShareVerificationFailed(1))
        assert not is_retryable(RecoveryFailed("x"))
        assert not is_retryable(ThresholdNotMet(3, 2))
        assert not is_retryable(ContextInitializationFailed("x"))

    def test_foreign_exceptions(self):
        assert not is_retryable(ValueError("x"))

    def test_threshold_not_met_fields(self):
        exc = ThresholdNotMet(3, 1)
        assert (exc.required, exc.supplied) == (3, 1)
        assert "3" in str(exc)

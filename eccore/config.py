"""
Runtime configuration for the cryptographic core.

Only policy knobs live here.  Curve and backend choice are deliberately
absent: they are fixed in :mod:`eccore.constants` and
:mod:`eccore.context`.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, replace

logger = logging.getLogger("eccore.config")

_ENV_PREFIX = "ECCORE_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class CoreConfig:
    """
    Policy settings for signing, verification, and threshold sharing.

    Args:
        strict_low_s:          Reject signatures with s > n/2 in ``verify``
                               (libsecp256k1 policy).
        max_nonce_retries:     RFC 6979 candidates tried before signing
                               gives up with ``SignatureCreationFailed``.
        max_participants:      Upper bound on n for DKG and dealer sharing.
        verify_reconstruction: Check a reconstructed secret against the
                               joint public key carried by the shares.
    """

    strict_low_s: bool = True
    max_nonce_retries: int = 64
    max_participants: int = 255
    verify_reconstruction: bool = True

    def __post_init__(self) -> None:
        if self.max_nonce_retries < 1:
            raise ValueError("max_nonce_retries must be >= 1")
        if not 2 <= self.max_participants <= 0xFF:
            raise ValueError("max_participants must be in [2, 255]")

    @classmethod
    def from_env(cls) -> CoreConfig:
        """Build a config from ``ECCORE_*`` environment variables."""
        defaults = cls()
        return cls(
            strict_low_s=_env_bool("STRICT_LOW_S", defaults.strict_low_s),
            max_nonce_retries=_env_int("MAX_NONCE_RETRIES", defaults.max_nonce_retries),
            max_participants=_env_int("MAX_PARTICIPANTS", defaults.max_participants),
            verify_reconstruction=_env_bool(
                "VERIFY_RECONSTRUCTION", defaults.verify_reconstruction,
            ),
        )

    def with_overrides(self, **changes) -> CoreConfig:
        return replace(self, **changes)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(_ENV_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{_ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(_ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{_ENV_PREFIX}{name} must be an integer, got {raw!r}") from e


# ── process-wide instance ───────────────────────────────────────────────
_lock = threading.Lock()
_config = CoreConfig()


def get_config() -> CoreConfig:
    return _config


def set_config(config: CoreConfig) -> CoreConfig:
    """Install ``config`` process-wide and return the previous one."""
    global _config
    with _lock:
        previous, _config = _config, config
    logger.debug(f"configuration updated: {config}")
    return previous

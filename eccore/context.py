"""
Process-wide secp256k1 backend context.

All group operations are delegated to ``coincurve``, the CFFI binding to
Bitcoin Core's libsecp256k1.  It is the only backend: if it cannot be
imported, or if it fails the known-answer checks below, initialisation
raises :class:`ContextInitializationFailed`.  There is no fallback to a
pure-Python or different-curve implementation.

The context is built once, is immutable, holds no secret material, and
may be read concurrently from any number of threads.

Install
-------
    pip install coincurve>=18.0.0
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from .constants import (
    CURVE_B, FIELD_PRIME, G_COMPRESSED, G_X, G_Y, ORDER,
    PREFIX_ODD, SCALAR_BYTES,
)
from .errors import ContextInitializationFailed

try:
    import coincurve
    from coincurve import PrivateKey as _SK, PublicKey as _PK
    from coincurve.ecdsa import (
        cdata_to_der, der_to_cdata, deserialize_compact, serialize_compact,
    )
except ImportError as _import_error:
    raise ContextInitializationFailed(
        "libsecp256k1 backend (coincurve) is not importable"
    ) from _import_error

logger = logging.getLogger("eccore.context")


@dataclass(frozen=True)
class CurveContext:
    """Validated, read-only description of the active backend."""

    backend: str
    backend_version: str
    curve: str = "secp256k1"


_lock = threading.Lock()
_context: Optional[CurveContext] = None


def _self_test() -> None:
    """
    Known-answer checks that pin the backend to secp256k1.

    - G satisfies  y² = x³ + 7  over the secp256k1 field.
    - 1·G serialises to the standard generator.
    - (n-1)·G == -G, i.e. the backend's group order is n.
    - n itself is rejected as a secret key.
    """
    if (G_Y * G_Y - G_X ** 3 - CURVE_B) % FIELD_PRIME != 0:
        raise ContextInitializationFailed("generator is not on secp256k1")

    try:
        one_g = _SK((1).to_bytes(SCALAR_BYTES, "big")).public_key.format(compressed=True)
        neg_g = _SK((ORDER - 1).to_bytes(SCALAR_BYTES, "big")).public_key.format(compressed=True)
    except Exception as e:
        raise ContextInitializationFailed(f"backend scalar multiplication failed: {e}") from e

    if one_g != G_COMPRESSED:
        raise ContextInitializationFailed("backend generator does not match secp256k1")
    if neg_g != bytes([PREFIX_ODD]) + G_COMPRESSED[1:]:
        raise ContextInitializationFailed("backend group order does not match secp256k1")

    try:
        _SK(ORDER.to_bytes(SCALAR_BYTES, "big"))
    except ValueError:
        pass
    else:
        raise ContextInitializationFailed("backend accepted the group order as a secret key")


def init_context() -> CurveContext:
    """Initialise the backend context once; later calls return the same object."""
    global _context
    if _context is not None:
        return _context
    with _lock:
        if _context is None:
            _self_test()
            _context = CurveContext(
                backend="libsecp256k1 (coincurve)",
                backend_version=getattr(coincurve, "__version__", "unknown"),
            )
            logger.debug(f"curve context ready: {_context.backend} {_context.backend_version}")
    return _context


def get_context() -> CurveContext:
    return init_context()


def reset_context() -> None:
    """Drop the cached context; the next ``get_context`` re-runs the self-test."""
    global _context
    with _lock:
        _context = None

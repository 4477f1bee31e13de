"""
secp256k1 domain parameters (SEC 2 v2, §2.4.1) and wire-format sizes.

These are the only curve parameters this package knows about.  Nothing in
the package selects a curve at runtime; every module imports its constants
from here.
"""

# ── secp256k1 domain parameters ─────────────────────────────────────────

# The prime modulus of the field
FIELD_PRIME: int = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F

# The order n of the group generated by G
ORDER: int = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# Largest canonical ("low") s value:  n // 2
HALF_ORDER: int = ORDER >> 1

# Curve equation  y² = x³ + B
CURVE_B: int = 7

# Generator G
G_X: int = 0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798
G_Y: int = 0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8

# ── encodings ───────────────────────────────────────────────────────────
SCALAR_BYTES = 32
PRIVATE_KEY_BYTES = 32
MESSAGE_HASH_BYTES = 32
COMPRESSED_BYTES = 33
UNCOMPRESSED_BYTES = 65
COMPACT_SIGNATURE_BYTES = 64
RECOVERABLE_SIGNATURE_BYTES = 65

PREFIX_EVEN = 0x02
PREFIX_ODD = 0x03
PREFIX_UNCOMPRESSED = 0x04

# SEC 1 compressed encoding of G
G_COMPRESSED: bytes = bytes([PREFIX_EVEN]) + G_X.to_bytes(SCALAR_BYTES, "big")

"""
Core cryptographic utilities.

Hashing and hex helpers used by the leaf builder and tree combiner.
"""
from .hashing import (
    DIGEST_SIZE,
    keccak256,
    sha256,
    to_hex,
    from_hex,
    digests_equal,
)

__all__ = [
    "DIGEST_SIZE",
    "keccak256",
    "sha256",
    "to_hex",
    "from_hex",
    "digests_equal",
]

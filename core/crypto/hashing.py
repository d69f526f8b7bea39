"""
Hashing Utilities
Digest and hex helpers for leaves, tree nodes and content references.

This module provides:
- keccak256: the commitment hash H (leaves and tree nodes)
- sha256: content addressing for local stores
- Hex encoding/decoding with 0x prefix

Security/Determinism Notes:
- keccak256 is the original Keccak (Ethereum), NOT NIST SHA3-256
- Always hash raw bytes exactly as given
"""
from __future__ import annotations

import hashlib
import hmac

from eth_utils import keccak


DIGEST_SIZE = 32


def keccak256(data: bytes) -> bytes:
    """
    Compute the Keccak-256 digest of raw bytes.

    Example:
        >>> keccak256(b"").hex()
        'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    return keccak(primitive=data)


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def digests_equal(left: bytes, right: bytes) -> bool:
    """
    Compare two digests over their full length.

    Runs in time independent of the position of the first differing byte.
    """
    return hmac.compare_digest(left, right)


__all__ = [
    "DIGEST_SIZE",
    "keccak256",
    "sha256",
    "to_hex",
    "from_hex",
    "digests_equal",
]

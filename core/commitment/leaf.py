"""
Salted Leaf Builder

Derives one commitment leaf from a field value and a fresh random salt:

    leaf = keccak256(salt + serialize_field_value(value))

The salt keeps low-entropy values (dates, short batch codes) from being
brute-forced out of the leaf hash. Losing a salt makes its field permanently
unverifiable, so callers must persist every salt this module hands back.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Callable, Optional

from core.crypto.hashing import keccak256
from core.schemas.canonical import serialize_field_value
from core.schemas.records import SALT_LENGTH


SaltSource = Callable[[int], bytes]


@dataclass(frozen=True)
class SaltedLeaf:
    """A salt and the leaf it produced."""
    salt: bytes
    leaf: bytes


def compute_leaf(salt: bytes, value: Any, path: str = "") -> bytes:
    """
    Recompute a leaf from a known salt.

    Raises:
        ValueError: If the salt has the wrong length
        CanonicalizationException: If the value has no canonical form
    """
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"Salt must be {SALT_LENGTH} bytes, got {len(salt)}")
    return keccak256(salt + serialize_field_value(value, path))


class SaltedLeafBuilder:
    """
    Builds salted leaves.

    The salt source defaults to secrets.token_bytes. Tests may inject a
    deterministic source; production code must not.
    """

    def __init__(self, salt_source: Optional[SaltSource] = None) -> None:
        self._salt_source = salt_source or secrets.token_bytes

    def new_salt(self) -> bytes:
        salt = self._salt_source(SALT_LENGTH)
        if len(salt) != SALT_LENGTH:
            raise ValueError(
                f"Salt source returned {len(salt)} bytes, expected {SALT_LENGTH}"
            )
        return salt

    def build(self, value: Any, path: str = "") -> SaltedLeaf:
        """Generate a fresh salt and the leaf for `value`."""
        salt = self.new_salt()
        return SaltedLeaf(salt=salt, leaf=compute_leaf(salt, value, path))

    def rebuild(self, salt: bytes, value: Any, path: str = "") -> bytes:
        """Recompute the leaf for `value` under a persisted salt."""
        return compute_leaf(salt, value, path)

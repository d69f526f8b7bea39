"""
Sorted-Pair Merkle Combination
Deterministic root computation over a fixed number of salted leaves.

This module provides:
- sorted_pair_parent: order-independent combination of two digests
- build_sorted_pair_root: root over any leaf count with an explicit odd policy
- SortedPairCombiner: combiner with a declared arity
- FixedTreeCombiner: the arity-4 combiner used for product records

Canonical Commitment Rules (Hard Contracts):
1. Parent hashing: parent = keccak256(min(a, b) + max(a, b)), comparing raw bytes
2. Pairing order: adjacent nodes left to right (0-1, 2-3, ...) at every level
3. Odd node at a level: handled by the combiner's OddLeafPolicy, never inferred
4. Single leaf: root = leaf
5. Leaf count must equal the declared arity; no silent padding or truncation

Sorting makes each pair commutative, but the tree as a whole still depends on
which leaf sits in which position: swapping leaves 1 and 3 changes the root.
"""
from __future__ import annotations

from enum import Enum
from typing import Sequence

from core.crypto.hashing import DIGEST_SIZE, keccak256
from core.schemas.errors import LeafCountException


class OddLeafPolicy(str, Enum):
    """How a level with an odd number of nodes is paired."""
    DUPLICATE_LAST = "duplicate_last"  # [a, b, c] -> [P(a,b), P(c,c)]
    CARRY_UP = "carry_up"              # [a, b, c] -> [P(a,b), c]


def sorted_pair_parent(left: bytes, right: bytes) -> bytes:
    """
    Compute the parent of two nodes after ordering them by byte value.

    sorted_pair_parent(a, b) == sorted_pair_parent(b, a)
    """
    if right < left:
        left, right = right, left
    return keccak256(left + right)


def build_sorted_pair_root(
    leaves: Sequence[bytes],
    odd_policy: OddLeafPolicy = OddLeafPolicy.DUPLICATE_LAST,
) -> bytes:
    """
    Build a root from leaf digests using sorted-pair combination.

    Example (4 leaves):
        A = P(l1, l2), B = P(l3, l4), root = P(A, B)

    Raises:
        ValueError: If leaves is empty or a leaf is not a 32-byte digest
    """
    if len(leaves) == 0:
        raise ValueError("Cannot build a root from zero leaves")

    for i, leaf in enumerate(leaves):
        if len(leaf) != DIGEST_SIZE:
            raise ValueError(
                f"Leaf {i} must be {DIGEST_SIZE} bytes, got {len(leaf)}"
            )

    current_level: list[bytes] = list(leaves)

    while len(current_level) > 1:
        carried: bytes | None = None
        if len(current_level) % 2 == 1:
            if odd_policy == OddLeafPolicy.DUPLICATE_LAST:
                current_level.append(current_level[-1])
            else:
                carried = current_level.pop()

        next_level: list[bytes] = [
            sorted_pair_parent(current_level[i], current_level[i + 1])
            for i in range(0, len(current_level), 2)
        ]
        if carried is not None:
            next_level.append(carried)

        current_level = next_level

    return current_level[0]


class SortedPairCombiner:
    """
    Combines exactly `arity` leaves into one root.

    Usage:
        combiner = SortedPairCombiner(arity=4)
        root = combiner.root([leaf1, leaf2, leaf3, leaf4])
    """

    def __init__(
        self,
        arity: int,
        odd_policy: OddLeafPolicy = OddLeafPolicy.DUPLICATE_LAST,
    ) -> None:
        if arity < 1:
            raise ValueError(f"Arity must be at least 1, got {arity}")
        self.arity = arity
        self.odd_policy = odd_policy

    def root(self, leaves: Sequence[bytes]) -> bytes:
        """
        Compute the root of exactly `arity` leaves.

        Raises:
            LeafCountException: If the number of leaves differs from arity
        """
        if len(leaves) != self.arity:
            raise LeafCountException(expected=self.arity, actual=len(leaves))
        return build_sorted_pair_root(leaves, self.odd_policy)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(arity={self.arity}, odd_policy={self.odd_policy.value!r})"


class FixedTreeCombiner(SortedPairCombiner):
    """Depth-2, arity-4 combiner for the four declared product fields."""

    ARITY = 4

    def __init__(self) -> None:
        super().__init__(arity=self.ARITY)


def compute_tree_depth(num_leaves: int) -> int:
    """
    Number of levels from leaves to root (inclusive). 4 leaves -> 3.
    Both odd-leaf policies give the same depth.

    Returns 0 for an empty tree.
    """
    if num_leaves == 0:
        return 0

    depth = 1
    n = num_leaves
    while n > 1:
        n = (n + 1) // 2
        depth += 1
    return depth


__all__ = [
    "OddLeafPolicy",
    "sorted_pair_parent",
    "build_sorted_pair_root",
    "SortedPairCombiner",
    "FixedTreeCombiner",
    "compute_tree_depth",
]

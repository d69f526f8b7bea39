"""
Sorted-pair Merkle combination for salted commitments.

Canonical Commitment Rules:
1. Leaf: keccak256(salt + serialize(value)) (see core.commitment.leaf)
2. Parent: keccak256(min(a, b) + max(a, b))
3. Odd node: explicit OddLeafPolicy per combiner
4. Single leaf: root = leaf

Usage:
    from core.merkle import FixedTreeCombiner

    root = FixedTreeCombiner().root([leaf1, leaf2, leaf3, leaf4])
"""
from .merkle_tree import (
    OddLeafPolicy,
    sorted_pair_parent,
    build_sorted_pair_root,
    SortedPairCombiner,
    FixedTreeCombiner,
    compute_tree_depth,
)


__all__ = [
    "OddLeafPolicy",
    "sorted_pair_parent",
    "build_sorted_pair_root",
    "SortedPairCombiner",
    "FixedTreeCombiner",
    "compute_tree_depth",
]

"""
Salted Leaf Unit Tests
Tests for core/commitment/leaf.py
"""
import pytest

from fixtures import make_counting_salt_source

from core.commitment.leaf import SaltedLeafBuilder, compute_leaf
from core.crypto.hashing import keccak256
from core.schemas.errors import CanonicalizationException


SALT = bytes(range(16))


class TestComputeLeaf:
    def test_leaf_formula(self):
        assert compute_leaf(SALT, "Widget") == keccak256(SALT + b"Widget")

    def test_int_and_string_same_leaf(self):
        assert compute_leaf(SALT, 1) == compute_leaf(SALT, "1")

    def test_salt_changes_leaf(self):
        assert compute_leaf(SALT, "B7") != compute_leaf(bytes(16), "B7")

    def test_value_changes_leaf(self):
        assert compute_leaf(SALT, "B7") != compute_leaf(SALT, "B8")

    @pytest.mark.parametrize("length", [0, 15, 17, 32])
    def test_wrong_salt_length(self, length):
        with pytest.raises(ValueError, match="16 bytes"):
            compute_leaf(bytes(length), "B7")

    def test_unserializable_value(self):
        with pytest.raises(CanonicalizationException):
            compute_leaf(SALT, None)


class TestSaltedLeafBuilder:
    def test_fresh_salt_per_leaf(self):
        builder = SaltedLeafBuilder()
        first = builder.build("Widget")
        second = builder.build("Widget")
        assert first.salt != second.salt
        assert first.leaf != second.leaf

    def test_default_salt_length(self):
        assert len(SaltedLeafBuilder().new_salt()) == 16

    def test_injected_salt_source(self):
        builder = SaltedLeafBuilder(make_counting_salt_source())
        leaf = builder.build("Widget")
        assert leaf.salt == b"\x01" * 16
        assert leaf.leaf == keccak256(b"\x01" * 16 + b"Widget")

    def test_rebuild_matches_build(self):
        builder = SaltedLeafBuilder()
        salted = builder.build("2024-01-01")
        assert builder.rebuild(salted.salt, "2024-01-01") == salted.leaf

    def test_bad_salt_source_rejected(self):
        builder = SaltedLeafBuilder(lambda n: b"short")
        with pytest.raises(ValueError, match="expected 16"):
            builder.build("Widget")

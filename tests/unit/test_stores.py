"""
Collaborator Store Unit Tests
Tests for core/stores: memory, local files, sqlite ledger, sqlite salts,
TTL root cache.
"""
import sqlite3

import pytest

from fixtures import ManualClock

from core.crypto.hashing import keccak256, sha256
from core.schemas.errors import (
    ContentNotFoundException,
    DuplicateRecordException,
)
from core.schemas.records import LedgerEntry
from core.stores.cache import TTLRootCache
from core.stores.local import CONTENT_REF_PREFIX, LocalContentStore, SqliteLedger
from core.stores.memory import MemoryContentStore, MemoryLedger, MemorySaltStore
from core.stores.sqlite_salts import SqliteSaltStore, connect


ROOT = keccak256(b"root")
SALTS = [bytes([i]) * 16 for i in range(4)]


class TestMemoryStores:
    def test_content_round_trip(self):
        store = MemoryContentStore()
        ref = store.put(b"payload")
        assert ref == "mem:" + sha256(b"payload").hex()
        assert store.get(ref) == b"payload"

    def test_content_not_found(self):
        with pytest.raises(ContentNotFoundException):
            MemoryContentStore().get("mem:nope")

    def test_ledger_rejects_duplicate(self):
        ledger = MemoryLedger()
        ledger.register(1, ROOT, "mem:a")
        with pytest.raises(DuplicateRecordException):
            ledger.register(1, keccak256(b"other"), "mem:b")
        assert ledger.lookup(1) == LedgerEntry(root=ROOT, content_ref="mem:a")

    def test_ledger_rejects_short_root(self):
        with pytest.raises(ValueError, match="32 bytes"):
            MemoryLedger().register(1, b"short", "mem:a")

    def test_salt_store_returns_copy(self):
        store = MemorySaltStore()
        store.put_salts(1, SALTS)
        store.get_salts(1).clear()
        assert store.get_salts(1) == SALTS
        assert store.get_salts(2) is None

    def test_salt_store_never_overwrites(self):
        store = MemorySaltStore()
        store.put_salts(1, SALTS)
        with pytest.raises(DuplicateRecordException):
            store.put_salts(1, [bytes(16)] * 4)
        assert store.get_salts(1) == SALTS


class TestLocalContentStore:
    def test_round_trip(self, tmp_path):
        store = LocalContentStore(tmp_path / "content")
        ref = store.put(b'{"a":1}')

        digest = sha256(b'{"a":1}').hex()
        assert ref == CONTENT_REF_PREFIX + digest
        assert (tmp_path / "content" / digest[:2] / digest).read_bytes() == b'{"a":1}'
        assert store.get(ref) == b'{"a":1}'

    def test_put_is_idempotent(self, tmp_path):
        store = LocalContentStore(tmp_path)
        assert store.put(b"x") == store.put(b"x")

    def test_missing(self, tmp_path):
        store = LocalContentStore(tmp_path)
        with pytest.raises(ContentNotFoundException):
            store.get(CONTENT_REF_PREFIX + "0" * 64)

    @pytest.mark.parametrize("ref", ["mem:abc", "sha256:../../etc/passwd", "sha256:ABC"])
    def test_malformed_ref(self, tmp_path, ref):
        with pytest.raises(ContentNotFoundException):
            LocalContentStore(tmp_path).get(ref)


class TestSqliteLedger:
    def test_register_and_lookup(self, tmp_path):
        ledger = SqliteLedger(tmp_path / "ledger.db")
        ledger.register(1, ROOT, "sha256:abc")
        assert ledger.lookup(1) == LedgerEntry(root=ROOT, content_ref="sha256:abc")
        assert ledger.lookup(2) is None

    def test_duplicate(self, tmp_path):
        ledger = SqliteLedger(tmp_path / "ledger.db")
        ledger.register(1, ROOT, "a")
        with pytest.raises(DuplicateRecordException):
            ledger.register(1, ROOT, "b")

    def test_large_record_id(self, tmp_path):
        ledger = SqliteLedger(tmp_path / "ledger.db")
        big = 2**200
        ledger.register(big, ROOT, "a")
        assert ledger.lookup(big).content_ref == "a"
        assert ledger.record_ids() == [big]

    def test_persists_across_instances(self, tmp_path):
        SqliteLedger(tmp_path / "ledger.db").register(3, ROOT, "a")
        assert SqliteLedger(tmp_path / "ledger.db").lookup(3).root == ROOT

    def test_entries_immutable(self, tmp_path):
        path = tmp_path / "ledger.db"
        SqliteLedger(path).register(1, ROOT, "a")
        with pytest.raises(sqlite3.DatabaseError, match="immutable"):
            with connect(str(path)) as conn:
                conn.execute("UPDATE ledger_entries SET content_ref='b'")
        with pytest.raises(sqlite3.DatabaseError, match="immutable"):
            with connect(str(path)) as conn:
                conn.execute("DELETE FROM ledger_entries")


class TestSqliteSaltStore:
    def test_round_trip(self, tmp_path):
        store = SqliteSaltStore(tmp_path / "salts.db")
        store.put_salts(1, SALTS)
        assert store.get_salts(1) == SALTS
        assert store.get_salts(2) is None
        assert store.record_ids() == [1]

    def test_creates_parent_directory(self, tmp_path):
        store = SqliteSaltStore(tmp_path / "nested" / "dir" / "salts.db")
        store.put_salts(1, SALTS)
        assert (tmp_path / "nested" / "dir" / "salts.db").exists()

    def test_never_overwrites(self, tmp_path):
        store = SqliteSaltStore(tmp_path / "salts.db")
        store.put_salts(1, SALTS)
        with pytest.raises(DuplicateRecordException) as exc_info:
            store.put_salts(1, [bytes(16)] * 4)
        assert exc_info.value.details["store"] == "salts"
        assert store.get_salts(1) == SALTS


class TestTTLRootCache:
    ENTRY = LedgerEntry(root=ROOT, content_ref="a")

    def test_hit_then_expire(self):
        clock = ManualClock()
        cache = TTLRootCache(clock=clock)
        cache.put(1, self.ENTRY, ttl_s=5.0)
        assert cache.get(1) == self.ENTRY
        clock.advance(5.0)
        assert cache.get(1) is None
        assert len(cache) == 0

    def test_zero_ttl_not_stored(self):
        cache = TTLRootCache()
        cache.put(1, self.ENTRY, ttl_s=0)
        assert cache.get(1) is None

    def test_evicts_oldest(self):
        cache = TTLRootCache(max_entries=2)
        for record_id in (1, 2, 3):
            cache.put(record_id, self.ENTRY, ttl_s=60.0)
        assert cache.get(1) is None
        assert cache.get(2) == self.ENTRY
        assert cache.get(3) == self.ENTRY

    def test_clear(self):
        cache = TTLRootCache()
        cache.put(1, self.ENTRY, ttl_s=60.0)
        cache.clear()
        assert cache.get(1) is None

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            TTLRootCache(max_entries=0)

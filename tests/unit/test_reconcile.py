"""
Reconciliation Unit Tests
Tests for core/commitment/reconcile.py
"""
import logging

import pytest

from fixtures import FlakyLedger, make_product_fields

from core.commitment import UnverifiableRecord, find_unverifiable
from core.schemas.errors import LedgerUnavailableException, StoreUnavailableException


@pytest.fixture
def three_records(committer):
    return [committer.commit(i, make_product_fields(product_id=i)) for i in (1, 2, 3)]


class TestFindUnverifiable:
    def test_clean(self, three_records, ledger, salt_store):
        assert find_unverifiable([1, 2, 3], ledger, salt_store) == []

    def test_reports_anchored_record_without_salts(self, three_records, ledger, salt_store):
        salt_store.delete_salts(2)
        result = find_unverifiable([1, 2, 3], ledger, salt_store)

        assert result == [UnverifiableRecord(
            record_id=2,
            root=three_records[1].root,
            content_ref=three_records[1].content_ref,
        )]

    def test_unknown_ids_skipped(self, three_records, ledger, salt_store):
        assert find_unverifiable([4, 5], ledger, salt_store) == []

    def test_accepts_ledger_listing(self, three_records, ledger, salt_store):
        salt_store.delete_salts(3)
        result = find_unverifiable(ledger.record_ids(), ledger, salt_store)
        assert [r.record_id for r in result] == [3]

    def test_logs_error(self, three_records, ledger, salt_store, caplog):
        salt_store.delete_salts(1)
        with caplog.at_level(logging.ERROR, logger="core.commitment.reconcile"):
            find_unverifiable([1], ledger, salt_store)
        assert "record 1 is anchored but has no salts" in caplog.text

    def test_ledger_error_propagates(self, salt_store):
        ledger = FlakyLedger(fail_lookups=1)
        with pytest.raises(LedgerUnavailableException):
            find_unverifiable([1], ledger, salt_store)

    def test_salt_store_error_propagates(self, three_records, ledger, salt_store):
        salt_store.fail_gets = 1
        with pytest.raises(StoreUnavailableException):
            find_unverifiable([1], ledger, salt_store)

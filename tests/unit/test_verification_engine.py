"""
Verification Engine Unit Tests
Tests for core/commitment/verification.py

Tampering is an outcome; missing records, missing salts and unreachable
content are errors. Salts problems are never cached.
"""
import json
import logging

import pytest

from fixtures import (
    FAST_POLICY,
    ManualClock,
    make_product_fields,
)

from core.commitment import VerificationEngine, encode_payload, normalize_fields
from core.crypto.hashing import keccak256
from core.schemas.errors import (
    ContentFetchFailure,
    LedgerUnavailableException,
    RecordNotFoundException,
    SaltMissingException,
    SchemaValidationException,
)
from core.schemas.records import PRODUCT_SCHEMA
from core.schemas.verification import VerificationOutcome
from core.stores.cache import TTLRootCache


def _payload(**overrides) -> bytes:
    return encode_payload(
        PRODUCT_SCHEMA,
        normalize_fields(PRODUCT_SCHEMA, make_product_fields(**overrides)),
    )


@pytest.fixture
def committed(committer, product_fields):
    """Record 1 committed as (1, Widget, 2024-01-01, B7)."""
    return committer.commit(1, product_fields)


class TestAuthentic:
    def test_untouched_record_is_authentic(self, verifier, committed):
        report = verifier.verify(1)

        assert report.outcome == VerificationOutcome.AUTHENTIC
        assert report.is_authentic
        assert report.anchored_root == committed.root
        assert report.recomputed_root == committed.root
        assert report.content_ref == committed.content_ref
        assert report.reason is None
        assert not report.cache_hit

    def test_all_checks_pass(self, verifier, committed):
        report = verifier.verify(1)
        assert [c.check_id for c in report.checks] == [
            "ledger_entry", "content_fetch", "salts_present", "payload_decode", "root_match",
        ]
        assert report.failed_checks == []

    def test_lookup_order_on_cache_miss(self, verifier, committed, call_log):
        del call_log[:]
        verifier.verify(1)
        assert call_log == ["ledger.lookup", "salts.get", "content.get"]

    def test_reserialized_payload_still_authentic(self, verifier, committed, content_store):
        document = json.loads(content_store.get(committed.content_ref))
        content_store.replace(committed.content_ref, json.dumps(document, indent=4).encode())
        assert verifier.verify(1).is_authentic

    def test_numeric_string_id_still_authentic(self, verifier, committed, content_store):
        content_store.replace(committed.content_ref, _payload(product_id="1"))
        assert verifier.verify(1).is_authentic

    def test_try_verify(self, verifier, committed):
        result = verifier.try_verify(1)
        assert result.success
        assert result.output.is_authentic

    def test_both_roots_logged(self, verifier, committed, caplog):
        caplog.set_level(logging.INFO, logger="core.commitment.verification")
        verifier.verify(1)
        assert f"anchored root {committed.root}" in caplog.text
        assert f"recomputed root {committed.root}" in caplog.text


class TestTampered:
    """Every change to the stored content flips the outcome."""

    def test_changed_batch(self, verifier, committed, content_store):
        content_store.replace(committed.content_ref, _payload(product_batch="B8"))
        report = verifier.verify(1)

        assert report.outcome == VerificationOutcome.TAMPERED
        assert not report.is_authentic
        assert report.anchored_root == committed.root
        assert report.recomputed_root != committed.root
        assert [c.check_id for c in report.failed_checks] == ["root_match"]

    def test_single_character_change(self, verifier, committed, content_store):
        content_store.replace(committed.content_ref, _payload(product_name="Widgeu"))
        assert verifier.verify(1).outcome == VerificationOutcome.TAMPERED

    def test_swapped_fields(self, verifier, committed, content_store):
        content_store.replace(
            committed.content_ref,
            _payload(product_name="2024-01-01", product_mdate="Widget"),
        )
        assert verifier.verify(1).outcome == VerificationOutcome.TAMPERED

    def test_swapped_fields_within_pair(self, verifier, committed, content_store):
        document = json.loads(content_store.get(committed.content_ref))
        fields = document["fields"]
        fields["product_id"], fields["product_name"] = fields["product_name"], fields["product_id"]
        content_store.replace(committed.content_ref, json.dumps(document).encode())

        report = verifier.verify(1)

        assert report.outcome == VerificationOutcome.TAMPERED
        assert report.recomputed_root is not None
        assert report.recomputed_root != committed.root
        assert [c.check_id for c in report.failed_checks] == ["root_match"]

    def test_oversized_integer_literal(self, verifier, committed, content_store):
        payload = content_store.get(committed.content_ref)
        assert b'"product_id":1' in payload
        content_store.replace(
            committed.content_ref,
            payload.replace(b'"product_id":1', b'"product_id":' + b"9" * 5000),
        )

        report = verifier.verify(1)
        assert report.outcome == VerificationOutcome.TAMPERED
        assert verifier.try_verify(1).success

    def test_malformed_payload(self, verifier, committed, content_store):
        content_store.replace(committed.content_ref, b"\x00 not json")
        report = verifier.verify(1)

        assert report.outcome == VerificationOutcome.TAMPERED
        assert report.recomputed_root is None
        assert report.failed_checks[0].check_id == "payload_decode"

    def test_missing_field_in_payload(self, verifier, committed, content_store):
        document = json.loads(content_store.get(committed.content_ref))
        del document["fields"]["product_batch"]
        content_store.replace(committed.content_ref, json.dumps(document).encode())

        report = verifier.verify(1)
        assert report.outcome == VerificationOutcome.TAMPERED
        assert report.recomputed_root is None

    def test_null_field_value(self, verifier, committed, content_store):
        document = json.loads(content_store.get(committed.content_ref))
        document["fields"]["product_name"] = None
        content_store.replace(committed.content_ref, json.dumps(document).encode())

        report = verifier.verify(1)
        assert report.outcome == VerificationOutcome.TAMPERED
        assert report.recomputed_root is None

    def test_try_verify_tampered_is_success(self, verifier, committed, content_store):
        content_store.replace(committed.content_ref, _payload(product_batch="B8"))
        result = verifier.try_verify(1)
        assert result.success
        assert result.output.outcome == VerificationOutcome.TAMPERED


class TestErrors:
    def test_record_not_found(self, verifier, root_cache):
        with pytest.raises(RecordNotFoundException) as exc_info:
            verifier.verify(42)
        assert exc_info.value.category == "lookup"
        assert root_cache.puts == []

    def test_invalid_record_id(self, verifier, call_log):
        with pytest.raises(SchemaValidationException):
            verifier.verify(-5)
        assert call_log == []

    def test_salts_missing_is_fatal(self, verifier, committed, salt_store):
        salt_store.delete_salts(1)
        with pytest.raises(SaltMissingException) as exc_info:
            verifier.verify(1)

        error = exc_info.value
        assert error.fatal
        assert error.details["root"] == committed.root

    def test_salts_missing_not_cached(self, verifier, committed, salt_store, ledger, root_cache):
        salt_store.delete_salts(1)
        for _ in range(2):
            with pytest.raises(SaltMissingException):
                verifier.verify(1)
        assert root_cache.puts == []
        assert ledger.lookup_calls == 3

    def test_wrong_salt_count(self, verifier, committed, salt_store):
        salts = salt_store.get_salts(1)
        salt_store.delete_salts(1)
        salt_store.put_salts(1, salts[:3])
        with pytest.raises(SaltMissingException) as exc_info:
            verifier.verify(1)
        assert exc_info.value.details["salt_count"] == 3

    def test_content_unavailable(self, verifier, committed, content_store):
        content_store.fail_gets = 3
        with pytest.raises(ContentFetchFailure) as exc_info:
            verifier.verify(1)
        assert exc_info.value.retryable
        assert content_store.get_calls == 3

    def test_content_transient_failure(self, verifier, committed, content_store):
        content_store.fail_gets = 2
        assert verifier.verify(1).is_authentic

    def test_content_not_found(self, verifier, ledger, salt_store, content_store):
        ledger.register(7, keccak256(b"root"), "mem:missing")
        salt_store.put_salts(7, [bytes(16)] * 4)
        with pytest.raises(ContentFetchFailure):
            verifier.verify(7)
        assert content_store.get_calls == 1

    def test_ledger_unavailable(self, verifier, committed, ledger):
        ledger.fail_lookups = ledger.lookup_calls + 3
        with pytest.raises(LedgerUnavailableException):
            verifier.verify(1)

    def test_ledger_transient_failure(self, verifier, committed, ledger):
        ledger.fail_lookups = ledger.lookup_calls + 1
        assert verifier.verify(1).is_authentic

    def test_try_verify_not_found(self, verifier):
        result = verifier.try_verify(42)
        assert not result.success
        assert result.error.code == "RECORD_NOT_FOUND"
        assert not result.retryable


class TestCache:
    def test_second_verify_hits_cache(self, verifier, committed, ledger, root_cache):
        verifier.verify(1)
        calls = ledger.lookup_calls
        report = verifier.verify(1)

        assert report.cache_hit
        assert report.is_authentic
        assert ledger.lookup_calls == calls
        assert root_cache.puts == [(1, 60.0)]

    def test_cache_hit_loads_salts_after_fetch(self, verifier, committed, call_log):
        verifier.verify(1)
        del call_log[:]
        verifier.verify(1)
        assert call_log == ["content.get", "salts.get"]

    def test_cache_hit_still_detects_tampering(self, verifier, committed, content_store):
        verifier.verify(1)
        content_store.replace(committed.content_ref, _payload(product_batch="B8"))
        report = verifier.verify(1)
        assert report.cache_hit
        assert report.outcome == VerificationOutcome.TAMPERED

    def test_cache_hit_with_salts_removed(self, verifier, committed, salt_store):
        verifier.verify(1)
        salt_store.delete_salts(1)
        with pytest.raises(SaltMissingException):
            verifier.verify(1)

    def test_ttl_expiry(self, content_store, ledger, salt_store, committed):
        clock = ManualClock()
        engine = VerificationEngine(
            content_store, ledger, salt_store,
            TTLRootCache(clock=clock),
            cache_ttl_s=30.0,
            content_policy=FAST_POLICY, ledger_policy=FAST_POLICY, salt_policy=FAST_POLICY,
        )
        assert not engine.verify(1).cache_hit
        clock.advance(10.0)
        assert engine.verify(1).cache_hit
        clock.advance(30.0)
        assert not engine.verify(1).cache_hit

    def test_no_cache(self, content_store, ledger, salt_store, committed):
        engine = VerificationEngine(
            content_store, ledger, salt_store,
            content_policy=FAST_POLICY, ledger_policy=FAST_POLICY, salt_policy=FAST_POLICY,
        )
        engine.verify(1)
        assert not engine.verify(1).cache_hit

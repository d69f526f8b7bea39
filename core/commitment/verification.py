"""
Verification Engine

Checks a record fetched from untrusted storage against the root anchored on
the ledger.

Flow:
    cache -> (miss) ledger -> salts -> cache populate
          -> content fetch -> decode -> recompute leaves and root -> compare

A mismatch is an outcome (TAMPERED), not an error. Errors are reserved for
conditions where no verdict can be reached: unknown record, missing salts,
content that cannot be fetched, or an expired deadline.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from core.commitment.engine import validate_record_id
from core.commitment.leaf import compute_leaf
from core.commitment.payload import PayloadFormatError, decode_payload
from core.commitment.retry import Deadline, RetryPolicy, call_with_retry
from core.crypto.hashing import digests_equal, to_hex
from core.merkle.merkle_tree import SortedPairCombiner
from core.schemas.errors import (
    CanonicalizationException,
    ContentFetchFailure,
    ContentNotFoundException,
    ContentUnavailableException,
    LedgerUnavailableException,
    ProdsealException,
    RecordNotFoundException,
    SaltMissingException,
    StoreUnavailableException,
)
from core.schemas.records import (
    PRODUCT_SCHEMA,
    SALT_LENGTH,
    EngineResult,
    FieldSchema,
    LedgerEntry,
)
from core.schemas.verification import (
    CheckResult,
    VerificationOutcome,
    VerificationReport,
)
from core.stores.base import ContentStore, Ledger, RootCache, SaltStore


logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_S = 300.0


class VerificationEngine:
    """
    Recomputes a record's root from fetched content and persisted salts.

    Usage:
        engine = VerificationEngine(content_store, ledger, salt_store, cache)
        report = engine.verify(1)
        if report.is_authentic:
            ...
    """

    def __init__(
        self,
        content_store: ContentStore,
        ledger: Ledger,
        salt_store: SaltStore,
        cache: Optional[RootCache] = None,
        *,
        cache_ttl_s: float = DEFAULT_CACHE_TTL_S,
        schema: FieldSchema = PRODUCT_SCHEMA,
        combiner: Optional[SortedPairCombiner] = None,
        content_policy: RetryPolicy = RetryPolicy(attempts=3, retry_delay=0.5, call_timeout=30.0),
        ledger_policy: RetryPolicy = RetryPolicy(attempts=2, retry_delay=0.5, call_timeout=30.0),
        salt_policy: RetryPolicy = RetryPolicy(attempts=2, retry_delay=0.2, call_timeout=10.0),
    ) -> None:
        self.content_store = content_store
        self.ledger = ledger
        self.salt_store = salt_store
        self.cache = cache
        self.cache_ttl_s = cache_ttl_s
        self.schema = schema
        self.combiner = combiner or SortedPairCombiner(arity=schema.arity)
        if self.combiner.arity != schema.arity:
            raise ValueError(
                f"Combiner arity {self.combiner.arity} does not match "
                f"schema arity {schema.arity}"
            )
        self.content_policy = content_policy
        self.ledger_policy = ledger_policy
        self.salt_policy = salt_policy

    def verify(
        self,
        record_id: int,
        *,
        deadline: Optional[Deadline] = None,
    ) -> VerificationReport:
        """
        Verify a committed record.

        Raises:
            RecordNotFoundException: No ledger entry for record_id
            SaltMissingException: Ledger entry exists but salts do not (fatal)
            ContentFetchFailure: Payload could not be fetched
            LedgerUnavailableException / StoreUnavailableException: lookups
                failed after bounded retries
            DeadlineExceededException: Deadline passed
        """
        deadline = deadline or Deadline.never()
        record_id = validate_record_id(record_id)
        checks: list[CheckResult] = []

        entry, salts, cache_hit = self._resolve(record_id, deadline)
        checks.append(CheckResult.passed(
            "ledger_entry",
            "Root resolved from cache" if cache_hit else "Root resolved from ledger",
            details={"cache_hit": cache_hit, "content_ref": entry.content_ref},
        ))

        payload = self._fetch_content(record_id, entry.content_ref, deadline)
        checks.append(CheckResult.passed(
            "content_fetch",
            f"Fetched {len(payload)} bytes",
            details={"content_ref": entry.content_ref},
        ))

        if salts is None:
            salts = self._load_salts(record_id, deadline)
        checks.append(CheckResult.passed("salts_present", f"{len(salts)} salts loaded"))

        anchored_hex = to_hex(entry.root)

        try:
            values = decode_payload(self.schema, payload)
            leaves = [
                compute_leaf(salt, value, name)
                for salt, value, name in zip(salts, values, self.schema.names)
            ]
        except (PayloadFormatError, CanonicalizationException, ValueError) as e:
            message = e.message if isinstance(e, ProdsealException) else str(e)
            logger.warning(f"Verify {record_id}: payload rejected: {message}")
            checks.append(CheckResult.failed("payload_decode", message))
            return self._report(
                record_id,
                VerificationOutcome.TAMPERED,
                entry,
                recomputed_hex=None,
                cache_hit=cache_hit,
                reason=f"Fetched content is not a valid record: {message}",
                checks=checks,
            )
        checks.append(CheckResult.passed("payload_decode", "Payload matches field schema"))

        recomputed = self.combiner.root(leaves)
        recomputed_hex = to_hex(recomputed)
        logger.info(
            f"Verify {record_id}: anchored root {anchored_hex}, recomputed root {recomputed_hex}"
        )

        if digests_equal(recomputed, entry.root):
            checks.append(CheckResult.passed("root_match", "Recomputed root matches anchored root"))
            outcome = VerificationOutcome.AUTHENTIC
            reason = None
        else:
            checks.append(CheckResult.failed(
                "root_match",
                "Recomputed root differs from anchored root",
                details={"anchored_root": anchored_hex, "recomputed_root": recomputed_hex},
            ))
            outcome = VerificationOutcome.TAMPERED
            reason = "Recomputed root differs from anchored root"

        logger.info(f"Verify {record_id}: {outcome.value}")
        return self._report(
            record_id,
            outcome,
            entry,
            recomputed_hex=recomputed_hex,
            cache_hit=cache_hit,
            reason=reason,
            checks=checks,
        )

    def try_verify(
        self,
        record_id: int,
        *,
        deadline: Optional[Deadline] = None,
    ) -> EngineResult[VerificationReport]:
        """Like verify(), but returns a tagged result instead of raising."""
        try:
            return EngineResult.ok(self.verify(record_id, deadline=deadline))
        except ProdsealException as e:
            return EngineResult.failure(e)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _resolve(
        self,
        record_id: int,
        deadline: Deadline,
    ) -> tuple[LedgerEntry, Optional[list[bytes]], bool]:
        """
        Find the anchored entry. Returns (entry, salts or None, cache_hit).

        A ledger hit is cached only once the salt store confirms the salts.
        """
        if self.cache is not None:
            cached = self.cache.get(record_id)
            if cached is not None:
                logger.debug(f"Verify {record_id}: cache hit")
                return cached, None, True

        entry = call_with_retry(
            lambda timeout: self.ledger.lookup(record_id, timeout=timeout),
            stage="ledger_lookup",
            attempts=self.ledger_policy.attempts,
            deadline=deadline,
            retry_on=(LedgerUnavailableException,),
            retry_delay=self.ledger_policy.retry_delay,
            call_timeout=self.ledger_policy.call_timeout,
        )
        if entry is None:
            logger.info(f"Verify {record_id}: not found on ledger")
            raise RecordNotFoundException(record_id)

        salts = self._load_salts(record_id, deadline, entry)

        if self.cache is not None:
            self.cache.put(record_id, entry, self.cache_ttl_s)
        return entry, salts, False

    def _load_salts(
        self,
        record_id: int,
        deadline: Deadline,
        entry: Optional[LedgerEntry] = None,
    ) -> list[bytes]:
        salts = call_with_retry(
            lambda timeout: self.salt_store.get_salts(record_id, timeout=timeout),
            stage="salt_lookup",
            attempts=self.salt_policy.attempts,
            deadline=deadline,
            retry_on=(StoreUnavailableException,),
            retry_delay=self.salt_policy.retry_delay,
            call_timeout=self.salt_policy.call_timeout,
        )
        details = {}
        if entry is not None:
            details = {"root": to_hex(entry.root), "content_ref": entry.content_ref}

        if not salts:
            logger.error(f"Verify {record_id}: FATAL anchored record has no salts")
            raise SaltMissingException(record_id, details=details)
        if len(salts) != self.schema.arity or any(len(s) != SALT_LENGTH for s in salts):
            logger.error(
                f"Verify {record_id}: FATAL salt store returned {len(salts)} salts, "
                f"expected {self.schema.arity}"
            )
            raise SaltMissingException(
                record_id,
                details={**details, "salt_count": len(salts)},
            )
        return list(salts)

    def _fetch_content(self, record_id: int, content_ref: str, deadline: Deadline) -> bytes:
        policy = self.content_policy
        try:
            return call_with_retry(
                lambda timeout: self.content_store.get(content_ref, timeout=timeout),
                stage="content_fetch",
                attempts=policy.attempts,
                deadline=deadline,
                retry_on=(ContentUnavailableException,),
                retry_delay=policy.retry_delay,
                call_timeout=policy.call_timeout,
            )
        except (ContentUnavailableException, ContentNotFoundException) as e:
            logger.error(f"Verify {record_id}: content fetch failed for {content_ref}: {e.message}")
            # A fresh pin may not have reached the gateway yet
            retryable = e.retryable or isinstance(e, ContentNotFoundException)
            raise ContentFetchFailure(
                f"Could not fetch content {content_ref}: {e.message}",
                record_id=record_id,
                details={"content_ref": content_ref},
                retryable=retryable,
            ) from e

    def _report(
        self,
        record_id: int,
        outcome: VerificationOutcome,
        entry: LedgerEntry,
        *,
        recomputed_hex: Optional[str],
        cache_hit: bool,
        reason: Optional[str],
        checks: list[CheckResult],
    ) -> VerificationReport:
        return VerificationReport(
            record_id=record_id,
            outcome=outcome,
            anchored_root=to_hex(entry.root),
            recomputed_root=recomputed_hex,
            content_ref=entry.content_ref,
            cache_hit=cache_hit,
            reason=reason,
            checks=checks,
            verified_at=datetime.now(timezone.utc),
        )

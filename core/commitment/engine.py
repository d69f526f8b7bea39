"""
Commitment Engine

Orchestrates a commit:

1. Normalize fields, refuse ids the ledger already knows
2. Build one salted leaf per field in schema order, combine to a root
3. Store the payload in the content store (bounded retries)
4. Register (record_id, root, content_ref) on the ledger
5. Persist the salts

The steps are strictly sequential. Content must exist before the root that
vouches for it is anchored, and salts are written last, so a failure before
step 5 never leaves an anchored root without salts. A failure at step 5 does,
and is raised as the fatal SaltPersistFailure. A registration that was
submitted but never confirmed may still anchor the root, so its salts are
persisted anyway and the fatal LedgerUnconfirmedFailure is raised.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from core.commitment.leaf import SaltedLeafBuilder
from core.commitment.payload import encode_payload, normalize_fields
from core.commitment.retry import Deadline, RetryPolicy, call_with_retry
from core.crypto.hashing import to_hex
from core.merkle.merkle_tree import SortedPairCombiner
from core.schemas.errors import (
    ContentStoreFailure,
    ContentUnavailableException,
    DuplicateRecordException,
    LedgerFailure,
    LedgerOutcomeUnknownException,
    LedgerUnconfirmedFailure,
    LedgerUnavailableException,
    ProdsealException,
    SaltPersistFailure,
    SchemaValidationException,
    StoreUnavailableException,
)
from core.schemas.records import PRODUCT_SCHEMA, CommitmentRecord, EngineResult, FieldSchema
from core.stores.base import ContentStore, Ledger, SaltStore


logger = logging.getLogger(__name__)

# Minimum time granted to salt persistence once a root is anchored, even if
# the caller's deadline has already passed.
SALT_PERSIST_GRACE_S = 10.0


def validate_record_id(record_id: Any) -> int:
    """Record ids are non-negative integers (uint256 on the ledger)."""
    if isinstance(record_id, bool) or not isinstance(record_id, int):
        raise SchemaValidationException(
            f"record_id must be an integer, got {type(record_id).__name__}",
            field_path="record_id",
        )
    if record_id < 0:
        raise SchemaValidationException(
            f"record_id must be non-negative, got {record_id}",
            field_path="record_id",
        )
    return record_id


class CommitmentEngine:
    """
    Produces and anchors salted commitments.

    Usage:
        engine = CommitmentEngine(content_store, ledger, salt_store)
        record = engine.commit(1, {
            "product_id": 1,
            "product_name": "Widget",
            "product_mdate": "2024-01-01",
            "product_batch": "B7",
        })
    """

    def __init__(
        self,
        content_store: ContentStore,
        ledger: Ledger,
        salt_store: SaltStore,
        *,
        schema: FieldSchema = PRODUCT_SCHEMA,
        leaf_builder: Optional[SaltedLeafBuilder] = None,
        combiner: Optional[SortedPairCombiner] = None,
        content_policy: RetryPolicy = RetryPolicy(attempts=3, retry_delay=1.0, call_timeout=30.0),
        ledger_policy: RetryPolicy = RetryPolicy(attempts=1, retry_delay=0.0, call_timeout=120.0),
        salt_policy: RetryPolicy = RetryPolicy(attempts=3, retry_delay=0.5, call_timeout=10.0),
    ) -> None:
        self.content_store = content_store
        self.ledger = ledger
        self.salt_store = salt_store
        self.schema = schema
        self.leaf_builder = leaf_builder or SaltedLeafBuilder()
        self.combiner = combiner or SortedPairCombiner(arity=schema.arity)
        if self.combiner.arity != schema.arity:
            raise ValueError(
                f"Combiner arity {self.combiner.arity} does not match "
                f"schema arity {schema.arity}"
            )
        self.content_policy = content_policy
        self.ledger_policy = ledger_policy
        self.salt_policy = salt_policy

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def commit(
        self,
        record_id: int,
        fields: Mapping[str, Any],
        *,
        deadline: Optional[Deadline] = None,
    ) -> CommitmentRecord:
        """
        Commit a record. Returns only after all five steps succeed.

        Raises:
            SchemaValidationException / CanonicalizationException: bad input
            DuplicateRecordException: record_id already anchored
            ContentStoreFailure: content not stored; nothing anchored
            LedgerFailure: content stored but root not anchored
            LedgerUnconfirmedFailure: registration submitted but unconfirmed;
                salts were persisted (fatal)
            SaltPersistFailure: root anchored but salts lost (fatal)
            DeadlineExceededException: deadline passed before anchoring
        """
        deadline = deadline or Deadline.never()
        record_id = validate_record_id(record_id)
        normalized = normalize_fields(self.schema, fields)

        self._ensure_not_committed(record_id, deadline)

        logger.info(f"Commit {record_id}: computing salted leaves")
        salted = [self.leaf_builder.build(value, name) for name, value in normalized.items()]
        leaves = [s.leaf for s in salted]
        salts = [s.salt for s in salted]
        root = self.combiner.root(leaves)

        payload = encode_payload(self.schema, normalized)
        content_ref = self._store_content(record_id, payload, deadline)
        logger.info(f"Commit {record_id}: content stored at {content_ref}")

        try:
            self._register_root(record_id, root, content_ref, deadline)
        except LedgerOutcomeUnknownException as e:
            self._persist_salts(record_id, salts, root, content_ref, deadline)
            logger.error(
                f"Commit {record_id}: FATAL registration of root {to_hex(root)} was "
                f"submitted but not confirmed ({e.message}); salts persisted, ledger needs checking"
            )
            raise LedgerUnconfirmedFailure(
                f"Root registration not confirmed: {e.message}",
                record_id=record_id,
                details={"root": to_hex(root), "content_ref": content_ref, **e.details},
            ) from e
        logger.info(f"Commit {record_id}: root {to_hex(root)} anchored")

        self._persist_salts(record_id, salts, root, content_ref, deadline)
        logger.info(f"Commit {record_id}: salts persisted, record committed")

        return CommitmentRecord(
            record_id=record_id,
            field_values=normalized,
            salts=[salt.hex() for salt in salts],
            leaves=[to_hex(leaf) for leaf in leaves],
            content_ref=content_ref,
            root=to_hex(root),
            schema_version=self.schema.version,
            committed_at=datetime.now(timezone.utc),
        )

    def try_commit(
        self,
        record_id: int,
        fields: Mapping[str, Any],
        *,
        deadline: Optional[Deadline] = None,
    ) -> EngineResult[CommitmentRecord]:
        """Like commit(), but returns a tagged result instead of raising."""
        try:
            return EngineResult.ok(self.commit(record_id, fields, deadline=deadline))
        except ProdsealException as e:
            return EngineResult.failure(e)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _ensure_not_committed(self, record_id: int, deadline: Deadline) -> None:
        try:
            existing = call_with_retry(
                lambda timeout: self.ledger.lookup(record_id, timeout=timeout),
                stage="ledger_lookup",
                attempts=self.ledger_policy.attempts,
                deadline=deadline,
                retry_on=(LedgerUnavailableException,),
                retry_delay=self.ledger_policy.retry_delay,
                call_timeout=self.ledger_policy.call_timeout,
            )
        except LedgerUnavailableException as e:
            raise LedgerFailure(
                f"Could not check ledger for record {record_id}: {e.message}",
                record_id=record_id,
                details={"stage": "ledger_lookup"},
            ) from e
        if existing is not None:
            logger.info(f"Commit {record_id}: rejected, already anchored")
            raise DuplicateRecordException(record_id)

    def _store_content(self, record_id: int, payload: bytes, deadline: Deadline) -> str:
        policy = self.content_policy
        try:
            return call_with_retry(
                lambda timeout: self.content_store.put(payload, timeout=timeout),
                stage="content_put",
                attempts=policy.attempts,
                deadline=deadline,
                retry_on=(ContentUnavailableException,),
                retry_delay=policy.retry_delay,
                call_timeout=policy.call_timeout,
            )
        except ContentUnavailableException as e:
            logger.error(f"Commit {record_id}: content store failed: {e.message}")
            raise ContentStoreFailure(
                f"Failed to store content: {e.message}",
                record_id=record_id,
                details={"attempts": policy.attempts},
                retryable=e.retryable,
            ) from e

    def _register_root(
        self,
        record_id: int,
        root: bytes,
        content_ref: str,
        deadline: Deadline,
    ) -> None:
        policy = self.ledger_policy
        try:
            call_with_retry(
                lambda timeout: self.ledger.register(record_id, root, content_ref, timeout=timeout),
                stage="ledger_register",
                attempts=policy.attempts,
                deadline=deadline,
                retry_on=(LedgerUnavailableException,),
                retry_delay=policy.retry_delay,
                call_timeout=policy.call_timeout,
            )
        except DuplicateRecordException as e:
            # Lost a race with a concurrent commit of the same id.
            logger.warning(
                f"Commit {record_id}: ledger rejected duplicate, content {content_ref} is orphaned"
            )
            raise DuplicateRecordException(
                record_id,
                details={"orphaned_content_ref": content_ref},
            ) from e
        except LedgerUnavailableException as e:
            logger.error(f"Commit {record_id}: ledger registration failed: {e.message}")
            raise LedgerFailure(
                f"Root registration failed: {e.message}",
                record_id=record_id,
                details={"orphaned_content_ref": content_ref},
            ) from e

    def _persist_salts(
        self,
        record_id: int,
        salts: list[bytes],
        root: bytes,
        content_ref: str,
        deadline: Deadline,
    ) -> None:
        policy = self.salt_policy
        try:
            call_with_retry(
                lambda timeout: self.salt_store.put_salts(record_id, salts, timeout=timeout),
                stage="salt_persist",
                attempts=policy.attempts,
                deadline=deadline.at_least(SALT_PERSIST_GRACE_S),
                retry_on=(StoreUnavailableException,),
                retry_delay=policy.retry_delay,
                call_timeout=policy.call_timeout,
            )
        except ProdsealException as e:
            logger.error(
                f"Commit {record_id}: FATAL root {to_hex(root)} is anchored but salts "
                f"could not be persisted ({e.message}); record needs repair"
            )
            raise SaltPersistFailure(
                f"Root anchored but salts could not be persisted: {e.message}",
                record_id=record_id,
                details={"root": to_hex(root), "content_ref": content_ref},
            ) from e

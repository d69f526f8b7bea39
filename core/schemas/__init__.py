"""
Schemas & Canonicalization

Public API for field schemas, canonical serialization, records, reports
and the error taxonomy.
"""

from .versioning import (
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    SchemaVersion,
    is_compatible_schema_version,
)

from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    FieldScalar,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
    loads_canonical,
    normalize_field_value,
    serialize_field_value,
)

from .errors import (
    CanonicalizationException,
    ContentFetchFailure,
    ContentNotFoundException,
    ContentStoreFailure,
    ContentUnavailableException,
    DeadlineExceededException,
    DuplicateRecordException,
    ErrorCodes,
    LeafCountException,
    LedgerFailure,
    LedgerOutcomeUnknownException,
    LedgerUnconfirmedFailure,
    LedgerUnavailableException,
    ProdsealError,
    ProdsealException,
    RecordNotFoundException,
    SaltMissingException,
    SaltPersistFailure,
    SchemaValidationException,
    StoreUnavailableException,
)

from .records import (
    DIGEST_LENGTH,
    PRODUCT_SCHEMA,
    SALT_LENGTH,
    CommitmentRecord,
    EngineResult,
    FieldSchema,
    LedgerEntry,
)

from .verification import (
    CheckResult,
    CheckSeverity,
    VerificationOutcome,
    VerificationReport,
)


__all__ = [
    # Versioning
    "SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "SchemaVersion",
    "is_compatible_schema_version",
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "FieldScalar",
    "canonicalize_value",
    "dumps_canonical",
    "ensure_utc",
    "format_datetime_canonical",
    "loads_canonical",
    "normalize_field_value",
    "serialize_field_value",
    # Errors
    "CanonicalizationException",
    "ContentFetchFailure",
    "ContentNotFoundException",
    "ContentStoreFailure",
    "ContentUnavailableException",
    "DeadlineExceededException",
    "DuplicateRecordException",
    "ErrorCodes",
    "LeafCountException",
    "LedgerFailure",
    "LedgerOutcomeUnknownException",
    "LedgerUnconfirmedFailure",
    "LedgerUnavailableException",
    "ProdsealError",
    "ProdsealException",
    "RecordNotFoundException",
    "SaltMissingException",
    "SaltPersistFailure",
    "SchemaValidationException",
    "StoreUnavailableException",
    # Records
    "DIGEST_LENGTH",
    "PRODUCT_SCHEMA",
    "SALT_LENGTH",
    "CommitmentRecord",
    "EngineResult",
    "FieldSchema",
    "LedgerEntry",
    # Verification
    "CheckResult",
    "CheckSeverity",
    "VerificationOutcome",
    "VerificationReport",
]

"""
Schemas & Canonicalization
File: errors.py

Purpose: Standard error taxonomy for the commitment engine.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.

Categories:
- construction: programmer or input errors (wrong leaf count, bad values)
- conflict: the record id is already committed
- availability: a collaborator could not serve the call (retryable)
- consistency: a prior partial commit left the record unverifiable (fatal)
- lookup: the record does not exist
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


ErrorCategory = Literal["construction", "conflict", "availability", "consistency", "lookup"]


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Construction
    LEAF_COUNT_MISMATCH = "LEAF_COUNT_MISMATCH"
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"

    # Conflict
    DUPLICATE_RECORD = "DUPLICATE_RECORD"

    # Engine-level availability
    CONTENT_STORE_FAILURE = "CONTENT_STORE_FAILURE"
    LEDGER_FAILURE = "LEDGER_FAILURE"
    CONTENT_FETCH_FAILURE = "CONTENT_FETCH_FAILURE"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"

    # Collaborator-level availability
    CONTENT_UNAVAILABLE = "CONTENT_UNAVAILABLE"
    CONTENT_NOT_FOUND = "CONTENT_NOT_FOUND"
    LEDGER_UNAVAILABLE = "LEDGER_UNAVAILABLE"
    LEDGER_OUTCOME_UNKNOWN = "LEDGER_OUTCOME_UNKNOWN"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

    # Consistency
    SALT_PERSIST_FAILURE = "SALT_PERSIST_FAILURE"
    LEDGER_UNCONFIRMED = "LEDGER_UNCONFIRMED"
    SALT_MISSING = "SALT_MISSING"

    # Lookup
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class ProdsealError(BaseModel):
    """
    Error model for passing failures across module and process boundaries
    without exceptions (tagged results, API bodies, CLI JSON output).
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.DUPLICATE_RECORD],
    )
    message: str = Field(..., description="Human-readable error message")
    category: ErrorCategory = Field(default="availability")
    details: dict[str, Any] = Field(default_factory=dict)
    retryable: bool = Field(
        default=False,
        description="Whether the whole operation can be retried",
    )
    fatal: bool = Field(
        default=False,
        description="Whether the record needs out-of-band repair",
    )

    def to_exception(self) -> "ProdsealException":
        """Convert this error model to a raisable exception."""
        return ProdsealException(
            message=self.message,
            code=self.code,
            category=self.category,
            details=self.details,
            retryable=self.retryable,
            fatal=self.fatal,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class ProdsealException(Exception):
    """
    Base exception for all commitment engine errors.

    Carries structured error information and converts to ProdsealError.
    """

    def __init__(
        self,
        message: str,
        code: str = "PRODSEAL_ERROR",
        category: ErrorCategory = "availability",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        fatal: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.category = category
        self.details = details or {}
        self.retryable = retryable
        self.fatal = fatal

    def to_error_model(self) -> ProdsealError:
        """Convert this exception to a ProdsealError model."""
        return ProdsealError(
            code=self.code,
            message=self.message,
            category=self.category,
            details=self.details,
            retryable=self.retryable,
            fatal=self.fatal,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


def _with_record(record_id: int | None, details: dict[str, Any] | None) -> dict[str, Any]:
    full_details = dict(details or {})
    if record_id is not None:
        full_details["record_id"] = record_id
    return full_details


# --- construction -------------------------------------------------------------

class LeafCountException(ProdsealException):
    """Raised when a tree is built from the wrong number of leaves."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            message=f"Expected exactly {expected} leaves, got {actual}",
            code=ErrorCodes.LEAF_COUNT_MISMATCH,
            category="construction",
            details={"expected": expected, "actual": actual},
        )


class CanonicalizationException(ProdsealException):
    """Raised when a field value cannot be serialized deterministically."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            category="construction",
            details=details,
        )


class SchemaValidationException(ProdsealException):
    """Raised when input fields do not match the declared field schema."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=ErrorCodes.SCHEMA_VALIDATION_ERROR,
            category="construction",
            details=full_details,
        )


# --- conflict -----------------------------------------------------------------

class DuplicateRecordException(ProdsealException):
    """Raised when a record id already has a committed root."""

    def __init__(
        self,
        record_id: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Record {record_id} is already committed",
            code=ErrorCodes.DUPLICATE_RECORD,
            category="conflict",
            details=_with_record(record_id, details),
        )
        self.record_id = record_id


# --- collaborator availability ------------------------------------------------

class ContentUnavailableException(ProdsealException):
    """Raised by a content store that cannot serve a put or get."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CONTENT_UNAVAILABLE,
            details=details,
            retryable=retryable,
        )


class ContentNotFoundException(ProdsealException):
    """Raised by a content store that has no blob for a content reference."""

    def __init__(self, content_ref: str) -> None:
        super().__init__(
            message=f"No content stored under {content_ref}",
            code=ErrorCodes.CONTENT_NOT_FOUND,
            details={"content_ref": content_ref},
        )


class LedgerUnavailableException(ProdsealException):
    """Raised by a ledger that cannot serve a register or lookup."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.LEDGER_UNAVAILABLE,
            details=details,
            retryable=True,
        )


class LedgerOutcomeUnknownException(ProdsealException):
    """
    Raised by a ledger after a registration was submitted but never confirmed.

    The root may still be anchored later, so the call must not be retried.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.LEDGER_OUTCOME_UNKNOWN,
            details=details,
        )


class StoreUnavailableException(ProdsealException):
    """Raised by a salt store that cannot serve a put or get."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.STORE_UNAVAILABLE,
            details=details,
            retryable=True,
        )


# --- engine-level availability -------------------------------------------------

class ContentStoreFailure(ProdsealException):
    """Content could not be stored after bounded retries. Nothing was anchored."""

    def __init__(
        self,
        message: str,
        record_id: int | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CONTENT_STORE_FAILURE,
            details=_with_record(record_id, details),
            retryable=retryable,
        )


class LedgerFailure(ProdsealException):
    """Root registration failed after content was stored."""

    def __init__(
        self,
        message: str,
        record_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.LEDGER_FAILURE,
            details=_with_record(record_id, details),
            retryable=True,
        )


class ContentFetchFailure(ProdsealException):
    """The content store could not return the payload for verification."""

    def __init__(
        self,
        message: str,
        record_id: int | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CONTENT_FETCH_FAILURE,
            details=_with_record(record_id, details),
            retryable=retryable,
        )


class DeadlineExceededException(ProdsealException):
    """The caller-supplied deadline expired before the operation finished."""

    def __init__(self, stage: str, details: dict[str, Any] | None = None) -> None:
        full_details = details or {}
        full_details["stage"] = stage
        super().__init__(
            message=f"Deadline exceeded during {stage}",
            code=ErrorCodes.DEADLINE_EXCEEDED,
            details=full_details,
            retryable=True,
        )
        self.stage = stage


# --- consistency (fatal) --------------------------------------------------------

class SaltPersistFailure(ProdsealException):
    """
    Salts could not be written after the root was anchored.

    The record is permanently unverifiable until an operator repairs it.
    """

    def __init__(
        self,
        message: str,
        record_id: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.SALT_PERSIST_FAILURE,
            category="consistency",
            details=_with_record(record_id, details),
            fatal=True,
        )
        self.record_id = record_id


class LedgerUnconfirmedFailure(ProdsealException):
    """
    A registration was submitted but not confirmed. Salts were persisted.

    Whether the root is anchored is unknown until an operator checks the
    ledger; the record id cannot be committed again meanwhile.
    """

    def __init__(
        self,
        message: str,
        record_id: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.LEDGER_UNCONFIRMED,
            category="consistency",
            details=_with_record(record_id, details),
            fatal=True,
        )
        self.record_id = record_id


class SaltMissingException(ProdsealException):
    """The ledger has a root for the record but the salt store has no salts."""

    def __init__(self, record_id: int, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=f"Record {record_id} is anchored but its salts are missing",
            code=ErrorCodes.SALT_MISSING,
            category="consistency",
            details=_with_record(record_id, details),
            fatal=True,
        )
        self.record_id = record_id


# --- lookup ---------------------------------------------------------------------

class RecordNotFoundException(ProdsealException):
    """No ledger entry exists for the record id."""

    def __init__(self, record_id: int) -> None:
        super().__init__(
            message=f"Record {record_id} not found",
            code=ErrorCodes.RECORD_NOT_FOUND,
            category="lookup",
            details={"record_id": record_id},
        )
        self.record_id = record_id

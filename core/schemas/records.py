"""
Schemas & Canonicalization
File: records.py

Purpose: Field schema, committed record, ledger entry and the tagged result
wrapper used by the engines.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .canonical import FieldScalar
from .errors import ProdsealError, ProdsealException
from .versioning import SCHEMA_VERSION, SchemaVersion


SALT_LENGTH = 16
DIGEST_LENGTH = 32


@dataclass(frozen=True)
class FieldSchema:
    """
    Ordered list of field names. Position i in `names` is leaf position i.

    The order is part of every commitment made under this schema and must
    never change for an existing version.
    """
    names: tuple[str, ...]
    version: str = SCHEMA_VERSION

    def __post_init__(self) -> None:
        if not self.names:
            raise ValueError("A field schema needs at least one field")
        if len(set(self.names)) != len(self.names):
            raise ValueError(f"Duplicate field names in schema: {self.names}")

    @property
    def arity(self) -> int:
        return len(self.names)


PRODUCT_SCHEMA = FieldSchema(
    names=("product_id", "product_name", "product_mdate", "product_batch"),
)


@dataclass(frozen=True)
class LedgerEntry:
    """What the ledger (or the root cache) knows about a record."""
    root: bytes
    content_ref: str

    def __post_init__(self) -> None:
        if len(self.root) != DIGEST_LENGTH:
            raise ValueError(
                f"Ledger root must be {DIGEST_LENGTH} bytes, got {len(self.root)}"
            )


class CommitmentRecord(BaseModel):
    """A fully committed record: content stored, root anchored, salts persisted."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    record_id: int = Field(..., ge=0, description="Caller-assigned unique ordinal")
    field_values: dict[str, FieldScalar] = Field(
        ...,
        description="Normalized field values in schema order",
    )
    salts: list[str] = Field(..., description="Hex-encoded 16-byte salts, leaf order")
    leaves: list[str] = Field(..., description="0x hex leaf digests, leaf order")
    content_ref: str = Field(..., min_length=1)
    root: str = Field(..., description="0x hex commitment root")
    schema_version: SchemaVersion = SCHEMA_VERSION
    committed_at: datetime | None = None

    @field_validator("salts")
    @classmethod
    def _check_salts(cls, v: list[str]) -> list[str]:
        for salt in v:
            if len(bytes.fromhex(salt)) != SALT_LENGTH:
                raise ValueError(f"Salt must be {SALT_LENGTH} bytes: {salt!r}")
        return v

    @model_validator(mode="after")
    def _check_shape(self) -> "CommitmentRecord":
        if not (len(self.field_values) == len(self.salts) == len(self.leaves)):
            raise ValueError(
                "field_values, salts and leaves must have the same length "
                f"({len(self.field_values)}, {len(self.salts)}, {len(self.leaves)})"
            )
        return self


T = TypeVar("T")


@dataclass
class EngineResult(Generic[T]):
    """
    Tagged result of a commit or verify call.

    Lets callers branch on retryable vs fatal failures without catching
    exceptions. `error` is set iff `success` is False.
    """
    output: Optional[T] = None
    success: bool = True
    error: Optional[ProdsealError] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, output: T) -> "EngineResult[T]":
        return cls(output=output)

    @classmethod
    def failure(cls, exc: ProdsealException) -> "EngineResult[T]":
        """Create a failure result from a raised engine exception."""
        return cls(output=None, success=False, error=exc.to_error_model())

    @property
    def retryable(self) -> bool:
        return self.error is not None and self.error.retryable

    @property
    def fatal(self) -> bool:
        return self.error is not None and self.error.fatal

    def unwrap(self) -> T:
        """Return the output or raise the carried error."""
        if self.error is not None:
            raise self.error.to_exception()
        return self.output  # type: ignore[return-value]

"""
Schemas & Canonicalization
File: verification.py

Purpose: Per-step check results and the verification report returned by
the verification engine.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# Severity levels for checks
CheckSeverity = Literal["info", "warn", "error"]


class VerificationOutcome(str, Enum):
    """Outcome of a completed verification. Both values are successes of the protocol."""

    AUTHENTIC = "authentic"
    TAMPERED = "tampered"


class CheckResult(BaseModel):
    """
    Result of a single verification check.

    Checks are atomic verification steps that can pass or fail.
    """

    model_config = ConfigDict(extra="forbid")

    check_id: str = Field(..., min_length=1)
    ok: bool
    severity: CheckSeverity
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        """Check if this is an error-level failure."""
        return not self.ok and self.severity == "error"

    @classmethod
    def passed(
        cls,
        check_id: str,
        message: str = "Check passed",
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a passed check result."""
        return cls(
            check_id=check_id,
            ok=True,
            severity="info",
            message=message,
            details=details or {},
        )

    @classmethod
    def failed(
        cls,
        check_id: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a failed check result."""
        return cls(
            check_id=check_id,
            ok=False,
            severity="error",
            message=message,
            details=details or {},
        )


class VerificationReport(BaseModel):
    """
    Complete result of verifying one record.

    Both roots are exposed as 0x-prefixed hex for audit logging.
    recomputed_root is None when the fetched payload could not be decoded
    into the declared fields (the outcome is then TAMPERED).
    """

    model_config = ConfigDict(extra="forbid")

    record_id: int
    outcome: VerificationOutcome
    anchored_root: str
    recomputed_root: str | None = None
    content_ref: str
    cache_hit: bool = False
    reason: str | None = None
    checks: list[CheckResult] = Field(default_factory=list)
    verified_at: datetime | None = None

    @property
    def is_authentic(self) -> bool:
        return self.outcome == VerificationOutcome.AUTHENTIC

    @property
    def failed_checks(self) -> list[CheckResult]:
        return [c for c in self.checks if not c.ok]

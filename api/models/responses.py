"""
API Response Models

Pydantic models for API response serialization.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "prodseal-api"
    version: str = "v1"
    backend: str | None = None


class AddProductResponse(BaseModel):
    """Response for POST /add endpoint."""

    ok: bool = True
    message: str = "Data added"
    product_id: int
    root: str = Field(..., description="Anchored commitment root (0x hex)")
    content_ref: str = Field(..., description="Content store reference (CID)")
    leaves: list[str] = Field(default_factory=list)


class VerifyProductResponse(BaseModel):
    """Response for POST /verify endpoint. A tampered product is still ok=True."""

    ok: bool = True
    product_id: int
    outcome: str = Field(..., description="authentic or tampered")
    message: str = Field(..., description="Authentic Product or Tampered Product")
    anchored_root: str
    recomputed_root: str | None = None
    content_ref: str
    cache_hit: bool = False
    reason: str | None = None
    checks: list[dict[str, Any]] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)
    retryable: bool = False
    fatal: bool = False


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")

"""
API Request Models

Pydantic models for API request validation.
"""

from pydantic import BaseModel, ConfigDict, Field


class AddProductRequest(BaseModel):
    """Request body for POST /add endpoint."""

    model_config = ConfigDict(extra="forbid")

    product_id: int = Field(..., ge=0, description="Unique product identifier")
    product_name: str = Field(..., min_length=1, max_length=512)
    product_mdate: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Manufacturing date, e.g. 2024-01-01",
    )
    product_batch: str = Field(..., min_length=1, max_length=128)


class VerifyProductRequest(BaseModel):
    """Request body for POST /verify endpoint."""

    model_config = ConfigDict(extra="forbid")

    product_id: int = Field(..., ge=0)
    include_checks: bool = Field(
        default=False,
        description="Include detailed verification checks in response",
    )

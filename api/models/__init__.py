"""API request and response models."""

from api.models.requests import AddProductRequest, VerifyProductRequest
from api.models.responses import (
    AddProductResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    VerifyProductResponse,
)

__all__ = [
    "AddProductRequest",
    "VerifyProductRequest",
    "AddProductResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "VerifyProductResponse",
]

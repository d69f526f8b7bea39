"""
API Error Handling

Standardized error handling for the API. Engine exceptions are mapped onto
HTTP status codes by category.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models.responses import ErrorDetail, ErrorResponse
from core.schemas.errors import ProdsealException


logger = logging.getLogger(__name__)

CATEGORY_STATUS = {
    "construction": 400,
    "conflict": 409,
    "lookup": 404,
    "availability": 503,
    "consistency": 500,
}


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        fatal: bool = False,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.retryable = retryable
        self.fatal = fatal
        super().__init__(message)

    @classmethod
    def from_engine_error(cls, exc: ProdsealException) -> "APIError":
        return cls(
            code=exc.code,
            message=exc.message,
            status_code=CATEGORY_STATUS.get(exc.category, 500),
            details=exc.details,
            retryable=exc.retryable,
            fatal=exc.fatal,
        )

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                details=self.details,
                retryable=self.retryable,
                fatal=self.fatal,
            ),
        )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


async def engine_error_handler(request: Request, exc: ProdsealException) -> JSONResponse:
    """Handle engine exceptions that reached the app boundary."""
    error = APIError.from_engine_error(exc)
    if exc.fatal:
        logger.error(f"{request.url.path}: fatal {exc.code}: {exc.message} {exc.details}")
    return await api_error_handler(request, error)


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
                details={"type": type(exc).__name__},
            ),
        ).model_dump(),
    )

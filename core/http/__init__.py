"""
HTTP Client Module

requests-based client used by HTTP collaborators.
"""

from .client import HttpClient, HttpError, HttpResponse, RETRYABLE_STATUS_CODES

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "RETRYABLE_STATUS_CODES",
]

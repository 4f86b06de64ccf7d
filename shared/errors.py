"""
Shared error handling for the Rates service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ServiceException(Exception):
    """Base exception for Rates service errors."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(ServiceException):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFound(ServiceException):
    """A requested domain resource does not exist."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class CacheUnavailable(ServiceException):
    """The cache store could not be read or written.

    Covers connection failures, timeouts and payloads that cannot be
    serialized or deserialized. Never interpreted as a cache miss.
    """

    status_code = 503

    def __init__(self, message: str = "Cache store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_UNAVAILABLE", message, details)


class UpstreamUnavailable(ServiceException):
    """An external data source failed or returned an unusable response."""

    status_code = 502

    def __init__(self, service: str, message: str = "Unable to fetch data", details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("UPSTREAM_UNAVAILABLE", message, details)


class StoreUnavailable(ServiceException):
    """The user profile store could not be reached."""

    status_code = 503

    def __init__(self, message: str = "User store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_UNAVAILABLE", message, details)

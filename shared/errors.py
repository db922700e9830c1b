"""
Shared error handling for the http.cat image cache.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    status_code: int
    code: str
    message: str
    details: Dict[str, Any] = {}

    @property
    def body(self) -> str:
        """Plain-text body sent to the client: the message on a single line."""
        return f"{self.message}\n"


class CacheServiceException(Exception):
    """Base exception for cache service errors."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            status_code=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details
        )


class InvalidKeyError(CacheServiceException):
    """Malformed cache key (not a 3-digit HTTP code)."""

    status_code = 400

    def __init__(self, message: str = "Bad Request: Invalid HTTP code", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_KEY", message, details)


class NotFoundError(CacheServiceException):
    """No entry stored for the key (and no successful backfill)."""

    status_code = 404

    def __init__(self, message: str = "Not Found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class StorageError(CacheServiceException):
    """Underlying store failure other than a missing entry."""

    status_code = 500

    def __init__(self, message: str = "Internal Server Error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_ERROR", message, details)


class ServiceError(CacheServiceException):
    """Unexpected service failure."""

    status_code = 500

    def __init__(self, message: str = "Internal Server Error", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERVICE_ERROR", message, details)


class OriginTransportError(CacheServiceException):
    """Origin fetch failed at the transport level."""

    status_code = 502

    def __init__(self, origin: str, message: str = "Bad Gateway", details: Optional[Dict[str, Any]] = None):
        super().__init__("ORIGIN_TRANSPORT_ERROR", message, {"origin": origin, **(details or {})})
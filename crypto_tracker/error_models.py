"""
Error taxonomy for market data access and standard error response models.
The HTTP surface converts every MarketDataError into an ErrorResponse.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Standard error codes for API responses."""
    # Resource
    NOT_FOUND = "NOT_FOUND"
    FALLBACK_MISS = "FALLBACK_MISS"

    # Server
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"

    # Rate Limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


class MarketDataError(Exception):
    """Base class for every failure surfaced by the market data client."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class RateLimitedError(MarketDataError):
    """Upstream kept answering 429 after the retry budget was spent."""

    error_code = ErrorCode.RATE_LIMIT_EXCEEDED
    status_code = 429


class NotFoundError(MarketDataError):
    """Upstream confirmed the resource does not exist (404)."""

    error_code = ErrorCode.NOT_FOUND
    status_code = 404


class ConnectivityError(MarketDataError):
    """Network failure, timeout, malformed response or exhausted server errors."""

    error_code = ErrorCode.SERVICE_UNAVAILABLE
    status_code = 503


class ServerError(ConnectivityError):
    """Upstream answered >= 500 on every attempt."""

    error_code = ErrorCode.INTERNAL_ERROR


class RequestTimeoutError(ConnectivityError):
    """No response within the request timeout."""

    error_code = ErrorCode.TIMEOUT


class FallbackMissError(MarketDataError):
    """Rate limited and the requested coin is not part of the fallback set."""

    error_code = ErrorCode.FALLBACK_MISS
    status_code = 404


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    All API error responses follow this structure.
    """
    error: bool = Field(default=True, description="Always true for error responses")
    error_code: ErrorCode = Field(..., description="Standard error code")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    timestamp: Optional[str] = Field(None, description="Error timestamp (ISO format)")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Additional error metadata")

    class Config:
        json_schema_extra = {
            "example": {
                "error": True,
                "error_code": "NOT_FOUND",
                "message": "Coin not found. Please check the coin ID.",
                "detail": None,
                "timestamp": "2024-01-01T00:00:00Z",
                "metadata": {}
            }
        }


def create_error_response(
    error_code: ErrorCode,
    message: str,
    detail: Optional[str] = None,
    status_code: int = 400,
    metadata: Optional[Dict[str, Any]] = None
) -> tuple[ErrorResponse, int]:
    """
    Helper function to create standardized error responses.

    Args:
        error_code: Standard error code
        message: Human-readable error message
        detail: Additional error details
        status_code: HTTP status code
        metadata: Additional error metadata

    Returns:
        Tuple of (ErrorResponse, status_code)
    """
    error_response = ErrorResponse(
        error=True,
        error_code=error_code,
        message=message,
        detail=detail,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        metadata=metadata or {}
    )

    return error_response, status_code


def error_response_from_exception(exc: MarketDataError) -> tuple[ErrorResponse, int]:
    """Build the response for a client failure."""
    return create_error_response(
        error_code=exc.error_code,
        message=exc.message,
        detail=exc.detail,
        status_code=exc.status_code,
    )

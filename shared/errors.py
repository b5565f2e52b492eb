"""
Shared error handling for Feature Guard.

Backend I/O failures are deliberately absent from this module: redis
exceptions reach callers exactly as the client raised them.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class FeatureGuardException(Exception):
    """Base exception for Feature Guard."""

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


class FeatureAccessDenied(FeatureGuardException):
    """Raised by the HTTP binding when the guard denies a request."""

    def __init__(self, message: str = "Feature access denied", details: Optional[Dict[str, Any]] = None):
        super().__init__("FEATURE_ACCESS_DENIED", message, details)


class ConfigurationError(FeatureGuardException):
    """Invalid store or guard configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)

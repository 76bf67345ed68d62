"""
Shared error handling for the Scraper Access Service.
"""

from typing import Dict, Any, Optional

from opentelemetry import trace
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


def current_trace_id() -> Optional[str]:
    """Return the active span's trace id, if any."""
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        span_context = current_span.get_span_context()
        if span_context.trace_id != 0:
            return f"{span_context.trace_id:032x}"
    return None


class ScraperServiceException(Exception):
    """Base exception for the scraper service."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            trace_id=current_trace_id(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(ScraperServiceException):
    """Caller input errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ConfigurationError(ScraperServiceException):
    """Missing or invalid process configuration."""

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class UpstreamError(ScraperServiceException):
    """A single upstream attempt failed.

    ``transient`` marks failures worth retrying (429, 5xx, network faults).
    """

    def __init__(
        self,
        message: str = "Upstream request failed",
        status_code: Optional[int] = None,
        transient: bool = False,
        details: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        self.transient = transient
        merged = {"status_code": status_code, "transient": transient}
        merged.update(details or {})
        super().__init__("UPSTREAM_ERROR", message, merged)


class UpstreamFetchError(ScraperServiceException):
    """Unified pipeline failure surfaced to callers of the orchestrator."""

    def __init__(self, message: str = "Failed to fetch data from upstream", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_FETCH_ERROR", message, details)


class RateLimitError(ScraperServiceException):
    """Outbound admission refused."""

    def __init__(self, message: str = "Rate limit exceeded", details: Optional[Dict[str, Any]] = None):
        super().__init__("RATE_LIMIT_ERROR", message, details)

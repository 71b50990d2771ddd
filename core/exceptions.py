"""
Custom exceptions for the import pipeline with structured error context.

Every exception carries a context dictionary for debugging and for the
error details attached to mapping results.

Exception Hierarchy:
    PipelineError (base)
    ├── FetchError
    │   ├── NetworkError
    │   ├── RateLimitError
    │   ├── AuthenticationError
    │   ├── ResourceNotFoundError
    │   └── SourceFileError
    ├── TransformError
    ├── StoreError
    ├── ConfigurationError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class PipelineError(Exception):
    """
    Base exception for all import pipeline errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, mapping, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Fetch Errors
# ============================================================================

class FetchError(PipelineError):
    """
    Raised when a loader cannot retrieve a page.

    Attributes:
        status_code: HTTP status code (if the source is HTTP based)
        response_body: Response body, truncated to 500 characters
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.status_code = status_code
        self.response_body = response_body[:500] if response_body else response_body
        if status_code is not None:
            self.context.setdefault("status_code", status_code)
        if self.response_body:
            self.context.setdefault("response_body", self.response_body)


class SourceFileError(FetchError):
    """
    Raised when a bulk source file is missing or cannot be parsed.

    Context should include:
        - file_path: Path to the file
    """
    pass


# ============================================================================
# Transform Errors
# ============================================================================

class TransformError(PipelineError):
    """
    Raised when a raw record cannot be normalized into a document.

    Attributes:
        record: The raw record that failed
        reason: Why the record was rejected
    """

    def __init__(
        self,
        record: Any,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(f"Transform failed: {reason}", context, original_exception)
        self.record = record
        self.reason = reason
        self.context.setdefault("record", preview_record(record))


# ============================================================================
# Store Errors
# ============================================================================

class StoreError(PipelineError):
    """
    Raised when an upsert client call fails.

    Context should include:
        - operation: get, create or update
        - collection: Target collection
        - document_id: Document being read or written
    """
    pass


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(PipelineError):
    """
    Raised before any work starts for unknown, duplicate, unavailable or
    structurally invalid mappings.
    """
    pass


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(PipelineError):
    """
    Mixin for errors that should trigger retry logic.

    Use this for transient errors like:
    - Network timeouts
    - Rate limiting (HTTP 429)
    - Service unavailable (HTTP 503)
    """
    pass


class NonRetryableError(PipelineError):
    """
    Mixin for errors that should NOT trigger retry logic.

    Use this for permanent errors like:
    - Authentication failures (HTTP 401, 403)
    - Resource not found (HTTP 404)
    """
    pass


class NetworkError(RetryableError, FetchError):
    """Network-related errors that should be retried."""
    pass


class RateLimitError(RetryableError, FetchError):
    """Rate limiting errors (HTTP 429) that should be retried with backoff."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = 429,
        response_body: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(
            message,
            status_code=status_code,
            response_body=response_body,
            context=context,
            original_exception=original_exception
        )
        self.retry_after = retry_after
        if retry_after:
            self.context["retry_after"] = retry_after


class AuthenticationError(NonRetryableError, FetchError):
    """Authentication failures (HTTP 401, 403) that should not be retried."""
    pass


class ResourceNotFoundError(NonRetryableError, FetchError):
    """Resource not found errors (HTTP 404) that should not be retried."""
    pass


def preview_record(record: Any, limit: int = 100) -> str:
    """Short, log-safe rendering of a raw record."""
    text = repr(record)
    return text if len(text) <= limit else text[:limit] + "..."

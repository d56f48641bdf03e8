"""
Common exception types and error classification for the runner syncer.

Provides:
- ErrorCategory enum for failure classification
- Typed exception hierarchy for sync errors
- Error classification utilities
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    The syncer never retries on its own; the category is reported in logs
    and metrics so the invoking scheduler (or an operator) can tell a flaky
    network from a broken configuration.

    Categories:
        TRANSIENT: Temporary failures that may succeed on the next invocation
                   (e.g., network timeouts, 429/503 errors)
        AUTH: Authentication failures (e.g., 401 errors, bad token)
        PERMANENT: Failures that won't succeed without a change
                   (e.g., 404, missing configuration, no matching asset)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class SyncerError(Exception):
    """
    Base exception for all syncer errors.

    Attributes:
        message: Human-readable error description
        category: Error classification
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether a later invocation could succeed without intervention."""
        return self.category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.UNKNOWN,
        )

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Pre-flight / Resolution Errors (Permanent)
# =============================================================================


class PermanentError(SyncerError):
    """Base class for errors that need a change before they can succeed."""

    category = ErrorCategory.PERMANENT


class ConfigurationError(PermanentError):
    """Mandatory configuration is missing or invalid."""

    pass


class ResolutionError(PermanentError):
    """No matching upstream release or release asset."""

    pass


# =============================================================================
# Transport Errors (category decided per instance)
# =============================================================================


class ClassifiedError(SyncerError):
    """Error whose category is derived from an HTTP status or a cause."""

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
        status_code: Optional[int] = None,
        category: Optional[ErrorCategory] = None,
    ):
        super().__init__(message, cause, context)
        self.status_code = status_code
        if category is not None:
            self.category = category
        elif status_code is not None:
            self.category = classify_http_status(status_code)
        elif cause is not None:
            self.category = classify_exception(cause)


class GitHubApiError(ClassifiedError):
    """Listing releases from the GitHub API failed."""

    pass


class ReplicationError(ClassifiedError):
    """Copying the distribution into the cache store failed."""

    pass


class DownloadError(ReplicationError):
    """Reading the release asset from its download URL failed."""

    pass


class StoreError(ReplicationError):
    """Writing the release asset to the object store failed."""

    pass


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """
    Classify HTTP status code into error category.

    Args:
        status_code: HTTP response status

    Returns:
        Appropriate ErrorCategory
    """
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 401:
        return ErrorCategory.AUTH

    if status_code == 429:
        return ErrorCategory.TRANSIENT  # Rate limited

    # GitHub answers 403 when the unauthenticated rate limit is exhausted
    if status_code == 403:
        return ErrorCategory.TRANSIENT

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCategory:
    """
    Classify an exception into error category.

    Args:
        exc: Exception to classify

    Returns:
        Appropriate ErrorCategory
    """
    # Already classified
    if isinstance(exc, SyncerError):
        return exc.category

    exc_type = type(exc).__name__.lower()
    exc_str = str(exc).lower()

    # Connection errors
    connection_markers = (
        "connectionerror",
        "connection refused",
        "connection reset",
        "connection aborted",
        "serverdisconnected",
        "payloaderror",
        "no route to host",
        "network unreachable",
        "name resolution",
        "endpointconnectionerror",
        "broken pipe",
    )
    if any(m in exc_type or m in exc_str for m in connection_markers):
        return ErrorCategory.TRANSIENT

    # Timeout errors
    if "timeout" in exc_type or "timeout" in exc_str:
        return ErrorCategory.TRANSIENT

    # Auth errors (botocore reports these by error code)
    auth_markers = (
        "401",
        "unauthorized",
        "invalidaccesskeyid",
        "signaturedoesnotmatch",
        "expiredtoken",
        "unable to locate credentials",
    )
    if any(m in exc_type or m in exc_str for m in auth_markers):
        return ErrorCategory.AUTH

    # Throttling and server errors
    if "429" in exc_str or "slowdown" in exc_str or "throttl" in exc_str:
        return ErrorCategory.TRANSIENT
    if "503" in exc_str or "502" in exc_str or "504" in exc_str:
        return ErrorCategory.TRANSIENT

    # Permission and missing resources
    if "403" in exc_str or "accessdenied" in exc_str or "access denied" in exc_str:
        return ErrorCategory.PERMANENT
    if "404" in exc_str or "nosuchbucket" in exc_str or "not found" in exc_str:
        return ErrorCategory.PERMANENT

    return ErrorCategory.UNKNOWN

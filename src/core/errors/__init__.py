"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- SyncerError hierarchy for typed exceptions
- Classification utilities for error handling
"""

from core.errors.exceptions import (
    # Enums
    ErrorCategory,
    # Base classes
    SyncerError,
    PermanentError,
    ClassifiedError,
    # Pre-flight / resolution errors
    ConfigurationError,
    ResolutionError,
    # Transport errors
    GitHubApiError,
    ReplicationError,
    DownloadError,
    StoreError,
    # Classification utilities
    classify_http_status,
    classify_exception,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "SyncerError",
    "PermanentError",
    "ClassifiedError",
    # Pre-flight / resolution errors
    "ConfigurationError",
    "ResolutionError",
    # Transport errors
    "GitHubApiError",
    "ReplicationError",
    "DownloadError",
    "StoreError",
    # Classification utilities
    "classify_http_status",
    "classify_exception",
]

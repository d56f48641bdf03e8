"""
Security helpers.

Provides sanitization for security-sensitive values before they are logged.
"""

from core.security.url_sanitization import SENSITIVE_PARAMS, sanitize_url

__all__ = [
    "sanitize_url",
    "SENSITIVE_PARAMS",
]

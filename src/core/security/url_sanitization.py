"""
URL sanitization for logging.

Release asset downloads redirect to pre-signed object storage URLs, and
endpoint settings may carry basic-auth credentials. Neither may end up in
log output.
"""

from typing import FrozenSet
from urllib.parse import urlsplit, urlunsplit

REDACTED = "[REDACTED]"

# Query parameter names (lowercase) whose values grant access
SENSITIVE_PARAMS: FrozenSet[str] = frozenset(
    {
        # Pre-signed S3 / AWS SigV4
        "x-amz-signature",
        "x-amz-credential",
        "x-amz-security-token",
        # GitHub release asset redirects
        "jwt",
        # Azure SAS and generic signatures
        "sig",
        "signature",
        # Generic tokens and secrets
        "token",
        "access_token",
        "api_key",
        "apikey",
        "key",
        "secret",
        "password",
        "auth",
        "authorization",
    }
)


def _redact_param(param: str) -> str:
    name, sep, _ = param.partition("=")
    if sep and name.lower() in SENSITIVE_PARAMS:
        return f"{name}={REDACTED}"
    return param


def _redact_netloc(netloc: str) -> str:
    userinfo, sep, host = netloc.rpartition("@")
    if not sep:
        return netloc
    user, has_password, _ = userinfo.partition(":")
    if has_password:
        return f"{user}:{REDACTED}@{host}"
    return netloc


def sanitize_url(url: str) -> str:
    """
    Redact credentials from a URL before it is logged.

    Values of sensitive query parameters and the password part of the
    userinfo are replaced; everything else is kept so the URL stays useful
    for debugging.

    Args:
        url: URL that may contain credentials

    Returns:
        URL safe for logging (unparseable input is returned unchanged)
    """
    if not url:
        return url

    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    netloc = _redact_netloc(parts.netloc)
    query = "&".join(_redact_param(p) for p in parts.query.split("&")) if parts.query else ""

    if netloc == parts.netloc and query == parts.query:
        return url
    return urlunsplit(parts._replace(netloc=netloc, query=query))

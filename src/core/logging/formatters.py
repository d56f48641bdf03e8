"""Log formatters for JSON and console output."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from core.logging.context import get_log_context
from core.security import sanitize_url

# Structured fields copied from LogRecord extras, in output order
EXTRA_FIELDS: List[str] = [
    "duration_ms",
    "http_status",
    "error_category",
    "error_message",
    # Release resolution
    "runner_os",
    "runner_arch",
    "allow_prerelease",
    "release_tag",
    "release_count",
    "asset_name",
    "cached_version",
    "download_url",
    # Cache store
    "bucket",
    "key",
    "bytes_transferred",
    "sse_algorithm",
    # Orchestration
    "state",
    "outcome",
    "api_endpoint",
    "api_url",
]

# Extras that hold URLs and are redacted before output
URL_FIELDS = frozenset({"download_url", "api_url", "url"})

# Extras worth showing on a human-readable console line
CONSOLE_FIELDS = ["asset_name", "cached_version", "bytes_transferred", "outcome", "error_category"]


def record_extras(record: logging.LogRecord, names: List[str]) -> Dict[str, Any]:
    """Return the given extras set on record, with URLs sanitized."""
    extras: Dict[str, Any] = {}
    for name in names:
        value = getattr(record, name, None)
        if value is None:
            continue
        if name in URL_FIELDS and isinstance(value, str):
            value = sanitize_url(value)
        extras[name] = value
    return extras


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line, for log shippers and jq.

    Adds the invocation context (invocation_id, domain, stage) and the
    structured extras passed through log_with_context().
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "ts": created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{created.microsecond // 1000:03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        entry.update({name: value for name, value in get_log_context().items() if value})

        if record.levelno == logging.DEBUG or record.levelno >= logging.ERROR:
            entry["file"] = f"{record.filename}:{record.lineno}"

        entry.update(record_extras(record, EXTRA_FIELDS))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable single-line output.

    Example:
        2025-01-15 10:32:01 - INFO - [linux-x64] - [sync] - The new distribution is uploaded to S3. (asset_name=...)
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_log_context()
        created = datetime.fromtimestamp(record.created)

        parts = [created.strftime("%Y-%m-%d %H:%M:%S"), record.levelname]
        parts.extend(f"[{ctx[name]}]" for name in ("domain", "stage") if ctx[name])
        line = f"{' - '.join(parts)} - {record.getMessage()}"

        extras = record_extras(record, CONSOLE_FIELDS)
        if extras:
            line += " (" + ", ".join(f"{k}={v}" for k, v in extras.items()) + ")"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line

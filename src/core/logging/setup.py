"""Logging setup and configuration."""

import logging
import secrets
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from core.logging.context import set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter

# Default settings
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_CONSOLE_LEVEL = logging.INFO
DEFAULT_FILE_LEVEL = logging.DEBUG

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "botocore",
    "boto3",
    "s3transfer",
    "urllib3",
    "aiohttp",
]


def get_log_file_path(log_dir: Path, domain: Optional[str] = None) -> Path:
    """
    Build log file path with date subfolder structure.

    Structure: {log_dir}/{YYYY-MM-DD}/syncer[_{domain}]_{YYYYMMDD}.log

    Args:
        log_dir: Base log directory
        domain: Runner target (e.g. linux-x64)

    Returns:
        Full path to log file
    """
    date_folder = datetime.now().strftime("%Y-%m-%d")
    date_str = datetime.now().strftime("%Y%m%d")

    if domain:
        filename = f"syncer_{domain}_{date_str}.log"
    else:
        filename = f"syncer_{date_str}.log"

    return log_dir / date_folder / filename


def parse_log_level(level: Union[str, int]) -> int:
    """
    Convert a level name (case-insensitive) or number to a logging level.

    Unknown names fall back to INFO.
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else DEFAULT_CONSOLE_LEVEL


def setup_logging(
    name: str = "runner_binaries_syncer",
    domain: Optional[str] = None,
    log_dir: Optional[Path] = None,
    json_format: bool = False,
    console_level: Union[str, int] = DEFAULT_CONSOLE_LEVEL,
    file_level: int = DEFAULT_FILE_LEVEL,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    suppress_noisy: bool = True,
    invocation_id: Optional[str] = None,
) -> logging.Logger:
    """
    Configure logging with a console handler and an optional rotating file.

    Serverless runtimes capture stdout, so the console handler is always
    installed; JSON output there is selected with json_format. A rotating
    JSON file handler is added only when log_dir is given:
        logs/2025-01-15/syncer_linux-x64_20250115.log

    Args:
        name: Logger name to return
        domain: Runner target for context (e.g. linux-x64)
        log_dir: Directory for log files (default: no file logging)
        json_format: Use JSON format for console output (default: False)
        console_level: Console handler level, name or number (default: INFO)
        file_level: File handler level (default: DEBUG)
        max_bytes: Max size per log file before rotation
        backup_count: Number of backup files to keep
        suppress_noisy: Quiet down AWS SDK and HTTP client loggers
        invocation_id: Invocation identifier for context

    Returns:
        Configured logger instance
    """
    if invocation_id:
        set_log_context(invocation_id=invocation_id)
    if domain:
        set_log_context(domain=domain)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter

    # Remove existing handlers to avoid duplicates on re-init
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(parse_log_level(console_level))
    console_handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())
    root_logger.addHandler(console_handler)

    log_file = None
    if log_dir is not None:
        log_file = get_log_file_path(Path(log_dir), domain=domain)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    logger.debug(f"Logging initialized: file={log_file}, json={json_format}")

    return logger


def generate_invocation_id() -> str:
    """
    Generate unique invocation identifier.

    Format: s-YYYYMMDD-HHMMSS-XXXX where XXXX is random hex.

    Returns:
        Unique invocation ID string
    """
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    suffix = secrets.token_hex(2)
    return f"s-{ts}-{suffix}"

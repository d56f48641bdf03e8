"""
Entry point for a single sync invocation.

Usage:
    # Configure through environment variables
    S3_BUCKET_NAME=runner-cache S3_OBJECT_KEY=actions-runner-linux.tar.gz \
        python -m runner_binaries_syncer

    # Or from a YAML file (environment variables still win)
    python -m runner_binaries_syncer --config config.yaml

Exit codes:
    0: Cache is up to date (already, or after a successful sync)
    1: The invocation failed
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from core.errors import SyncerError
from core.logging.setup import generate_invocation_id, setup_logging
from core.logging.utilities import get_logger, log_exception

# Placeholder logger until setup_logging() is called in main()
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="runner-binaries-syncer",
        description="Sync the latest GitHub Actions runner distribution into S3",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Sync using environment configuration
    python -m runner_binaries_syncer

    # Sync with a YAML config and debug output
    python -m runner_binaries_syncer --config config.yaml --log-level DEBUG
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML config file (default: environment only)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: LOG_LEVEL from config, else INFO)",
    )

    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Write rotating JSON log files to this directory (default: LOG_DIR env var, else none)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON logs on stdout (also enabled by JSON_LOGS=true)",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run one invocation and return the process exit code."""
    global logger
    args = parse_args(argv)

    from runner_binaries_syncer.config import load_config
    from runner_binaries_syncer.syncer import run_sync

    # Logging must work even when the configuration is broken
    config = None
    config_error: Optional[SyncerError] = None
    try:
        config = load_config(args.config)
    except SyncerError as e:
        config_error = e

    log_level = args.log_level or (config.log_level if config else "INFO")
    json_logs = args.json_logs or os.getenv("JSON_LOGS", "false").lower() in ("true", "1", "yes")
    log_dir_str = args.log_dir or os.getenv("LOG_DIR")

    setup_logging(
        name="runner_binaries_syncer",
        domain=config.target if config else None,
        log_dir=Path(log_dir_str) if log_dir_str else None,
        json_format=json_logs,
        console_level=log_level,
        invocation_id=generate_invocation_id(),
    )

    # Re-get logger after setup to use new handlers
    logger = get_logger(__name__)

    if config_error is not None:
        log_exception(logger, config_error, "Invalid configuration", include_traceback=False)
        return 1

    try:
        outcome = asyncio.run(run_sync(config))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 1
    except Exception:
        # Already logged with full context by run_sync
        return 1

    logger.info(f"Sync completed: {outcome.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

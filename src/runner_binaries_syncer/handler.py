"""
Serverless entry point.

Scheduled functions call handler(event, context) once per trigger. The
event payload is ignored; configuration comes from the environment.
Errors are logged and re-raised so the platform records a failed
invocation.
"""

import asyncio
from typing import Any, Dict

from core.logging.setup import generate_invocation_id, setup_logging
from core.logging.utilities import get_logger, log_exception
from runner_binaries_syncer.config import SyncerConfig
from runner_binaries_syncer.syncer import run_sync

logger = get_logger(__name__)


def handler(event: Any, context: Any) -> Dict[str, str]:
    """
    Run one sync invocation.

    Args:
        event: Trigger payload (unused)
        context: Runtime context; aws_request_id is used as invocation id

    Returns:
        {"outcome": "up_to_date" | "synced"}
    """
    invocation_id = getattr(context, "aws_request_id", None) or generate_invocation_id()

    try:
        config = SyncerConfig.from_env()
    except Exception as e:
        setup_logging(json_format=True, invocation_id=invocation_id)
        log_exception(logger, e, "Invalid configuration", include_traceback=False)
        raise

    setup_logging(
        domain=config.target,
        json_format=True,
        console_level=config.log_level,
        invocation_id=invocation_id,
    )

    outcome = asyncio.run(run_sync(config))
    return {"outcome": outcome.value}

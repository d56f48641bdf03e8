"""Log context variables propagated across async boundaries."""

from contextvars import ContextVar
from typing import Dict, Optional

_invocation_id: ContextVar[Optional[str]] = ContextVar("invocation_id", default=None)
_stage: ContextVar[Optional[str]] = ContextVar("stage", default=None)
_domain: ContextVar[Optional[str]] = ContextVar("domain", default=None)


def set_log_context(
    invocation_id: Optional[str] = None,
    stage: Optional[str] = None,
    domain: Optional[str] = None,
) -> None:
    """
    Set context values injected into every log record.

    Only the arguments that are given are changed.

    Args:
        invocation_id: Identifier of the current sync invocation
        stage: Current orchestrator stage (resolve, inspect, sync)
        domain: Runner target, e.g. "linux-x64"
    """
    if invocation_id is not None:
        _invocation_id.set(invocation_id)
    if stage is not None:
        _stage.set(stage)
    if domain is not None:
        _domain.set(domain)


def get_log_context() -> Dict[str, Optional[str]]:
    """Return the current log context values."""
    return {
        "invocation_id": _invocation_id.get(),
        "stage": _stage.get(),
        "domain": _domain.get(),
    }


def clear_log_context() -> None:
    """Reset all context values."""
    _invocation_id.set(None)
    _stage.set(None)
    _domain.set(None)

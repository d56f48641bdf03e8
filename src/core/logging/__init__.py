"""
Structured logging module.

Provides JSON/console logging with invocation context propagation.

Import directly from sub-modules:
    from core.logging.setup import setup_logging
    from core.logging.utilities import get_logger, log_with_context
    from core.logging.context import set_log_context
"""

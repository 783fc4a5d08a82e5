"""Logging infrastructure.

Structured logging for the tree service:
- JSONL format with OpenTelemetry trace correlation
- Automatic context injection via contextvars
- QueueHandler + QueueListener for non-blocking I/O
- Lazy evaluation for per-query debug messages

Basic usage:
    from tree_service.infra.logging import get_lazy_logger, set_log_context, setup_logging

    setup_logging()
    set_log_context(tree="cms")

    log = get_lazy_logger("tree.closure.CmsClosure")
    log.debug(lambda: f"closure.attach: {child_id} under {parent_id}")
"""

from tree_service.infra.logging.config import (
    complete,
    configure_logging,
    setup_logging,
    shutdown,
)
from tree_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    remove_from_log_context,
    set_log_context,
)
from tree_service.infra.logging.formatters import JSONFormatter
from tree_service.infra.logging.lazy import (
    LazyLoggerAdapter,
    LazyString,
    get_lazy_logger,
    lazy,
)

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "LazyString",
    "clear_log_context",
    "complete",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "lazy",
    "remove_from_log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]

"""Context management for structured logging.

Fields set with set_log_context() are attached to every record emitted by
the current task, so a caller can tag a batch of tree writes once (tenant,
import job, tree name) instead of passing ``extra=`` on each call. The
storage is a ContextVar, so concurrent tasks never see each other's fields.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        ```python
        set_log_context(tree="cms", job="import-2024-05")
        await tree.write_value("/config/database/host", "db1")  # logs carry tree and job
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Drop every field from the current task's logging context."""
    _log_context.set({})


def remove_from_log_context(*keys: str) -> None:
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


class ContextInjectingFilter(logging.Filter):
    """Copy the current logging context onto each LogRecord.

    Installed on the root QueueHandler by configure_logging(); existing record
    attributes (including anything passed via ``extra=``) win over context
    fields of the same name.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


__all__ = [
    "ContextInjectingFilter",
    "clear_log_context",
    "get_log_context",
    "remove_from_log_context",
    "set_log_context",
]

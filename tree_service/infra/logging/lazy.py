"""Lazy evaluation support for logging.

Tree queries log their row counts and ids at DEBUG on every call. Building
those messages is wasted work when DEBUG is off, so the hierarchy layer logs
through LazyLoggerAdapter, passing lambdas that only run when the level is
enabled.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any


class LazyString:
    """String whose value is computed when it is first formatted.

    Example:
        ```python
        logger.debug("Subtree: %s", LazyString(lambda: sorted(ids)))
        ```
    """

    __slots__ = ("_func",)

    def __init__(self, func: Callable[[], Any]) -> None:
        self._func = func

    def __str__(self) -> str:
        return str(self._func())

    def __repr__(self) -> str:
        return f"LazyString({self._func!r})"


class LazyLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that evaluates callable messages and args on demand.

    Example:
        ```python
        log = LazyLoggerAdapter(logging.getLogger("tree.closure"), {})
        log.debug(lambda: f"closure.attach: {child_id} under {parent_id}")
        log.info("Removed %s rows", lambda: len(ids))
        ```
    """

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        """Log at level, calling msg and any callable args first.

        Nothing is evaluated when the level is disabled.
        """
        if not self.isEnabledFor(level):
            return

        if callable(msg):
            msg = msg()
        if args:
            args = tuple(arg() if callable(arg) else arg for arg in args)

        super().log(level, msg, *args, **kwargs)

    def debug(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, msg, *args, **kwargs)


def get_lazy_logger(name: str, **context: Any) -> LazyLoggerAdapter:
    """Get a LazyLoggerAdapter for name, optionally binding extra context.

    Args:
        name: Logger name, e.g. ``tree.nodes.CmsNode``.
        **context: Extra fields attached to every record.

    Returns:
        Logger adapter with lazy evaluation support.
    """
    return LazyLoggerAdapter(logging.getLogger(name), context or {})


def lazy(func: Callable[[], Any]) -> LazyString:
    """Shorthand for ``LazyString(func)``."""
    return LazyString(func)


__all__ = ["LazyLoggerAdapter", "LazyString", "get_lazy_logger", "lazy"]

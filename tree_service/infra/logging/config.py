"""Logging configuration setup.

- dictConfig sets the root and per-logger levels
- QueueHandler + QueueListener keep handler I/O off the event loop
- ContextInjectingFilter on the root QueueHandler adds set_log_context() fields
- JSONL output by default, plain text for local runs
"""

from __future__ import annotations

import atexit
import logging
import logging.config
import time
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from tree_service.infra.logging.context import ContextInjectingFilter
from tree_service.infra.logging.formatters import JSONFormatter

if TYPE_CHECKING:
    from tree_service.core.settings.logs import LoggingSettings

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
_LOGGING_INITIALIZED = False
_ATEXIT_REGISTERED = False

logger = logging.getLogger(__name__)

SERVICE_NAME = "tree-service"
TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def complete(max_wait: float = 5.0) -> None:
    """Block until queued records are written (or max_wait elapses)."""
    if _log_queue is None or _listener is None:
        return

    start = time.monotonic()
    while not _log_queue.empty() and (time.monotonic() - start) < max_wait:
        time.sleep(0.01)
    # Last dequeued record may still be in a handler
    time.sleep(0.05)


def shutdown() -> None:
    """Flush pending records, stop the QueueListener and detach its handler."""
    global _log_queue, _listener, _queue_handler

    if _listener is not None:
        complete()
        _listener.stop()
        _listener = None

    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None

    _log_queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Configure logging once per process.

    Args:
        log_settings: Logging settings; loaded via get_logging_settings() when omitted.
        force: Reconfigure even if logging was already set up.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from tree_service.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    log_config = {**log_settings.to_logging_kwargs(), **configure_kwargs}
    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    console_level: str | None = None,
    file_level: str | None = None,
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    include_process_info: bool = False,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    logger_levels: dict[str, str] | None = None,
    **kwargs: Any,
) -> None:
    """Configure the root logger with dictConfig and a queue listener.

    Args:
        log_level: Root logger level.
        console_level: Console handler level. If None, uses log_level.
        file_level: File handler level. If None, uses log_level.
        file_path: Path to log file. None disables file logging.
        json_logs: Emit JSON Lines instead of plain text.
        console_enabled: Enable console/stderr logging.
        include_context: Install ContextInjectingFilter on the root QueueHandler.
        capture_warnings: Forward Python warnings to logging.
        include_process_info: Include process id and name in JSON records.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        logger_levels: Per-logger level overrides, e.g. {"tree": "DEBUG"}.

    Example:
        ```python
        configure_logging(log_level="INFO", logger_levels={"tree.closure": "DEBUG"})
        ```
    """
    if kwargs:
        logger.debug("Unused logging kwargs supplied: %s", ", ".join(sorted(kwargs)))

    # Reconfiguring replaces the previous queue and listener
    shutdown()

    if capture_warnings:
        logging.captureWarnings(True)

    console_level = console_level or log_level
    file_level = file_level or log_level
    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "loggers": {
            name: {"level": level.upper()} for name, level in (logger_levels or {}).items()
        },
        "root": {
            "level": log_level.upper(),
            "handlers": [],
        },
    }
    logging.config.dictConfig(logging_config)

    _setup_queue_logging(
        console_enabled=console_enabled,
        console_level=console_level,
        file_path=path,
        file_level=file_level,
        file_max_bytes=file_max_bytes,
        file_backup_count=file_backup_count,
        json_logs=json_logs,
        include_process_info=include_process_info,
        include_context=include_context,
    )


def _make_formatter(json_logs: bool, include_process_info: bool) -> logging.Formatter:
    if json_logs:
        return JSONFormatter(static={"service": SERVICE_NAME}, include_process_info=include_process_info)
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)


def _setup_queue_logging(
    console_enabled: bool,
    console_level: str,
    file_path: Path | None,
    file_level: str,
    file_max_bytes: int,
    file_backup_count: int,
    json_logs: bool,
    include_process_info: bool,
    include_context: bool = True,
) -> None:
    """Create the real handlers behind a QueueListener; the root gets a QueueHandler."""
    global _log_queue, _listener, _queue_handler, _ATEXIT_REGISTERED

    handlers: list[logging.Handler] = []

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level.upper())
        console_handler.setFormatter(_make_formatter(json_logs, include_process_info))
        handlers.append(console_handler)

    if file_path:
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level.upper())
        file_handler.setFormatter(_make_formatter(json_logs, include_process_info))
        handlers.append(file_handler)

    if not handlers:
        return

    _log_queue = Queue()
    _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
    _listener.start()
    if not _ATEXIT_REGISTERED:
        atexit.register(shutdown)
        _ATEXIT_REGISTERED = True

    _queue_handler = QueueHandler(_log_queue)
    if include_context:
        _queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(_queue_handler)


__all__ = ["complete", "configure_logging", "setup_logging", "shutdown"]

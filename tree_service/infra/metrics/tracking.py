"""Helper functions for tracking tree store operational metrics."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from typing import TYPE_CHECKING

from tree_service.core.database.exceptions import TreeStoreError
from tree_service.infra.metrics import prometheus

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def track_tree_operation(tree: str, operation: str) -> AsyncIterator[None]:
    """Context manager to track one tree operation with timing.

    The outcome label is ``success``, the error class name for domain
    errors (``NotFoundError``, ``NoValueError``, ...), or ``error`` for
    anything unexpected.

    Args:
        tree: Tree instance name (e.g., "cms")
        operation: Operation name (e.g., "write_value")

    Example:
            async with track_tree_operation("cms", "read_value"):
            value = await engine.read_value("/a/b")
    """
    start_time = time.perf_counter()
    outcome = "success"

    try:
        yield
    except TreeStoreError as e:
        outcome = type(e).__name__
        raise
    except Exception:
        outcome = "error"
        raise
    finally:
        duration = time.perf_counter() - start_time
        prometheus.tree_operation_duration_seconds.labels(tree=tree, operation=operation).observe(duration)
        prometheus.tree_operations_total.labels(tree=tree, operation=operation, outcome=outcome).inc()

        # Track slow operations (>1 second)
        if duration > 1.0:
            logger.warning(
                "Slow tree operation",
                extra={"tree": tree, "operation": operation, "duration": duration},
            )


def track_write_retry(tree: str) -> None:
    """Count a write retried after a uniqueness race."""
    prometheus.tree_write_retries_total.labels(tree=tree).inc()


def track_nodes_deleted(tree: str, count: int) -> None:
    """Count nodes removed from a tree."""
    if count:
        prometheus.tree_nodes_deleted_total.labels(tree=tree).inc(count)


def track_query(operation: str, duration: float) -> None:
    """Record one database statement; statements over 1s are logged."""
    prometheus.database_query_duration_seconds.labels(operation=operation).observe(duration)
    if duration > 1.0:
        logger.warning("Slow database query", extra={"operation": operation, "duration": duration})

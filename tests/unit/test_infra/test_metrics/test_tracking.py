"""Unit tests for tree metric tracking helpers."""

from __future__ import annotations

import pytest

from tree_service.core.database.exceptions import NoValueError
from tree_service.infra.metrics.prometheus import REGISTRY
from tree_service.infra.metrics.tracking import (
    track_nodes_deleted,
    track_query,
    track_tree_operation,
    track_write_retry,
)


def _sample(name: str, labels: dict[str, str]) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.asyncio
async def test_successful_operation_counted_and_timed():
    labels = {"tree": "metrics-test", "operation": "read_value"}
    before_count = _sample("tree_operations_total", {**labels, "outcome": "success"})
    before_timed = _sample("tree_operation_duration_seconds_count", labels)

    async with track_tree_operation("metrics-test", "read_value"):
        pass

    assert _sample("tree_operations_total", {**labels, "outcome": "success"}) == before_count + 1
    assert _sample("tree_operation_duration_seconds_count", labels) == before_timed + 1


@pytest.mark.asyncio
async def test_domain_error_outcome_is_class_name():
    labels = {"tree": "metrics-test", "operation": "read_value", "outcome": "NoValueError"}
    before = _sample("tree_operations_total", labels)

    with pytest.raises(NoValueError):
        async with track_tree_operation("metrics-test", "read_value"):
            raise NoValueError("/a")

    assert _sample("tree_operations_total", labels) == before + 1


@pytest.mark.asyncio
async def test_unexpected_error_outcome():
    labels = {"tree": "metrics-test", "operation": "write_value", "outcome": "error"}
    before = _sample("tree_operations_total", labels)

    with pytest.raises(RuntimeError):
        async with track_tree_operation("metrics-test", "write_value"):
            raise RuntimeError("boom")

    assert _sample("tree_operations_total", labels) == before + 1


def test_write_retry_counter():
    before = _sample("tree_write_retries_total", {"tree": "metrics-test"})

    track_write_retry("metrics-test")

    assert _sample("tree_write_retries_total", {"tree": "metrics-test"}) == before + 1


def test_nodes_deleted_counter_ignores_zero():
    before = _sample("tree_nodes_deleted_total", {"tree": "metrics-test"})

    track_nodes_deleted("metrics-test", 0)
    track_nodes_deleted("metrics-test", 4)

    assert _sample("tree_nodes_deleted_total", {"tree": "metrics-test"}) == before + 4


def test_slow_query_logged(caplog: pytest.LogCaptureFixture):
    before = _sample("tree_database_query_duration_seconds_count", {"operation": "UPDATE"})

    with caplog.at_level("WARNING", logger="tree_service.infra.metrics.tracking"):
        track_query("UPDATE", 0.002)
        track_query("UPDATE", 1.5)

    assert _sample("tree_database_query_duration_seconds_count", {"operation": "UPDATE"}) == before + 2
    assert [r.message for r in caplog.records] == ["Slow database query"]

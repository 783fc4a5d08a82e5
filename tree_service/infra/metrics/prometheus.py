"""Prometheus metrics for tree store operations."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

# Create custom registry for better control and exemplar support
REGISTRY = CollectorRegistry()

# Covers operation times from 1ms to 10s
DEFAULT_LATENCY_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)

tree_operations_total = Counter(
    "tree_operations_total",
    "Total tree store operations by outcome",
    ["tree", "operation", "outcome"],
    registry=REGISTRY,
)

tree_operation_duration_seconds = Histogram(
    "tree_operation_duration_seconds",
    "Tree store operation duration in seconds (one transaction each)",
    ["tree", "operation"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

tree_write_retries_total = Counter(
    "tree_write_retries_total",
    "Tree writes retried after losing a path uniqueness race",
    ["tree"],
    registry=REGISTRY,
)

tree_nodes_deleted_total = Counter(
    "tree_nodes_deleted_total",
    "Nodes removed by subtree deletes (explicit or overwrite pruning)",
    ["tree"],
    registry=REGISTRY,
)

database_query_duration_seconds = Histogram(
    "tree_database_query_duration_seconds",
    "Database statement duration in seconds by statement type",
    ["operation"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

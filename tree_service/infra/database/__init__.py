"""Database infrastructure: engine, sessions and schema provisioning."""

from __future__ import annotations

from tree_service.infra.database.schema import provision_all_trees, provision_tree_schema
from tree_service.infra.database.session import (
    AsyncSessionLocal,
    close_database,
    create_session_factory,
    create_tree_engine,
    engine,
    get_async_session,
    init_database,
)

__all__ = [
    "AsyncSessionLocal",
    "close_database",
    "create_session_factory",
    "create_tree_engine",
    "engine",
    "get_async_session",
    "init_database",
    "provision_all_trees",
    "provision_tree_schema",
]

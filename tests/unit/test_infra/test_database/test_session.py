"""Tests for engine creation, statement timing and database startup."""
from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.pool import StaticPool

from tree_service.core.settings import DatabaseSettings
from tree_service.infra.database.session import (
    _statement_type,
    close_database,
    create_session_factory,
    create_tree_engine,
    init_database,
)
from tree_service.infra.metrics.prometheus import REGISTRY
from tree_service.utils.retry import RetryError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine]:
    engine = create_tree_engine(
        DatabaseSettings(enabled=False, sqlite_path=":memory:"),
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest.mark.parametrize(
    ("statement", "expected"),
    [
        ("SELECT 1", "SELECT"),
        ("  insert into cms_data ...", "INSERT"),
        ("DELETE FROM cms_closure", "DELETE"),
        ("PRAGMA foreign_keys", "UNKNOWN"),
        (None, "UNKNOWN"),
    ],
)
def test_statement_type(statement: str | None, expected: str):
    assert _statement_type(statement) == expected


@pytest.mark.asyncio
async def test_statements_are_timed(sqlite_engine: AsyncEngine):
    def observed() -> float:
        return REGISTRY.get_sample_value("tree_database_query_duration_seconds_count", {"operation": "SELECT"}) or 0.0

    before = observed()
    async with sqlite_engine.connect() as conn:
        await conn.execute(text("SELECT 1"))

    assert observed() == before + 1


def test_session_factory_keeps_objects_after_commit(sqlite_engine: AsyncEngine):
    factory = create_session_factory(sqlite_engine)

    assert factory.kw["expire_on_commit"] is False
    assert factory.kw["autoflush"] is False


@pytest.mark.asyncio
async def test_init_database_provisions_trees(sqlite_engine: AsyncEngine, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TREE_ROOT_POLICY", "stored")

    await init_database(sqlite_engine)

    async with sqlite_engine.connect() as conn:
        tables = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        root = (await conn.execute(text("SELECT path FROM cms_data WHERE id = 1"))).scalar_one()
    assert {"cms_data", "cms_closure", "catalog_categories", "catalog_category_closure"} <= tables
    assert root == "/"


@pytest.mark.asyncio
async def test_init_database_skips_provisioning(sqlite_engine: AsyncEngine, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TREE_PROVISION_ON_STARTUP", "false")

    await init_database(sqlite_engine)

    async with sqlite_engine.connect() as conn:
        tables = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
    assert tables == set()


@pytest.mark.asyncio
async def test_init_database_gives_up(monkeypatch: pytest.MonkeyPatch):
    """Connection errors are retried, then surface as RetryError."""
    monkeypatch.setenv("DB_STARTUP_RETRY_ATTEMPTS", "2")
    monkeypatch.setenv("DB_STARTUP_RETRY_DELAY", "0.01")
    attempts = {"count": 0}

    async def refuse(bind):
        attempts["count"] += 1
        raise OSError("connection refused")

    monkeypatch.setattr("tree_service.infra.database.session._check_connection", refuse)
    engine = create_tree_engine(DatabaseSettings(enabled=False, sqlite_path=":memory:"))

    with pytest.raises(RetryError):
        await init_database(engine)

    assert attempts["count"] == 2
    await close_database(engine)

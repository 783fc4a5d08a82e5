"""Database engine and session management.

PostgreSQL through the psycopg3 async driver when configured, otherwise a
local SQLite file through aiosqlite. The module-level ``engine`` and
``AsyncSessionLocal`` are built from get_db_settings() at import time;
create_tree_engine() builds additional engines (tests, tools).
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tree_service.core.settings import get_db_settings, get_tree_settings
from tree_service.infra.metrics.tracking import track_query
from tree_service.utils.retry import retry

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from tree_service.core.settings import DatabaseSettings

logger = logging.getLogger(__name__)

_STATEMENT_TYPES = ("SELECT", "INSERT", "UPDATE", "DELETE", "BEGIN", "COMMIT", "ROLLBACK", "CREATE")


def _statement_type(statement: str | None) -> str:
    if statement:
        head = statement.lstrip()[:8].upper()
        for kind in _STATEMENT_TYPES:
            if head.startswith(kind):
                return kind
    return "UNKNOWN"


def _before_cursor_execute(
    conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: Any
) -> None:
    context._query_start_time = time.perf_counter()


def _after_cursor_execute(
    conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: Any
) -> None:
    start = getattr(context, "_query_start_time", None)
    if start is not None:
        track_query(_statement_type(statement), time.perf_counter() - start)


def _on_connect(dbapi_conn: Any, connection_record: Any) -> None:
    logger.debug("Database connection opened", extra={"connection_id": id(dbapi_conn)})


def create_tree_engine(db_settings: DatabaseSettings | None = None, **overrides: Any) -> AsyncEngine:
    """Create an async engine with statement timing hooks attached.

    Args:
        db_settings: Database settings; defaults to get_db_settings().
        **overrides: Extra create_async_engine() kwargs (e.g. poolclass).
    """
    db_settings = db_settings or get_db_settings()
    kwargs = {**db_settings.sqlalchemy_engine_kwargs(), **overrides}
    new_engine = create_async_engine(db_settings.sqlalchemy_url, **kwargs)

    sync_engine = new_engine.sync_engine
    event.listen(sync_engine, "before_cursor_execute", _before_cursor_execute)
    event.listen(sync_engine, "after_cursor_execute", _after_cursor_execute)
    event.listen(sync_engine, "connect", _on_connect)
    return new_engine


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by every TreeEngine.

    Objects stay usable after commit (expire_on_commit=False) because tree
    reads return nodes after their session has closed.
    """
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_tree_engine()
AsyncSessionLocal = create_session_factory(engine)


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Get async database session.

    Example:
        async with get_async_session() as session:
            node = await store.find_by_path(session, TreePath("/a/b"))
    """
    async with AsyncSessionLocal() as session:
        yield session


async def _check_connection(bind: AsyncEngine) -> None:
    async with bind.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def init_database(bind: AsyncEngine | None = None) -> None:
    """Check connectivity with retry, then provision tree schemas if enabled.

    Uses retry settings from DatabaseSettings (startup_retry_*), useful
    when the database container starts after the service.

    Raises:
        RetryError: If unable to connect after all retry attempts.
    """
    bind = bind or engine
    db_settings = get_db_settings()
    tree_settings = get_tree_settings()

    logger.info(
        "Initializing database connection with retry",
        extra={
            "max_attempts": db_settings.startup_retry_attempts,
            "initial_delay": db_settings.startup_retry_delay,
            "sqlite": db_settings.is_sqlite,
        },
    )

    check = retry(
        max_attempts=db_settings.startup_retry_attempts,
        initial_delay=db_settings.startup_retry_delay,
        max_delay=db_settings.startup_retry_max_delay,
        exceptions=(OSError, DBAPIError),
    )(_check_connection)

    try:
        await check(bind)
    except Exception as e:
        logger.error(
            "Failed to connect to database",
            extra={"url": bind.url.render_as_string(hide_password=True), "error": str(e)},
        )
        raise

    logger.info(
        "Database connection established successfully",
        extra={"url": bind.url.render_as_string(hide_password=True)},
    )

    if tree_settings.provision_on_startup:
        from tree_service.infra.database.schema import provision_all_trees

        await provision_all_trees(bind, tree_settings)


async def close_database(bind: AsyncEngine | None = None) -> None:
    """Dispose of the engine's pool; call during application shutdown."""
    logger.info("Closing database connection")
    await (bind or engine).dispose()
    logger.info("Database connection closed successfully")


__all__ = [
    "AsyncSessionLocal",
    "close_database",
    "create_session_factory",
    "create_tree_engine",
    "engine",
    "get_async_session",
    "init_database",
]

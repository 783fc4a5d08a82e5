"""Pytest configuration and shared fixtures.

Organization:
    - Database Fixtures: in-memory SQLite engine, session factory, session
    - Tree Fixtures: TreeEngine instances for both root conventions
    - Settings/Logging Fixtures: cache and context cleanup

Every database fixture uses a fresh in-memory SQLite database behind a
StaticPool, so all sessions of one test share a single connection and
see each other's committed writes.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Ensure tests run without external infrastructure
os.environ.setdefault("DB_ENABLED", "false")
os.environ.setdefault("DB_SQLITE_PATH", ":memory:")
os.environ.setdefault("LOG_FILE_ENABLED", "false")

from tree_service.core.database.base import Base  # noqa: E402
from tree_service.core.database.hierarchy import StoredRoot, TreeEngine, VirtualRoot  # noqa: E402
from tree_service.core.models import CmsClosure, CmsNode  # noqa: E402
from tree_service.core.settings import clear_settings_cache  # noqa: E402
from tree_service.infra.database.schema import provision_tree_schema  # noqa: E402
from tree_service.infra.logging import clear_log_context  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator

    from sqlalchemy.ext.asyncio import AsyncEngine


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite and all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory configured like the production one."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """Plain session for store/index level tests; callers commit explicitly."""
    async with session_factory() as session:
        yield session


# ============================================================================
# Tree Fixtures
# ============================================================================


@pytest.fixture(params=["virtual", "stored"])
def root_policy(request: pytest.FixtureRequest) -> VirtualRoot | StoredRoot:
    """Both root conventions; tests using it run once per convention."""
    if request.param == "stored":
        return StoredRoot(sentinel_id=1)
    return VirtualRoot(root_id=0)


@pytest.fixture
async def cms_tree(
    db_engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
    root_policy: VirtualRoot | StoredRoot,
) -> TreeEngine[CmsNode, CmsClosure]:
    """CMS TreeEngine provisioned for the parametrized root convention."""
    await provision_tree_schema(db_engine, CmsNode, CmsClosure, root_policy)
    name = "cms-stored" if root_policy.is_stored else "cms-virtual"
    return TreeEngine(session_factory, CmsNode, CmsClosure, root_policy, name=name, write_retry_delay=0.0)


# ============================================================================
# Settings/Logging Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_global_state() -> Generator[None]:
    """Keep cached settings and log context from leaking between tests."""
    yield
    clear_settings_cache()
    clear_log_context()

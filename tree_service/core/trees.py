"""Ready-made tree instances.

Each factory wires a pair of models, the root policy and write settings
into a TreeEngine. The CMS tree takes its root convention from
TreeSettings; the catalog tree always uses its stored ``__ROOT__`` row.

Example:
    >>> cms = build_cms_tree()
    >>> await cms.write_value("/config/database/host", "localhost")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tree_service.core.database.hierarchy import TreeEngine, root_policy_from_settings
from tree_service.core.models import CatalogCategory, CatalogCategoryClosure, CmsClosure, CmsNode
from tree_service.core.settings import get_tree_settings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from tree_service.core.settings import TreeSettings


def _default_session_factory() -> async_sessionmaker[AsyncSession]:
    from tree_service.infra.database.session import AsyncSessionLocal

    return AsyncSessionLocal


def build_cms_tree(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    settings: TreeSettings | None = None,
) -> TreeEngine[CmsNode, CmsClosure]:
    """TreeEngine over cms_data/cms_closure with the configured root policy."""
    settings = settings or get_tree_settings()
    return TreeEngine(
        session_factory or _default_session_factory(),
        CmsNode,
        CmsClosure,
        root_policy_from_settings(settings),
        name="cms",
        write_retry_attempts=settings.write_retry_attempts,
        write_retry_delay=settings.write_retry_delay,
    )


def build_catalog_tree(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    settings: TreeSettings | None = None,
) -> TreeEngine[CatalogCategory, CatalogCategoryClosure]:
    """TreeEngine over the catalog category tables (stored root)."""
    settings = settings or get_tree_settings()
    return CatalogCategory.tree_engine(
        session_factory or _default_session_factory(),
        name="catalog",
        write_retry_attempts=settings.write_retry_attempts,
        write_retry_delay=settings.write_retry_delay,
    )


__all__ = ["build_catalog_tree", "build_cms_tree"]

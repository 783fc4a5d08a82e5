"""Tree schema provisioning.

Creates the node and closure tables of a tree instance when they are
missing and, for stored-root trees, seeds the root sentinel: a node row
with the reserved id and path "/" plus its ``(id, id, 0)`` self-edge.
Safe to run on every startup.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, text

from tree_service.core.database.exceptions import NotAllowedError
from tree_service.core.database.hierarchy.paths import ROOT
from tree_service.core.database.hierarchy.policy import StoredRoot, root_policy_from_settings
from tree_service.core.models import CatalogCategory, CatalogCategoryClosure, CmsClosure, CmsNode

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

    from tree_service.core.database.hierarchy.policy import RootPolicy
    from tree_service.core.settings import TreeSettings

logger = logging.getLogger(__name__)


async def provision_tree_schema(
    bind: AsyncEngine,
    node_model: type[Any],
    closure_model: type[Any],
    policy: RootPolicy,
) -> None:
    """Create one tree's tables if needed and seed its root sentinel.

    Args:
        bind: Engine to provision against
        node_model: Node model of the tree
        closure_model: Closure model of the tree
        policy: Root convention; only StoredRoot seeds rows
    """
    tables = [node_model.__table__, closure_model.__table__]

    async with bind.begin() as conn:
        await conn.run_sync(lambda sync_conn: [t.create(bind=sync_conn, checkfirst=True) for t in tables])

        if isinstance(policy, StoredRoot):
            await _seed_sentinel(conn, node_model, closure_model, policy.sentinel_id)

    logger.info(
        "Tree schema provisioned",
        extra={
            "node_table": node_model.__tablename__,
            "closure_table": closure_model.__tablename__,
            "stored_root": policy.is_stored,
        },
    )


async def _seed_sentinel(
    conn: AsyncConnection,
    node_model: type[Any],
    closure_model: type[Any],
    sentinel_id: int,
) -> None:
    node_table = node_model.__table__
    closure_table = closure_model.__table__

    existing = await conn.execute(select(node_table.c.path).where(node_table.c.id == sentinel_id))
    existing_path = existing.scalar_one_or_none()
    if existing_path is not None and existing_path != str(ROOT):
        raise NotAllowedError(
            "Reserved root id is taken by an ordinary node.",
            {"node_table": node_table.name, "sentinel_id": sentinel_id, "path": existing_path},
        )
    if existing_path is None:
        await conn.execute(insert(node_table).values(id=sentinel_id, path=str(ROOT), value=None))
        logger.info(
            "Root sentinel created",
            extra={"node_table": node_table.name, "sentinel_id": sentinel_id},
        )

    self_edge = await conn.execute(
        select(closure_table.c.length).where(
            closure_table.c.ancestor_id == sentinel_id,
            closure_table.c.descendant_id == sentinel_id,
        )
    )
    if self_edge.scalar_one_or_none() is None:
        await conn.execute(
            insert(closure_table).values(ancestor_id=sentinel_id, descendant_id=sentinel_id, length=0)
        )

    # An explicit id does not advance a PostgreSQL identity sequence
    if conn.dialect.name == "postgresql":
        await conn.execute(
            text(
                f"SELECT setval(pg_get_serial_sequence('{node_table.name}', 'id'), "
                f"GREATEST((SELECT COALESCE(MAX(id), 0) FROM {node_table.name}), :sentinel_id))"
            ),
            {"sentinel_id": sentinel_id},
        )


async def provision_all_trees(bind: AsyncEngine, tree_settings: TreeSettings) -> None:
    """Provision the CMS tree (configured root policy) and the catalog tree."""
    await provision_tree_schema(bind, CmsNode, CmsClosure, root_policy_from_settings(tree_settings))
    await provision_tree_schema(
        bind, CatalogCategory, CatalogCategoryClosure, CatalogCategory.__root_policy__
    )


__all__ = ["provision_all_trees", "provision_tree_schema"]

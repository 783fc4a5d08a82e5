"""Transitive-closure index over a node table.

For every node N and every ancestor A of N (N included) the closure table
holds exactly one row ``(A.id, N.id, depth(N) - depth(A))``. That makes
ancestor, descendant, child and parent queries a single indexed join
instead of a recursive walk.

Writes are set-based:

- attach copies every closure row that ends at the parent, re-targets it at
  the new child with ``length + 1``, and adds the child's self-edge, all in
  one ``INSERT ... SELECT ... UNION ALL SELECT`` statement.
- detach_subtree locks the subtree's node rows, collects their ids from
  the closure rows of its root and deletes every row whose descendant is
  one of them, which drops both the subtree's internal rows and its links
  to outside ancestors.

The virtual-root convention has no closure rows for the root itself, so
attaching directly under it adds the literal ``(root_id, child, 1)`` row in
the same statement.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import Integer, delete, func, insert, literal, select, union_all

from tree_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tree_service.core.database.hierarchy.policy import RootPolicy


class ClosureIndex[N, C]:
    """Closure-table queries and rewrites for one tree instance.

    Args:
        closure_model: Mapped class combining ClosureEdgeMixin
        node_model: Node model the closure rows point at
        policy: Root convention of this tree

    All query methods return ``(node, length)`` pairs or plain nodes of
    ``node_model``. A virtual root never appears in results since it has no
    node row.
    """

    __slots__ = ("closure", "node", "policy", "_logger", "_lazy")

    def __init__(self, closure_model: type[C], node_model: type[N], policy: RootPolicy) -> None:
        self.closure = closure_model
        self.node = node_model
        self.policy = policy
        self._logger = logging.getLogger(f"tree.closure.{closure_model.__name__}")
        self._lazy = get_lazy_logger(f"tree.closure.{closure_model.__name__}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def ancestors_of(self, session: AsyncSession, node_id: int) -> list[tuple[N, int]]:
        """All ancestors including self, farthest first, self last (length 0)."""
        c: Any = self.closure
        n: Any = self.node
        stmt = (
            select(n, c.length)
            .join(c, n.id == c.ancestor_id)
            .where(c.descendant_id == node_id)
            .order_by(c.length.desc())
        )
        result = await session.execute(stmt)
        rows = [(node, length) for node, length in result.all()]

        self._lazy.debug(lambda: f"closure.ancestors_of: {node_id} -> {len(rows)} rows")
        return rows

    async def descendants_of(
        self,
        session: AsyncSession,
        node_id: int,
        *,
        max_length: int | None = None,
    ) -> list[tuple[N, int]]:
        """All descendants including self (length 0), nearest first.

        Args:
            session: Async database session
            node_id: Subtree root (may be the root id of either policy)
            max_length: Only return descendants at most this many edges away
        """
        c: Any = self.closure
        n: Any = self.node
        stmt = (
            select(n, c.length)
            .join(c, n.id == c.descendant_id)
            .where(c.ancestor_id == node_id)
        )
        if max_length is not None:
            stmt = stmt.where(c.length <= max_length)
        stmt = stmt.order_by(c.length.asc(), n.path.asc())

        result = await session.execute(stmt)
        rows = [(node, length) for node, length in result.all()]

        self._lazy.debug(lambda: f"closure.descendants_of: {node_id} -> {len(rows)} rows")
        return rows

    async def children_of(self, session: AsyncSession, node_id: int) -> list[N]:
        """Immediate children (descendants at length exactly 1), ordered by path."""
        rows = await self.descendants_of(session, node_id, max_length=1)
        return [node for node, length in rows if length == 1]

    async def parent_of(self, session: AsyncSession, node_id: int) -> N | None:
        """The unique stored ancestor at length 1, None for the root or a top-level node under a virtual root."""
        c: Any = self.closure
        n: Any = self.node
        stmt = (
            select(n)
            .join(c, n.id == c.ancestor_id)
            .where(c.descendant_id == node_id, c.length == 1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_descendants(self, session: AsyncSession, node_id: int, *, include_self: bool = False) -> int:
        """Number of descendants, using COUNT rather than loading rows."""
        c: Any = self.closure
        stmt = select(func.count()).select_from(c).where(c.ancestor_id == node_id)
        if not include_self:
            stmt = stmt.where(c.length > 0)
        result = await session.execute(stmt)
        return result.scalar() or 0

    # ------------------------------------------------------------------
    # Rewrites
    # ------------------------------------------------------------------

    async def attach(self, session: AsyncSession, child_id: int, parent_id: int) -> None:
        """Index a freshly created node under its parent.

        Precondition: the parent's own closure rows exist (it is attached,
        or it is the root). The child must not have closure rows yet.
        """
        c: Any = self.closure

        inherited = select(
            c.ancestor_id,
            literal(child_id, Integer),
            c.length + 1,
        ).where(c.descendant_id == parent_id)
        self_edge = select(literal(child_id, Integer), literal(child_id, Integer), literal(0, Integer))
        parts = [inherited, self_edge]

        if not self.policy.is_stored and self.policy.is_root(parent_id):
            parts.append(
                select(literal(parent_id, Integer), literal(child_id, Integer), literal(1, Integer))
            )

        await session.execute(
            insert(c.__table__).from_select(["ancestor_id", "descendant_id", "length"], union_all(*parts))
        )
        self._lazy.debug(lambda: f"closure.attach: {child_id} under {parent_id}")

    async def detach_subtree(
        self,
        session: AsyncSession,
        root_id: int,
        *,
        include_root: bool = True,
    ) -> set[int]:
        """Remove every closure row whose descendant lies in the subtree.

        Args:
            session: Async database session
            root_id: Subtree root
            include_root: Detach root_id itself too; when False only its
                strict descendants are removed and root_id stays indexed

        Returns:
            The removed node ids for the caller to delete from the node
            table in the same transaction
        """
        c: Any = self.closure
        n: Any = self.node
        # Row locks first; the id query below then sees children committed
        # by writers this statement waited on
        await session.execute(
            select(n.id)
            .join(c, n.id == c.descendant_id)
            .where(c.ancestor_id == root_id)
            .with_for_update(of=n)
        )
        stmt = select(c.descendant_id).where(c.ancestor_id == root_id)
        if not include_root:
            stmt = stmt.where(c.length > 0)
        result = await session.execute(stmt)
        ids = set(result.scalars().all())
        if not ids:
            return ids

        await session.execute(
            delete(c.__table__).where(c.descendant_id.in_(list(ids)))
        )
        self._logger.info(
            "Subtree detached from closure index",
            extra={"closure": self.closure.__name__, "root_id": root_id, "removed": len(ids)},
        )
        return ids


__all__ = ["ClosureIndex"]

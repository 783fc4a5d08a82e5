"""Node table access: normalized path <-> node id, plus node values.

NodeStore is a thin repository over one node model. The session is always
an explicit argument; transactions are opened by the caller (TreeEngine),
never here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import Select, delete, select, update
from sqlalchemy.exc import IntegrityError

from tree_service.core.database.exceptions import DuplicatePathError, NotFoundError
from tree_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlalchemy.ext.asyncio import AsyncSession

    from tree_service.core.database.hierarchy.paths import TreePath


class NodeStore[N]:
    """Repository for one node model.

    Provides:
        - find_by_path(session, path, lock=False) -> N | None
        - find_by_id(session, id, lock=False) -> N | None
        - create(session, path, value) -> N (raises DuplicatePathError)
        - set_value(session, id, value) -> None (raises NotFoundError)
        - delete(session, ids) -> None (idempotent)
    """

    __slots__ = ("model", "_logger", "_lazy")

    def __init__(self, model: type[N]) -> None:
        """Initialize store with the node model class.

        Args:
            model: Mapped class combining IntegerPKMixin and TreeNodeMixin
        """
        self.model = model
        self._logger = logging.getLogger(f"tree.nodes.{model.__name__}")
        self._lazy = get_lazy_logger(f"tree.nodes.{model.__name__}")

    @property
    def _id(self) -> Any:
        return self.model.id  # type: ignore[attr-defined]

    @property
    def _path(self) -> Any:
        return self.model.path  # type: ignore[attr-defined]

    def select_by_path(self, path: TreePath, *, lock: bool = False) -> Select[Any]:
        """Lookup statement for one path.

        With ``lock`` the row is read ``FOR SHARE`` on PostgreSQL, so a
        concurrent delete of it waits for this transaction (SQLite ignores
        the clause and serializes writers anyway).
        """
        stmt = select(self.model).where(self._path == str(path))
        return stmt.with_for_update(read=True) if lock else stmt

    def select_by_id(self, node_id: int, *, lock: bool = False) -> Select[Any]:
        stmt = select(self.model).where(self._id == node_id)
        return stmt.with_for_update(read=True) if lock else stmt

    async def find_by_path(self, session: AsyncSession, path: TreePath, *, lock: bool = False) -> N | None:
        """Exact match on the normalized path (served by the unique index).

        Writers pass ``lock=True`` for rows they are about to hang children
        under.
        """
        result = await session.execute(self.select_by_path(path, lock=lock))
        node = result.scalar_one_or_none()

        self._lazy.debug(
            lambda: f"nodes.find_by_path: {path} -> {'found' if node is not None else 'not found'}"
        )
        return node

    async def find_by_id(self, session: AsyncSession, node_id: int, *, lock: bool = False) -> N | None:
        result = await session.execute(self.select_by_id(node_id, lock=lock))
        node = result.scalar_one_or_none()
        self._lazy.debug(
            lambda: f"nodes.find_by_id: {node_id} -> {'found' if node is not None else 'not found'}"
        )
        return node

    async def create(self, session: AsyncSession, path: TreePath, value: str | None = None) -> N:
        """Insert a node row and return it with its generated id.

        Uniqueness is enforced by the database, not checked here: a second
        insert of the same path fails at flush time.

        Raises:
            DuplicatePathError: If a node already exists at path
        """
        node = self.model(path=str(path), value=value)  # type: ignore[call-arg]
        session.add(node)
        try:
            await session.flush()
        except IntegrityError as e:
            self._logger.warning(
                "Duplicate node path rejected",
                extra={"model": self.model.__name__, "path": str(path)},
            )
            raise DuplicatePathError(str(path)) from e

        self._logger.info(
            "Node created",
            extra={"model": self.model.__name__, "path": str(path), "node_id": node.id},  # type: ignore[attr-defined]
        )
        return node

    async def set_value(self, session: AsyncSession, node_id: int, value: str | None) -> None:
        """Overwrite a node's value in place; children are untouched.

        Raises:
            NotFoundError: If no node has this id
        """
        result = await session.execute(
            update(self.model).where(self._id == node_id).values(value=value)
        )
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise NotFoundError(self.model.__name__, {"id": node_id})

        self._lazy.debug(lambda: f"nodes.set_value: {node_id}")

    async def delete(self, session: AsyncSession, ids: Collection[int]) -> None:
        """Bulk delete node rows; ids that are not present are ignored."""
        if not ids:
            return
        await session.execute(
            delete(self.model)
            .where(self._id.in_(list(ids)))
            .execution_options(synchronize_session="fetch")
        )
        self._lazy.debug(lambda: f"nodes.delete: {len(ids)} ids")


__all__ = ["NodeStore"]

"""Transactional key/value operations over a closure-indexed tree.

TreeEngine composes the path codec, a NodeStore and a ClosureIndex. It is
stateless apart from its collaborators: every public call opens its own
session, and every mutating call runs inside exactly one transaction, so a
failure anywhere rolls both the node table and the closure table back
together.

Example:
    >>> tree = TreeEngine(AsyncSessionLocal, CmsNode, CmsClosure, VirtualRoot(), name="cms")
    >>> await tree.write_value("/config/database/host", "localhost")
    3
    >>> await tree.read_value("config/database/host")
    'localhost'
    >>> await tree.read_subtree_map("/config")
    {'database/host': 'localhost'}
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry import trace

from tree_service.core.database.exceptions import (
    DuplicatePathError,
    NotAllowedError,
    NotFoundError,
    NoValueError,
)
from tree_service.core.database.hierarchy.closure import ClosureIndex
from tree_service.core.database.hierarchy.nodes import NodeStore
from tree_service.core.database.hierarchy.paths import ROOT, TreePath, normalize
from tree_service.infra.metrics.tracking import (
    track_nodes_deleted,
    track_tree_operation,
    track_write_retry,
)
from tree_service.utils.retry import retry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from tree_service.core.database.hierarchy.policy import RootPolicy

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class TreeEngine[N, C]:
    """Point/subtree reads, multi-level writes and subtree deletes.

    Args:
        session_factory: Factory for AsyncSession instances
        node_model: Node model (IntegerPKMixin + TreeNodeMixin)
        closure_model: Closure model (ClosureEdgeMixin) indexing node_model
        policy: Root convention of this tree
        name: Tree name used in logs and metric labels
        write_retry_attempts: Attempts for a write that loses a path race
        write_retry_delay: Initial backoff between those attempts (seconds)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        node_model: type[N],
        closure_model: type[C],
        policy: RootPolicy,
        *,
        name: str | None = None,
        write_retry_attempts: int = 3,
        write_retry_delay: float = 0.05,
    ) -> None:
        self._session_factory = session_factory
        self.policy = policy
        self.nodes: NodeStore[N] = NodeStore(node_model)
        self.closure: ClosureIndex[N, C] = ClosureIndex(closure_model, node_model, policy)
        self.name = name or node_model.__name__
        self.write_retry_attempts = write_retry_attempts
        self.write_retry_delay = write_retry_delay

    def __repr__(self) -> str:
        return f"TreeEngine(name={self.name!r}, policy={self.policy!r})"

    @asynccontextmanager
    async def _operation(self, operation: str, **attributes: Any) -> AsyncIterator[None]:
        """Wrap one public call in a trace span plus operation metrics."""
        span_attributes = {"tree.name": self.name, **{f"tree.{k}": str(v) for k, v in attributes.items()}}
        with tracer.start_as_current_span(f"tree.{operation}", attributes=span_attributes):
            async with track_tree_operation(self.name, operation):
                yield

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session, session.begin():
            yield session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def read_value(self, path: str) -> str:
        """Return the value stored at path.

        Raises:
            InvalidPathError: If path is malformed
            NotAllowedError: If path is the root, under either root policy
            NotFoundError: If no node exists at path
            NoValueError: If the node is structural (has no value)
        """
        async with self._operation("read_value", path=path), self._session_factory() as session:
            tree_path = normalize(path)
            if tree_path.is_root:
                raise NotAllowedError("The tree root holds no value.", {"path": path})
            node: Any = await self.nodes.find_by_path(session, tree_path)
            if node is None:
                raise NotFoundError(self.nodes.model.__name__, {"path": str(tree_path)})
            if node.value is None:
                raise NoValueError(str(tree_path))
            return node.value

    async def read_subtree_map(self, path: str) -> dict[str, str]:
        """Return every valued node under path, keyed relative to path.

        Nodes come back nearest first; structural nodes are skipped. The
        subtree root's own value, if any, is keyed by the empty string.

        Raises:
            NotFoundError: If path is not the root and no node exists there
        """
        async with self._operation("read_subtree_map", path=path), self._session_factory() as session:
            tree_path = normalize(path)
            root_id = await self._resolve_id(session, tree_path)
            rows = await self.closure.descendants_of(session, root_id)

        result: dict[str, str] = {}
        for node, _length in rows:
            n: Any = node
            if n.value is None:
                continue
            result[TreePath(n.path).relative_to(tree_path)] = n.value
        return result

    async def find_node(self, path: str) -> N | None:
        """Return the node stored at path, or None."""
        async with self._operation("find_node", path=path), self._session_factory() as session:
            tree_path = normalize(path)
            return await self.nodes.find_by_path(session, tree_path)

    async def read_children(self, path: str) -> list[N]:
        """Immediate children of path (the root included), ordered by path."""
        async with self._operation("read_children", path=path), self._session_factory() as session:
            tree_path = normalize(path)
            root_id = await self._resolve_id(session, tree_path)
            return await self.closure.children_of(session, root_id)

    async def read_ancestors(self, path: str) -> list[N]:
        """Stored ancestors of path including itself, farthest first."""
        async with self._operation("read_ancestors", path=path), self._session_factory() as session:
            tree_path = normalize(path)
            node_id = await self._resolve_id(session, tree_path)
            return [node for node, _length in await self.closure.ancestors_of(session, node_id)]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def write_value(self, path: str, value: str) -> int:
        """Set value at path, creating missing intermediate nodes.

        Writing onto an existing node replaces the whole branch below it:
        its descendants are deleted and the node keeps its id with the new
        value. Top-level keys are the exception and keep their children.
        The whole write is retried on DuplicatePathError, which only
        happens when a concurrent transaction created one of the same
        nodes first.

        Returns:
            Id of the node now holding value

        Raises:
            InvalidPathError: If path is malformed
            NotAllowedError: If path is the root
            DuplicatePathError: If the path race persists past all attempts
        """
        @retry(
            max_attempts=self.write_retry_attempts,
            initial_delay=self.write_retry_delay,
            max_delay=1.0,
            exceptions=(DuplicatePathError,),
            on_retry=lambda _e, _attempt: track_write_retry(self.name),
            reraise=True,
        )
        async def attempt() -> int:
            async with self._transaction() as session:
                return await self._write_value(session, tree_path, prefix, value)

        async with self._operation("write_value", path=path):
            tree_path = normalize(path)
            prefix = tree_path.parent
            if prefix is None:
                raise NotAllowedError("Values cannot be set directly on the root.", {"path": path})
            return await attempt()

    async def _write_value(self, session: AsyncSession, path: TreePath, prefix: TreePath, value: str) -> int:
        key = path.key

        # 1. Direct child of the root: create or reuse, then set the value
        if prefix.is_root:
            node_id = await self._insert_child(session, self.policy.root_id, key)
            await self.nodes.set_value(session, node_id, value)
            return node_id

        # 2. Existing node at the full path: replace its branch
        existing: Any = await self.nodes.find_by_path(session, path, lock=True)
        if existing is not None:
            pruned = await self._delete_subtree(session, existing.id, include_root=False)
            if pruned:
                logger.info(
                    "Existing branch replaced by value write",
                    extra={"tree": self.name, "path": str(path), "removed": len(pruned)},
                )
            await self.nodes.set_value(session, existing.id, value)
            return existing.id

        # 3. Find the deepest prefix that already exists, share-locked so it
        #    cannot be deleted before the new children are attached
        missing: list[str] = []
        ancestor_id = self.policy.root_id
        probe = prefix
        while not probe.is_root:
            found: Any = await self.nodes.find_by_path(session, probe, lock=True)
            if found is not None:
                ancestor_id = found.id
                break
            missing.append(probe.key)
            probe = probe.parent  # type: ignore[assignment]

        # 4. Materialize the missing directories, then the valued leaf
        for label in reversed(missing):
            ancestor_id = await self._insert_child(session, ancestor_id, label)
        return await self._insert_child(session, ancestor_id, key, value)

    async def insert_child(self, parent_id: int, key: str, value: str | None = None) -> int:
        """Create key under parent_id, or return the existing child's id.

        An existing child keeps its current value.

        Raises:
            NotFoundError: If parent_id is neither the root nor a stored node
            InvalidPathError: If key is not a single non-empty segment
        """
        async with self._operation("insert_child", parent_id=parent_id), self._transaction() as session:
            return await self._insert_child(session, parent_id, key, value)

    async def _insert_child(
        self,
        session: AsyncSession,
        parent_id: int,
        key: str,
        value: str | None = None,
    ) -> int:
        if self.policy.is_root(parent_id):
            parent_path = ROOT
        else:
            parent: Any = await self.nodes.find_by_id(session, parent_id, lock=True)
            if parent is None:
                raise NotFoundError(self.nodes.model.__name__, {"id": parent_id})
            parent_path = TreePath(parent.path)

        path = parent_path / key
        match: Any = await self.nodes.find_by_path(session, path)
        if match is not None:
            return match.id

        child: Any = await self.nodes.create(session, path, value)
        await self.closure.attach(session, child.id, parent_id)
        return child.id

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    async def delete_subtree(self, node_id: int) -> set[int]:
        """Delete a node and all its descendants from both tables.

        Unknown ids are a no-op and return an empty set.

        Returns:
            Ids of every removed node

        Raises:
            NotAllowedError: If node_id is the root
        """
        async with self._operation("delete_subtree", node_id=node_id):
            if self.policy.is_root(node_id):
                raise NotAllowedError("The tree root cannot be deleted.", {"id": node_id})
            async with self._transaction() as session:
                removed = await self._delete_subtree(session, node_id)

        logger.info(
            "Subtree deleted",
            extra={"tree": self.name, "node_id": node_id, "removed": len(removed)},
        )
        return removed

    async def _delete_subtree(self, session: AsyncSession, node_id: int, *, include_root: bool = True) -> set[int]:
        ids = await self.closure.detach_subtree(session, node_id, include_root=include_root)
        await self.nodes.delete(session, ids)
        track_nodes_deleted(self.name, len(ids))
        return ids

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve_id(self, session: AsyncSession, path: TreePath) -> int:
        if path.is_root:
            return self.policy.root_id
        node: Any = await self.nodes.find_by_path(session, path)
        if node is None:
            raise NotFoundError(self.nodes.model.__name__, {"path": str(path)})
        return node.id


__all__ = ["TreeEngine"]

"""Mixin giving node models instance-level tree navigation.

Models mixing in ClosureTreeMixin get convenience methods that forward
their own id into the shared, stateless ClosureIndex/NodeStore of their
tree. No navigation state lives on the instance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from tree_service.core.database.hierarchy.closure import ClosureIndex
from tree_service.core.database.hierarchy.nodes import NodeStore
from tree_service.core.database.hierarchy.paths import TreePath, normalize
from tree_service.core.database.hierarchy.policy import VirtualRoot

if TYPE_CHECKING:
    from typing import Self

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from tree_service.core.database.hierarchy.engine import TreeEngine
    from tree_service.core.database.hierarchy.policy import RootPolicy


class ClosureTreeMixin:
    """Mixin for node models indexed by a closure table.

    The model must also mix in IntegerPKMixin and TreeNodeMixin, and name
    its closure model and root policy:

    Example:
        >>> class CatalogCategory(Base, IntegerPKMixin, TreeNodeMixin, ClosureTreeMixin):
        ...     __tablename__ = "catalog_categories"
        ...     __root_policy__ = StoredRoot(sentinel_id=1)
        ...
        ...     @classmethod
        ...     def closure_model(cls):
        ...         return CatalogCategoryClosure
        >>>
        >>> laptops = await CatalogCategory.get_by_path(session, "/electronics/laptops")
        >>> parent = await laptops.get_parent(session)
        >>> ancestors = await laptops.get_ancestors(session)

    Note:
        - All navigation methods are async and require a session parameter
        - The root (sentinel row) is left out of navigation results unless
          include_root is passed
    """

    __allow_unmapped__ = True

    __root_policy__: ClassVar[RootPolicy] = VirtualRoot()

    @classmethod
    def closure_model(cls) -> type[Any]:
        """Return the closure model indexing this node model."""
        raise NotImplementedError(f"{cls.__name__} must define closure_model()")

    @classmethod
    def closure_index(cls) -> ClosureIndex[Self, Any]:
        return ClosureIndex(cls.closure_model(), cls, cls.__root_policy__)

    @classmethod
    def node_store(cls) -> NodeStore[Self]:
        return NodeStore(cls)

    @classmethod
    def tree_engine(cls, session_factory: async_sessionmaker[AsyncSession], **kwargs: Any) -> TreeEngine[Self, Any]:
        """Build a TreeEngine bound to this model's tables and root policy."""
        from tree_service.core.database.hierarchy.engine import TreeEngine

        return TreeEngine(session_factory, cls, cls.closure_model(), cls.__root_policy__, **kwargs)

    @property
    def hierarchy_depth(self) -> int:
        """Depth below the root, computed from the path (no query)."""
        return TreePath(self._path_value).depth

    @property
    def path_labels(self) -> list[str]:
        """Path segments from the root down to this node (no query)."""
        return TreePath(self._path_value).labels

    @property
    def is_root(self) -> bool:
        """True for the stored sentinel row of this tree."""
        return self.__root_policy__.is_root(self._id_value)

    @property
    def _path_value(self) -> str:
        return getattr(self, "path")

    @property
    def _id_value(self) -> int:
        return getattr(self, "id")

    def _visible(self, node: Any, include_root: bool) -> bool:
        return include_root or not self.__root_policy__.is_root(node.id)

    async def get_parent(self, session: AsyncSession, *, include_root: bool = False) -> Self | None:
        """Get the parent node, None for top-level nodes and the root."""
        parent = await self.closure_index().parent_of(session, self._id_value)
        if parent is None or not self._visible(parent, include_root):
            return None
        return parent

    async def get_children(self, session: AsyncSession) -> list[Self]:
        """Get immediate children, ordered by path."""
        return await self.closure_index().children_of(session, self._id_value)

    async def get_ancestors(
        self,
        session: AsyncSession,
        *,
        include_self: bool = False,
        include_root: bool = False,
    ) -> list[Self]:
        """Get ancestors ordered from the top of the tree down to the parent.

        Args:
            session: Async database session
            include_self: Include this node at end of list
            include_root: Include the stored root sentinel
        """
        rows = await self.closure_index().ancestors_of(session, self._id_value)
        return [
            node
            for node, length in rows
            if (include_self or length > 0) and self._visible(node, include_root)
        ]

    async def get_descendants(
        self,
        session: AsyncSession,
        *,
        include_self: bool = False,
        max_depth: int | None = None,
    ) -> list[Self]:
        """Get descendants, nearest first.

        Args:
            session: Async database session
            include_self: Include this node at start of list
            max_depth: Maximum depth relative to this node (None for unlimited)
        """
        rows = await self.closure_index().descendants_of(session, self._id_value, max_length=max_depth)
        return [node for node, length in rows if include_self or length > 0]

    async def get_subtree_count(self, session: AsyncSession, *, include_self: bool = False) -> int:
        """Count descendants with a single COUNT query."""
        return await self.closure_index().count_descendants(session, self._id_value, include_self=include_self)

    @classmethod
    async def get_by_path(cls, session: AsyncSession, path: str) -> Self | None:
        """Get node by path (raw paths are normalized first)."""
        return await cls.node_store().find_by_path(session, normalize(path))


__all__ = [
    "ClosureTreeMixin",
]

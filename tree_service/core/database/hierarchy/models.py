"""Column mixins for the two record families of a tree instance.

A tree instance is a node table (path enumeration: one row per node, unique
normalized path) plus a closure table (one row per ancestor/descendant
pair, self-pairs included). Concrete models combine these mixins with
``Base`` and name their tables:

    class CmsNode(Base, IntegerPKMixin, TreeNodeMixin):
        __tablename__ = "cms_data"

    class CmsClosure(Base, ClosureEdgeMixin):
        __tablename__ = "cms_closure"
        __node_table__ = "cms_data"

Under a virtual root the closure ``ancestor_id`` column carries the
reserved root id, which has no node row, so the foreign key on that column
is only declared when ``__ancestor_fk__`` is True (stored-root trees).
"""

from __future__ import annotations

from typing import Any, ClassVar

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

PATH_MAX_LENGTH = 1024


class TreeNodeMixin:
    """Node record: ``(id, path UNIQUE, value NULLABLE)``.

    ``value`` is None for a purely structural node. A node may carry both a
    value and children.
    """

    __allow_unmapped__ = True

    path: Mapped[str] = mapped_column(
        String(PATH_MAX_LENGTH),
        unique=True,
        nullable=False,
        comment="Normalized absolute path",
    )
    value: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="Payload, NULL for structural nodes",
    )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={getattr(self, 'id', None)!r}, path={self.path!r})"


class ClosureEdgeMixin:
    """Closure record: ``(ancestor_id, descendant_id, length)``.

    Primary key is ``(ancestor_id, descendant_id)``; ``length`` is the
    number of edges between the two, 0 for the self-edge.
    """

    __allow_unmapped__ = True

    # Table holding the nodes this closure indexes
    __node_table__: ClassVar[str]
    # Declare FK on ancestor_id (stored-root trees only)
    __ancestor_fk__: ClassVar[bool] = False

    @declared_attr
    def ancestor_id(cls) -> Mapped[int]:
        if cls.__ancestor_fk__:
            return mapped_column(
                Integer,
                ForeignKey(f"{cls.__node_table__}.id"),
                primary_key=True,
                autoincrement=False,
            )
        return mapped_column(Integer, primary_key=True, autoincrement=False)

    @declared_attr
    def descendant_id(cls) -> Mapped[int]:
        return mapped_column(
            Integer,
            ForeignKey(f"{cls.__node_table__}.id"),
            primary_key=True,
            autoincrement=False,
        )

    length: Mapped[int] = mapped_column(Integer, nullable=False)

    @declared_attr.directive
    def __table_args__(cls) -> tuple[Any, ...]:
        # Ancestor lookups filter on descendant_id first
        return (Index(f"ix_{cls.__tablename__}_descendant_length", "descendant_id", "length"),)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(ancestor_id={self.ancestor_id!r}, "
            f"descendant_id={self.descendant_id!r}, length={self.length!r})"
        )


__all__ = [
    "PATH_MAX_LENGTH",
    "ClosureEdgeMixin",
    "TreeNodeMixin",
]

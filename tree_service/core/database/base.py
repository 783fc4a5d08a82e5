"""Declarative base and primary key mixin shared by every tree instance.

Each tree instance (CMS data, catalog categories, ...) is a pair of tables:
a node table keyed by an auto-increment integer and a closure table whose
rows reference those integers. Both families hang off the same ``Base`` so
a single ``Base.metadata`` covers provisioning and test setup.

Examples:
    class CmsNode(Base, IntegerPKMixin, TreeNodeMixin):
        __tablename__ = "cms_data"
"""

from __future__ import annotations

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

# Consistent naming convention for database constraints
# Ensures predictable names for migrations and schema management
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base with constraint naming and automatic table naming.

    The automatic table naming can be overridden by setting __tablename__
    explicitly on the model class, which every tree model does.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Auto-derive table name from class name (lowercase)."""
        return cls.__name__.lower()


class IntegerPKMixin:
    """Integer auto-increment primary key.

    Node ids are surrogate keys: stable for the node's lifetime and never
    reused while the node exists. Closure rows reference them directly.

    Provides:
        id: Auto-incrementing integer primary key
    """

    __allow_unmapped__ = True

    id: Mapped[int] = mapped_column(
        primary_key=True,
        autoincrement=True,
        comment="Auto-incrementing integer primary key",
    )


__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "IntegerPKMixin",
]

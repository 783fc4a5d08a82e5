"""Catalog category tree.

Categories hang off a stored ``__ROOT__`` sentinel (id 1, path "/"), so
every closure row references a real category and both closure columns
carry foreign keys.
"""

from __future__ import annotations

from typing import ClassVar

from tree_service.core.database.base import Base, IntegerPKMixin
from tree_service.core.database.hierarchy.mixins import ClosureTreeMixin
from tree_service.core.database.hierarchy.models import ClosureEdgeMixin, TreeNodeMixin
from tree_service.core.database.hierarchy.policy import DEFAULT_SENTINEL_ID, RootPolicy, StoredRoot

CATALOG_ROOT_ID = DEFAULT_SENTINEL_ID


class CatalogCategory(Base, IntegerPKMixin, TreeNodeMixin, ClosureTreeMixin):
    """A product category such as ``/electronics/laptops``.

    ``value`` holds the category's display payload; intermediate categories
    created implicitly by a deep write have none.
    """

    __tablename__ = "catalog_categories"
    __root_policy__: ClassVar[RootPolicy] = StoredRoot(sentinel_id=CATALOG_ROOT_ID)

    @classmethod
    def closure_model(cls) -> type[CatalogCategoryClosure]:
        return CatalogCategoryClosure


class CatalogCategoryClosure(Base, ClosureEdgeMixin):
    __tablename__ = "catalog_category_closure"
    __node_table__ = "catalog_categories"
    __ancestor_fk__ = True


__all__ = ["CATALOG_ROOT_ID", "CatalogCategory", "CatalogCategoryClosure"]

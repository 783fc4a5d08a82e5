"""Database models package.

Importing this package registers every tree table on ``Base.metadata``.
"""

from __future__ import annotations

from .catalog import CATALOG_ROOT_ID, CatalogCategory, CatalogCategoryClosure
from .cms import CmsClosure, CmsNode

__all__ = [
    "CATALOG_ROOT_ID",
    "CatalogCategory",
    "CatalogCategoryClosure",
    "CmsClosure",
    "CmsNode",
]

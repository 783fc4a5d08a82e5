"""CMS content tree: free-form configuration/content keyed by slash paths."""

from __future__ import annotations

from tree_service.core.database.base import Base, IntegerPKMixin
from tree_service.core.database.hierarchy.models import ClosureEdgeMixin, TreeNodeMixin


class CmsNode(Base, IntegerPKMixin, TreeNodeMixin):
    """One CMS entry, e.g. ``/config/database/host`` -> ``"localhost"``.

    The CMS tree runs with either root convention; under the virtual root
    (the default) no row exists for "/".
    """

    __tablename__ = "cms_data"


class CmsClosure(Base, ClosureEdgeMixin):
    """Ancestor/descendant pairs of cms_data.

    No foreign key on ancestor_id: under the virtual root the top-level
    rows point at the reserved root id.
    """

    __tablename__ = "cms_closure"
    __node_table__ = "cms_data"
    __ancestor_fk__ = False


__all__ = ["CmsClosure", "CmsNode"]

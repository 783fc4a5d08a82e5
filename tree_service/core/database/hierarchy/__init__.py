"""Hierarchical key/value storage using a closure table.

A tree instance is a node table (one row per normalized path) indexed by a
closure table holding every ancestor/descendant pair with its distance.
Ancestor, descendant, child and parent lookups are single indexed joins;
inserts and subtree deletes are set-based statements.

Components:
    - TreePath: Python wrapper for path normalization and navigation
    - VirtualRoot / StoredRoot: the two root conventions
    - TreeNodeMixin / ClosureEdgeMixin: column mixins for the two tables
    - NodeStore: path <-> id lookups and value updates
    - ClosureIndex: closure queries plus attach/detach rewrites
    - TreeEngine: transactional read/write/delete operations
    - ClosureTreeMixin: instance-level navigation for node models

Example:
    >>> from tree_service.core.models import CmsClosure, CmsNode
    >>> from tree_service.core.database.hierarchy import TreeEngine, VirtualRoot
    >>>
    >>> tree = TreeEngine(AsyncSessionLocal, CmsNode, CmsClosure, VirtualRoot(), name="cms")
    >>> await tree.write_value("/config/database/host", "localhost")
    >>> await tree.read_subtree_map("/config")
    {'database/host': 'localhost'}
"""

from __future__ import annotations

from .closure import ClosureIndex
from .engine import TreeEngine
from .mixins import ClosureTreeMixin
from .models import PATH_MAX_LENGTH, ClosureEdgeMixin, TreeNodeMixin
from .nodes import NodeStore
from .paths import ROOT, SEPARATOR, TreePath, join, normalize, parent_path, split
from .policy import RootPolicy, StoredRoot, VirtualRoot, root_policy_from_settings

__all__ = [
    "PATH_MAX_LENGTH",
    "ROOT",
    "SEPARATOR",
    "ClosureEdgeMixin",
    "ClosureIndex",
    "ClosureTreeMixin",
    "NodeStore",
    "RootPolicy",
    "StoredRoot",
    "TreeEngine",
    "TreeNodeMixin",
    "TreePath",
    "VirtualRoot",
    "join",
    "normalize",
    "parent_path",
    "root_policy_from_settings",
    "split",
]

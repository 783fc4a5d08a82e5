"""Tests for ClosureIndex queries and set-based rewrites.

Each test builds a small tree by hand (NodeStore.create + ClosureIndex.attach)
so the index is exercised without TreeEngine in between:

    /a
    /a/b
    /a/b/c
    /a/d
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select

from tree_service.core.database.hierarchy.closure import ClosureIndex
from tree_service.core.database.hierarchy.nodes import NodeStore
from tree_service.core.database.hierarchy.paths import TreePath
from tree_service.core.models import CmsClosure, CmsNode
from tree_service.infra.database.schema import provision_tree_schema

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

    from tree_service.core.database.hierarchy.policy import RootPolicy


async def _edges(session: AsyncSession) -> set[tuple[int, int, int]]:
    result = await session.execute(select(CmsClosure.ancestor_id, CmsClosure.descendant_id, CmsClosure.length))
    return {(a, d, n) for a, d, n in result.all()}


@pytest.fixture
async def built(
    db_engine: AsyncEngine,
    db_session: AsyncSession,
    root_policy: RootPolicy,
) -> tuple[ClosureIndex[CmsNode, CmsClosure], dict[str, int]]:
    """Hand-built tree; returns the index and a path -> id map."""
    await provision_tree_schema(db_engine, CmsNode, CmsClosure, root_policy)

    store = NodeStore(CmsNode)
    index = ClosureIndex(CmsClosure, CmsNode, root_policy)
    ids: dict[str, int] = {}

    for path in ["/a", "/a/b", "/a/b/c", "/a/d"]:
        tree_path = TreePath(path)
        parent = tree_path.parent
        assert parent is not None
        parent_id = root_policy.root_id if parent.is_root else ids[str(parent)]
        node = await store.create(db_session, tree_path)
        await index.attach(db_session, node.id, parent_id)
        ids[path] = node.id

    await db_session.commit()
    return index, ids


# ============================================================================
# attach
# ============================================================================


@pytest.mark.asyncio
async def test_attach_writes_full_closure(built, db_session: AsyncSession, root_policy: RootPolicy):
    """Every (ancestor, node, depth difference) pair exists exactly once."""
    _, ids = built
    a, b, c, d = ids["/a"], ids["/a/b"], ids["/a/b/c"], ids["/a/d"]
    r = root_policy.root_id

    expected = {
        (r, a, 1), (r, b, 2), (r, c, 3), (r, d, 2),
        (a, a, 0), (a, b, 1), (a, c, 2), (a, d, 1),
        (b, b, 0), (b, c, 1),
        (c, c, 0),
        (d, d, 0),
    }
    if root_policy.is_stored:
        expected.add((r, r, 0))

    assert await _edges(db_session) == expected


@pytest.mark.asyncio
async def test_virtual_root_has_no_self_edge(built, db_session: AsyncSession, root_policy: RootPolicy):
    edges = await _edges(db_session)
    root_self_edge = (root_policy.root_id, root_policy.root_id, 0)
    assert (root_self_edge in edges) is root_policy.is_stored


# ============================================================================
# Queries
# ============================================================================


@pytest.mark.asyncio
async def test_ancestors_of_farthest_first(built, db_session: AsyncSession, root_policy: RootPolicy):
    index, ids = built

    rows = await index.ancestors_of(db_session, ids["/a/b/c"])
    paths = [(node.path, length) for node, length in rows]

    expected = [("/a", 2), ("/a/b", 1), ("/a/b/c", 0)]
    if root_policy.is_stored:
        expected.insert(0, ("/", 3))
    assert paths == expected


@pytest.mark.asyncio
async def test_descendants_of_nearest_first(built, db_session: AsyncSession):
    index, ids = built

    rows = await index.descendants_of(db_session, ids["/a"])
    assert [(node.path, length) for node, length in rows] == [
        ("/a", 0),
        ("/a/b", 1),
        ("/a/d", 1),
        ("/a/b/c", 2),
    ]

    limited = await index.descendants_of(db_session, ids["/a"], max_length=1)
    assert [node.path for node, _ in limited] == ["/a", "/a/b", "/a/d"]


@pytest.mark.asyncio
async def test_descendants_of_root_covers_whole_tree(built, db_session: AsyncSession, root_policy: RootPolicy):
    index, _ = built

    rows = await index.descendants_of(db_session, root_policy.root_id)
    paths = {node.path for node, length in rows if length > 0}
    assert paths == {"/a", "/a/b", "/a/b/c", "/a/d"}


@pytest.mark.asyncio
async def test_children_of(built, db_session: AsyncSession, root_policy: RootPolicy):
    index, ids = built

    assert [n.path for n in await index.children_of(db_session, ids["/a"])] == ["/a/b", "/a/d"]
    assert [n.path for n in await index.children_of(db_session, root_policy.root_id)] == ["/a"]
    assert await index.children_of(db_session, ids["/a/b/c"]) == []


@pytest.mark.asyncio
async def test_parent_of(built, db_session: AsyncSession, root_policy: RootPolicy):
    index, ids = built

    parent = await index.parent_of(db_session, ids["/a/b/c"])
    assert parent is not None and parent.path == "/a/b"

    top_parent = await index.parent_of(db_session, ids["/a"])
    if root_policy.is_stored:
        assert top_parent is not None and top_parent.id == root_policy.root_id
    else:
        assert top_parent is None

    assert await index.parent_of(db_session, root_policy.root_id) is None


@pytest.mark.asyncio
async def test_count_descendants(built, db_session: AsyncSession):
    index, ids = built

    assert await index.count_descendants(db_session, ids["/a"]) == 3
    assert await index.count_descendants(db_session, ids["/a"], include_self=True) == 4
    assert await index.count_descendants(db_session, ids["/a/b/c"]) == 0


# ============================================================================
# detach_subtree
# ============================================================================


@pytest.mark.asyncio
async def test_detach_subtree_removes_only_subtree_rows(built, db_session: AsyncSession, root_policy: RootPolicy):
    """Rows ending inside the subtree go; every other row is untouched."""
    index, ids = built
    before = await _edges(db_session)

    removed = await index.detach_subtree(db_session, ids["/a/b"])
    await db_session.commit()

    assert removed == {ids["/a/b"], ids["/a/b/c"]}
    after = await _edges(db_session)
    assert after == {edge for edge in before if edge[1] not in removed}
    assert (ids["/a"], ids["/a/d"], 1) in after


@pytest.mark.asyncio
async def test_detach_subtree_keep_root(built, db_session: AsyncSession):
    index, ids = built

    removed = await index.detach_subtree(db_session, ids["/a"], include_root=False)

    assert removed == {ids["/a/b"], ids["/a/b/c"], ids["/a/d"]}
    rows = await index.descendants_of(db_session, ids["/a"])
    assert [(node.path, length) for node, length in rows] == [("/a", 0)]


@pytest.mark.asyncio
async def test_detach_unknown_id_is_noop(built, db_session: AsyncSession):
    index, _ = built
    before = await _edges(db_session)

    assert await index.detach_subtree(db_session, 999) == set()
    assert await _edges(db_session) == before

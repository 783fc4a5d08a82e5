"""Tests for the ready-made CMS and catalog tree factories."""
from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tree_service.core.database.hierarchy import StoredRoot, VirtualRoot
from tree_service.core.models import CatalogCategory, CmsNode
from tree_service.core.settings import TreeSettings
from tree_service.core.trees import build_catalog_tree, build_cms_tree
from tree_service.infra.database.schema import provision_all_trees

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker


@pytest.mark.unit
class TestBuildCmsTree:
    def test_virtual_root_by_default(self, session_factory: async_sessionmaker[AsyncSession]):
        tree = build_cms_tree(session_factory, TreeSettings(root_policy="virtual"))

        assert tree.name == "cms"
        assert tree.policy == VirtualRoot()
        assert tree.nodes.model is CmsNode

    def test_stored_root_and_retry_settings(self, session_factory: async_sessionmaker[AsyncSession]):
        settings = TreeSettings(root_policy="stored", sentinel_id=3, write_retry_attempts=5, write_retry_delay=0.2)

        tree = build_cms_tree(session_factory, settings)

        assert tree.policy == StoredRoot(sentinel_id=3)
        assert tree.write_retry_attempts == 5
        assert tree.write_retry_delay == 0.2

    def test_settings_loaded_when_omitted(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        monkeypatch: pytest.MonkeyPatch,
    ):
        monkeypatch.setenv("TREE_ROOT_POLICY", "stored")

        tree = build_cms_tree(session_factory)

        assert tree.policy.is_stored


@pytest.mark.unit
class TestBuildCatalogTree:
    def test_catalog_always_stored(self, session_factory: async_sessionmaker[AsyncSession]):
        tree = build_catalog_tree(session_factory, TreeSettings(root_policy="virtual"))

        assert tree.name == "catalog"
        assert tree.policy == CatalogCategory.__root_policy__
        assert tree.nodes.model is CatalogCategory


@pytest.mark.asyncio
@pytest.mark.parametrize("root_policy_name", ["virtual", "stored"])
async def test_provisioned_trees_are_independent(
    db_engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
    root_policy_name: str,
):
    """Writes to one tree instance never show up in the other."""
    settings = TreeSettings(root_policy=root_policy_name, write_retry_delay=0.0)
    await provision_all_trees(db_engine, settings)
    cms = build_cms_tree(session_factory, settings)
    catalog = build_catalog_tree(session_factory, settings)

    await cms.write_value("/config/site/title", "Home")
    await catalog.write_value("/electronics/phones", "Phones")

    assert await cms.read_subtree_map("/") == {"config/site/title": "Home"}
    assert await catalog.read_subtree_map("/") == {"electronics/phones": "Phones"}
    assert await cms.find_node("/electronics") is None

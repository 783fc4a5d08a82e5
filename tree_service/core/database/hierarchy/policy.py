"""Root conventions for a tree instance.

A tree either hangs off a *virtual* root (an id that is never stored as a
node; top-level nodes get a single ``(root_id, node, 1)`` closure row) or a
*stored* root (a sentinel node row with a reserved id and its own
``(id, id, 0)`` self-edge, seeded at provisioning time).

The policy is a plain value injected into NodeStore and ClosureIndex so the
tree algorithm itself never branches on which convention is in use beyond
the few places that ask the policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tree_service.core.settings.tree import TreeSettings

DEFAULT_VIRTUAL_ROOT_ID = 0
DEFAULT_SENTINEL_ID = 1


@dataclass(frozen=True, slots=True)
class VirtualRoot:
    """Root is an id with no node row and no closure rows of its own."""

    root_id: int = DEFAULT_VIRTUAL_ROOT_ID

    @property
    def is_stored(self) -> bool:
        return False

    def is_root(self, node_id: int) -> bool:
        return node_id == self.root_id


@dataclass(frozen=True, slots=True)
class StoredRoot:
    """Root is a stored sentinel node with a reserved id and path "/"."""

    sentinel_id: int = DEFAULT_SENTINEL_ID

    @property
    def root_id(self) -> int:
        return self.sentinel_id

    @property
    def is_stored(self) -> bool:
        return True

    def is_root(self, node_id: int) -> bool:
        return node_id == self.sentinel_id


type RootPolicy = VirtualRoot | StoredRoot


def root_policy_from_settings(settings: TreeSettings) -> RootPolicy:
    """Build the configured root policy.

    Args:
        settings: Tree settings (TREE_ prefix)

    Returns:
        VirtualRoot or StoredRoot carrying the configured reserved id
    """
    if settings.root_policy == "stored":
        return StoredRoot(sentinel_id=settings.sentinel_id)
    return VirtualRoot(root_id=settings.virtual_root_id)


__all__ = [
    "DEFAULT_SENTINEL_ID",
    "DEFAULT_VIRTUAL_ROOT_ID",
    "RootPolicy",
    "StoredRoot",
    "VirtualRoot",
    "root_policy_from_settings",
]

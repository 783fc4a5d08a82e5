"""Tests for TreePath and the module-level path helpers."""

from __future__ import annotations

import pytest

from tree_service.core.database.exceptions import InvalidPathError
from tree_service.core.database.hierarchy.paths import (
    ROOT,
    TreePath,
    join,
    normalize,
    parent_path,
    split,
)

# ============================================================================
# Normalization
# ============================================================================


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("/a/b", "/a/b"),
        ("a/b", "/a/b"),
        ("//a/b", "/a/b"),
        ("///config", "/config"),
        ("/", "/"),
        ("", "/"),
    ],
)
def test_normalize_produces_canonical_absolute_form(raw: str, expected: str):
    """Leading separators collapse to one; empty input is the root."""
    assert str(normalize(raw)) == expected


@pytest.mark.parametrize("raw", ["/a//b", "/a/b/", "a/", "/a/ /b//"])
def test_normalize_rejects_empty_segments(raw: str):
    """Inner or trailing empty segments are invalid."""
    with pytest.raises(InvalidPathError) as exc_info:
        normalize(raw)

    assert exc_info.value.path == raw
    assert exc_info.value.status_code == 400


def test_normalize_accepts_tree_path_instances():
    path = TreePath("/a/b")
    assert normalize(path) == path


def test_split_and_join_are_inverse():
    """join(split(p)) == p for valid paths, including the root."""
    for raw in ["/", "/a", "/config/database/host", "/x/y/z/w"]:
        path = normalize(raw)
        assert join(split(path)) == path

    assert split(normalize("/a/b/c")) == ["a", "b", "c"]
    assert split(ROOT) == []


def test_parent_path_is_none_only_for_root():
    assert parent_path(ROOT) is None
    assert parent_path(TreePath("/a")) == ROOT
    assert parent_path(TreePath("/a/b/c")) == TreePath("/a/b")


# ============================================================================
# Navigation
# ============================================================================


def test_tree_path_properties():
    path = TreePath("config/database/host")

    assert str(path) == "/config/database/host"
    assert path.depth == 3
    assert len(path) == 3
    assert path.labels == ["config", "database", "host"]
    assert list(path) == ["config", "database", "host"]
    assert path.key == "host"
    assert not path.is_root


def test_root_properties():
    assert ROOT.is_root
    assert ROOT.depth == 0
    assert ROOT.key == ""
    assert ROOT.parent is None
    assert ROOT.ancestors == []


def test_ancestors_ordered_from_root():
    ancestors = TreePath("/a/b/c").ancestors
    assert [str(a) for a in ancestors] == ["/", "/a", "/a/b"]


def test_child_and_division_operator():
    assert TreePath("/a").child("b") == TreePath("/a/b")
    assert ROOT / "a" / "b" == TreePath("/a/b")


@pytest.mark.parametrize("label", ["", "b/c"])
def test_child_rejects_invalid_keys(label: str):
    with pytest.raises(InvalidPathError):
        TreePath("/a").child(label)


def test_ancestor_and_descendant_checks():
    a = TreePath("/a")

    assert a.is_ancestor_of("/a/b")
    assert a.is_ancestor_of(TreePath("/a/b/c"))
    assert not a.is_ancestor_of("/a")
    assert not a.is_ancestor_of("/ab")
    assert not a.is_ancestor_of("/b/a")
    assert ROOT.is_ancestor_of("/a")
    assert TreePath("/a/b").is_descendant_of("/a")
    assert not TreePath("/a").is_descendant_of("/a/b")


def test_relative_to():
    assert TreePath("/a/c/d").relative_to("/a") == "c/d"
    assert TreePath("/a/b").relative_to(ROOT) == "a/b"
    assert TreePath("/a").relative_to("/a") == ""

    with pytest.raises(ValueError, match="not within"):
        TreePath("/b/c").relative_to("/a")


def test_equality_and_hashing():
    """Paths compare equal to other paths and to normalized strings."""
    assert TreePath("a/b") == TreePath("/a/b")
    assert TreePath("/a/b") == "/a/b"
    assert TreePath("/a/b") != "a/b"
    assert TreePath("/a") != 1
    assert len({TreePath("/a"), TreePath("a"), TreePath("//a")}) == 1


def test_repr_and_from_labels():
    assert repr(TreePath("/a/b")) == "TreePath('/a/b')"
    assert TreePath.from_labels("a", "b", "c") == TreePath("/a/b/c")
    assert TreePath.from_labels() == ROOT

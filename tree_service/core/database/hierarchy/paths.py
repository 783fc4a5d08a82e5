"""Slash-delimited tree paths with normalization and navigation utilities.

Paths address nodes in the tree the same way file system paths do:
- "/" is the tree root
- "/config/database/host" is three levels below the root

Every path stored in a node table is in normalized form: exactly one
leading separator, no trailing separator, no empty segments. Callers may
pass raw paths ("a/b", "//a/b"); redundant leading separators are dropped,
anything else that yields an empty segment is rejected.

This wrapper provides Python-side operations for path manipulation without
requiring database queries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tree_service.core.database.exceptions import InvalidPathError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from typing import Self

SEPARATOR = "/"


class TreePath:
    """Normalized absolute path of a tree node.

    Example:
        >>> path = TreePath("config/database/host")
        >>> str(path)
        '/config/database/host'
        >>> path.depth
        3
        >>> path.parent
        TreePath('/config/database')
        >>> path.key
        'host'
        >>> path / "port"
        TreePath('/config/database/host/port')

    Note:
        - The root is TreePath("/") (also TreePath("")); it has depth 0
        - Segments cannot be empty and cannot contain the separator
    """

    __slots__ = ("_labels", "_path")
    _path: str
    _labels: list[str]

    def __init__(self, path: str | TreePath) -> None:
        """Initialize TreePath from a raw string or another TreePath.

        Args:
            path: Slash-separated path string or existing TreePath

        Raises:
            InvalidPathError: If any segment is empty after normalization
        """
        if isinstance(path, TreePath):
            self._path = path._path
            self._labels = path._labels
            return

        raw = str(path)
        stripped = raw.lstrip(SEPARATOR)
        self._labels = stripped.split(SEPARATOR) if stripped else []
        if any(not label for label in self._labels):
            raise InvalidPathError(raw, "path contains an empty segment")
        self._path = SEPARATOR + SEPARATOR.join(self._labels)

    @property
    def depth(self) -> int:
        """Number of segments below the root (0 for the root itself)."""
        return len(self._labels)

    @property
    def labels(self) -> list[str]:
        """Copy of the path segments, root-most first."""
        return list(self._labels)

    @property
    def key(self) -> str:
        """Last segment (the node's own key), empty string for the root."""
        return self._labels[-1] if self._labels else ""

    @property
    def is_root(self) -> bool:
        return not self._labels

    @property
    def parent(self) -> TreePath | None:
        """Parent path (one level up).

        Returns:
            Parent TreePath, the root for top-level paths, None for the root

        Example:
            >>> TreePath("/a/b").parent
            TreePath('/a')
            >>> TreePath("/a").parent
            TreePath('/')
            >>> TreePath("/").parent is None
            True
        """
        if self.is_root:
            return None
        return TreePath.from_labels(*self._labels[:-1])

    @property
    def ancestors(self) -> list[TreePath]:
        """All proper ancestor paths, ordered from the root to the parent.

        Example:
            >>> [str(a) for a in TreePath("/a/b/c").ancestors]
            ['/', '/a', '/a/b']
        """
        return [TreePath.from_labels(*self._labels[:i]) for i in range(self.depth)]

    def child(self, label: str) -> TreePath:
        """Create child path by appending a single segment.

        Args:
            label: Segment to append

        Returns:
            New TreePath one level deeper

        Raises:
            InvalidPathError: If label is empty or contains the separator
        """
        if not label or SEPARATOR in label:
            raise InvalidPathError(label, "a key must be a single non-empty segment")
        return TreePath.from_labels(*self._labels, label)

    def is_ancestor_of(self, other: str | TreePath) -> bool:
        """Check if this path is a proper ancestor of other.

        Example:
            >>> TreePath("/a").is_ancestor_of("/a/b")
            True
            >>> TreePath("/a").is_ancestor_of("/a")
            False
        """
        other_path = TreePath(other)
        if self.depth >= other_path.depth:
            return False
        return other_path._labels[: self.depth] == self._labels

    def is_descendant_of(self, other: str | TreePath) -> bool:
        """Check if this path is a proper descendant of other."""
        return TreePath(other).is_ancestor_of(self)

    def relative_to(self, ancestor: str | TreePath) -> str:
        """Return this path relative to an ancestor (or to itself).

        Example:
            >>> TreePath("/a/c/d").relative_to("/a")
            'c/d'
            >>> TreePath("/a").relative_to("/a")
            ''

        Raises:
            ValueError: If ancestor is neither this path nor one of its ancestors
        """
        base = TreePath(ancestor)
        if base != self and not base.is_ancestor_of(self):
            raise ValueError(f"{self._path!r} is not within {base._path!r}")
        return SEPARATOR.join(self._labels[base.depth :])

    def __truediv__(self, other: str) -> TreePath:
        """Path concatenation using / operator."""
        return self.child(other)

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __len__(self) -> int:
        return self.depth

    def __str__(self) -> str:
        """Return the normalized string stored in the node table."""
        return self._path

    def __repr__(self) -> str:
        return f"TreePath({self._path!r})"

    def __eq__(self, other: object) -> bool:
        """Check equality with another path or an already-normalized string."""
        if isinstance(other, TreePath):
            return self._path == other._path
        if isinstance(other, str):
            return self._path == other
        return False

    def __hash__(self) -> int:
        return hash(self._path)

    @classmethod
    def from_labels(cls, *labels: str) -> Self:
        """Create path from individual segments.

        Example:
            >>> TreePath.from_labels("a", "b", "c")
            TreePath('/a/b/c')
        """
        return cls(SEPARATOR + SEPARATOR.join(labels))


ROOT = TreePath(SEPARATOR)


def normalize(raw: str | TreePath) -> TreePath:
    """Normalize a raw caller path into canonical absolute form.

    Raises:
        InvalidPathError: If any segment is empty after normalization
    """
    return TreePath(raw)


def split(path: TreePath) -> list[str]:
    """Split a normalized path into its ordered segments."""
    return path.labels


def join(segments: Iterable[str]) -> TreePath:
    """Join segments into a normalized path; inverse of split()."""
    return TreePath.from_labels(*segments)


def parent_path(path: TreePath) -> TreePath | None:
    """Return the parent path, or None only for the root."""
    return path.parent


__all__ = [
    "ROOT",
    "SEPARATOR",
    "TreePath",
    "join",
    "normalize",
    "parent_path",
    "split",
]

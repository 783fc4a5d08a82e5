"""Tree store exceptions.

Custom exceptions for tree operations that provide better error messages
and typing than raw SQLAlchemy exceptions. Every exception carries a
``status_code`` so an outer HTTP layer can map it without knowing the
taxonomy.
"""
from __future__ import annotations

from typing import Any


class TreeStoreError(Exception):
    """Base exception for tree store operations.

    Attributes:
        message: Human readable description
        details: Additional context about the error
        status_code: HTTP-style status an outer layer may surface
    """

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize tree store error.

        Args:
            message: Error description
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InvalidPathError(TreeStoreError):
    """Path is malformed (an empty segment after normalization)."""

    status_code = 400

    def __init__(self, path: str, reason: str):
        """Initialize invalid path error.

        Args:
            path: The raw path as supplied by the caller
            reason: Why the path was rejected
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid path {path!r}: {reason}", details={"path": path})


class NotFoundError(TreeStoreError):
    """No node exists at the given path or id.

    This is a data-level error (404-like) rather than a system error.

    Attributes:
        model_name: Name of the node model that was searched
        identifier: The key/value that was searched for
    """

    status_code = 404

    def __init__(self, model_name: str, identifier: dict[str, Any]):
        """Initialize not found error.

        Args:
            model_name: Name of the model (e.g., "CmsNode")
            identifier: Key-value pairs used in the search (e.g., {"path": "/a"})
        """
        self.model_name = model_name
        self.identifier = identifier

        id_str = ", ".join(f"{k}={v!r}" for k, v in identifier.items())
        message = f"{model_name} not found with {id_str}"

        super().__init__(message, details={"model": model_name, **identifier})

    def __repr__(self) -> str:
        """Repr for debugging."""
        return f"NotFoundError(model={self.model_name!r}, identifier={self.identifier!r})"


class NoValueError(TreeStoreError):
    """Node exists but is a structural node without a value of its own."""

    status_code = 403

    def __init__(self, path: str):
        """Initialize no value error.

        Args:
            path: Normalized path of the value-less node
        """
        self.path = path
        super().__init__(f"Entry with path {path!r} has no value", details={"path": path})


class DuplicatePathError(TreeStoreError):
    """A node already exists at the path being created.

    Raised when the unique constraint on ``path`` rejects an insert, which
    is how a lost race between two concurrent inserts surfaces.
    """

    status_code = 409

    def __init__(self, path: str):
        """Initialize duplicate path error.

        Args:
            path: Normalized path that already exists
        """
        self.path = path
        super().__init__(f"Entry with path {path!r} already exists", details={"path": path})


class NotAllowedError(TreeStoreError):
    """Operation is not permitted on the tree root."""

    status_code = 403


__all__ = [
    "DuplicatePathError",
    "InvalidPathError",
    "NoValueError",
    "NotAllowedError",
    "NotFoundError",
    "TreeStoreError",
]

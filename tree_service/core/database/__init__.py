"""Core database package: declarative base and tree store error types.

Base Classes and Mixins:
    - Base: Declarative base with constraint naming convention
    - IntegerPKMixin: Auto-increment integer primary key

Errors:
    - TreeStoreError and its subclasses, each carrying an HTTP-style
      status_code for callers that map errors onto responses

Tree storage lives in tree_service.core.database.hierarchy.
"""

from __future__ import annotations

from .base import NAMING_CONVENTION, Base, IntegerPKMixin
from .exceptions import (
    DuplicatePathError,
    InvalidPathError,
    NotAllowedError,
    NotFoundError,
    NoValueError,
    TreeStoreError,
)

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "DuplicatePathError",
    "IntegerPKMixin",
    "InvalidPathError",
    "NoValueError",
    "NotAllowedError",
    "NotFoundError",
    "TreeStoreError",
]

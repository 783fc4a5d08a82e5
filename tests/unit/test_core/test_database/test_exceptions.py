"""Tests for the tree store error taxonomy."""

from __future__ import annotations

import pytest

from tree_service.core.database.exceptions import (
    DuplicatePathError,
    InvalidPathError,
    NotAllowedError,
    NotFoundError,
    NoValueError,
    TreeStoreError,
)


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (InvalidPathError("/a//b", "path contains an empty segment"), 400),
        (NotFoundError("CmsNode", {"path": "/a"}), 404),
        (NoValueError("/a"), 403),
        (DuplicatePathError("/a"), 409),
        (NotAllowedError("Values cannot be set directly on the root."), 403),
    ],
)
def test_status_codes(error: TreeStoreError, status_code: int):
    assert isinstance(error, TreeStoreError)
    assert error.status_code == status_code


def test_not_found_message_and_details():
    error = NotFoundError("CmsNode", {"path": "/a/b"})

    assert str(error) == "CmsNode not found with path='/a/b' (model='CmsNode', path='/a/b')"
    assert error.details == {"model": "CmsNode", "path": "/a/b"}
    assert repr(error) == "NotFoundError(model='CmsNode', identifier={'path': '/a/b'})"


def test_base_error_without_details():
    error = TreeStoreError("boom")

    assert str(error) == "boom"
    assert error.details == {}
    assert error.status_code == 500


def test_no_value_and_duplicate_keep_path():
    assert NoValueError("/a").path == "/a"
    assert DuplicatePathError("/a").path == "/a"
    assert "already exists" in str(DuplicatePathError("/a"))

"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from sqlrepo_core.exceptions import IncludePathError, MissingPrimaryKeyError, SqlRepoError


@pytest.mark.unit
class TestExceptions:
    """Messages and attributes of sqlrepo errors."""

    def test_missing_primary_key(self) -> None:
        """The entity name is kept and reported."""
        err = MissingPrimaryKeyError("Author")
        assert isinstance(err, SqlRepoError)
        assert err.entity_name == "Author"
        assert "Author" in str(err)

    def test_include_path(self) -> None:
        """Path and failing segment are kept."""
        err = IncludePathError("Author", "books.nope", "nope")
        assert isinstance(err, SqlRepoError)
        assert (err.path, err.segment) == ("books.nope", "nope")
        assert "'nope' is not a relationship" in str(err)

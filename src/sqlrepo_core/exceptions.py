"""Custom exception hierarchy for sqlrepo.

Database and driver errors are never wrapped; they reach the caller as
SQLAlchemy raised them. Only argument checks the ORM cannot make for us
live here.
"""

from __future__ import annotations


class SqlRepoError(Exception):
    """Base exception for all sqlrepo errors."""


class MissingPrimaryKeyError(SqlRepoError):
    """Raised when a never-persisted entity is attached without a full primary key."""

    def __init__(self, entity_name: str) -> None:
        self.entity_name = entity_name
        super().__init__(
            f"Cannot attach {entity_name}: every primary key column must be set"
        )


class IncludePathError(SqlRepoError):
    """Raised when a dotted include path names an unknown relationship."""

    def __init__(self, entity_name: str, path: str, segment: str) -> None:
        self.entity_name = entity_name
        self.path = path
        self.segment = segment
        super().__init__(
            f"Include path '{path}' on {entity_name}: '{segment}' is not a relationship"
        )

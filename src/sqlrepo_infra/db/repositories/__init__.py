"""Generic SQLAlchemy repositories."""

from sqlrepo_infra.db.repositories.factories import build_async_repository, build_repository
from sqlrepo_infra.db.repositories.read_only import (
    AsyncSqlAlchemyReadOnlyRepository,
    SqlAlchemyReadOnlyRepository,
)
from sqlrepo_infra.db.repositories.repository import (
    AsyncSqlAlchemyRepository,
    SqlAlchemyRepository,
)

__all__ = [
    "AsyncSqlAlchemyReadOnlyRepository",
    "AsyncSqlAlchemyRepository",
    "SqlAlchemyReadOnlyRepository",
    "SqlAlchemyRepository",
    "build_async_repository",
    "build_repository",
]

"""Public interface re-exports for sqlrepo_core."""

from sqlrepo_core.interfaces.repository import (
    AsyncReadOnlyRepositoryProtocol,
    AsyncRepositoryProtocol,
    ReadOnlyRepositoryProtocol,
    RepositoryProtocol,
)

__all__ = [
    "AsyncReadOnlyRepositoryProtocol",
    "AsyncRepositoryProtocol",
    "ReadOnlyRepositoryProtocol",
    "RepositoryProtocol",
]

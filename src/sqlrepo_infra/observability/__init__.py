"""Observability: structured logging."""

from sqlrepo_infra.observability.logging import configure_logging

__all__ = ["configure_logging"]

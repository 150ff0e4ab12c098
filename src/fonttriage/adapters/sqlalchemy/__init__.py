"""SQLAlchemy adapter package for the reference index."""

from __future__ import annotations

from .mappings import create_all_tables, metadata
from .repositories import SqlAlchemyReferenceIndexRepository
from .unit_of_work import (
    SqlAlchemyReferenceIndexUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyReferenceIndexRepository",
    "SqlAlchemyReferenceIndexUnitOfWork",
    "StartupError",
    "create_all_tables",
    "metadata",
    "shutdown",
    "startup",
]

"""Domain port definitions for adapters."""

from __future__ import annotations

from .extraction import ExtractionError, FontExtractor
from .filesystem import (
    DirectoryHandle,
    FontEntry,
    FontEnumerator,
    PermissionState,
    WritableDirectory,
)
from .persistence import IndexMetadata, ReferenceIndexRepository, StorageWriteError
from .unit_of_work import (
    ReferenceIndexRepositories,
    ReferenceIndexUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "DirectoryHandle",
    "ExtractionError",
    "FontEntry",
    "FontEnumerator",
    "FontExtractor",
    "IndexMetadata",
    "PermissionState",
    "ReferenceIndexRepositories",
    "ReferenceIndexRepository",
    "ReferenceIndexUnitOfWork",
    "RepositoryCollection",
    "StorageWriteError",
    "UnitOfWork",
    "WritableDirectory",
]

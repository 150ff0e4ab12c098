"""Ports for persisting the reference index."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from fonttriage.domain.model import ReferenceRecord


@dataclass(frozen=True, slots=True)
class IndexMetadata:
    """Descriptive summary stored alongside the reference records."""

    root_label: str
    item_count: int
    last_built_at: datetime


@runtime_checkable
class ReferenceIndexRepository(Protocol):
    """Persistence contract for the reference index.

    The collection is only ever replaced as a whole; there is no per-record
    update.
    """

    def replace_all(self, records: Sequence[ReferenceRecord], metadata: IndexMetadata) -> None: ...

    def get_all(self) -> list[ReferenceRecord]: ...

    def get_metadata(self) -> IndexMetadata | None: ...

    def clear(self) -> None: ...


class StorageWriteError(RuntimeError):
    """Raised when committing the reference index fails.

    The previously committed index is left untouched.
    """

"""Port for turning font binaries into structured metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fonttriage.domain.model import FontMetadata


class ExtractionError(Exception):
    """Raised when a font binary cannot be parsed into metadata."""

    def __init__(self, message: str, *, file_name: str | None = None) -> None:
        self.file_name = file_name
        prefix = f"{file_name}: " if file_name else ""
        super().__init__(f"{prefix}{message}")


@runtime_checkable
class FontExtractor(Protocol):
    """Callable port parsing one font binary.

    Implementations raise :class:`ExtractionError` for anything they cannot
    parse; callers never see a partially filled record.
    """

    def __call__(self, data: bytes, *, file_name: str) -> FontMetadata: ...

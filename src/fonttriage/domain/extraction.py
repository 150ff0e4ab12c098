"""Read and extract one enumerated font, degrading failures into a value."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from fonttriage.domain.ports.extraction import ExtractionError

if TYPE_CHECKING:
    from fonttriage.domain.model import FontMetadata
    from fonttriage.domain.ports import FontEntry, FontExtractor

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExtractedEntry:
    entry: FontEntry
    size: int
    metadata: FontMetadata | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.metadata is not None


def extract_entry(entry: FontEntry, extractor: FontExtractor) -> ExtractedEntry:
    """Read ``entry`` and run ``extractor`` over its bytes.

    Unreadable files and extractor failures come back as an entry without
    metadata so that callers can count them instead of dropping them.
    """

    try:
        data = entry.read()
    except OSError as exc:
        log.warning("Could not read %s: %s", entry.path, exc)
        return ExtractedEntry(entry=entry, size=0, metadata=None, error=f"read failed: {exc}")

    try:
        metadata = extractor(data, file_name=entry.name)
    except ExtractionError as exc:
        log.warning("Extraction failed for %s: %s", entry.path, exc)
        return ExtractedEntry(entry=entry, size=len(data), metadata=None, error=str(exc))

    return ExtractedEntry(entry=entry, size=len(data), metadata=metadata)

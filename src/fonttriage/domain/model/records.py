"""Font records compared during triage.

Reference records describe the curated collection and are persisted; candidate
records only live for one scan session and carry the writable directory they
were found in, which is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fonttriage.domain.model.enums import FontFormat
    from fonttriage.domain.ports.filesystem import WritableDirectory


@dataclass(frozen=True, slots=True, kw_only=True)
class FontMetadata:
    """Structured naming and table data extracted from one font binary."""

    family_name: str = ""
    subfamily_name: str = ""
    preferred_family: str | None = None
    preferred_subfamily: str | None = None
    postscript_name: str = ""
    full_name: str = ""
    version: str = ""
    revision: float = 0.0
    glyph_count: int | None = None
    feature_tags: frozenset[str] = field(default_factory=frozenset[str])
    table_tags: frozenset[str] = field(default_factory=frozenset[str])
    format: FontFormat | None = None

    @property
    def display_family(self) -> str:
        return self.preferred_family or self.family_name

    @property
    def display_subfamily(self) -> str:
        return self.preferred_subfamily or self.subfamily_name

    @property
    def effective_full_name(self) -> str:
        if self.full_name:
            return self.full_name
        return f"{self.display_family} {self.display_subfamily}".strip()


@dataclass(frozen=True, slots=True, kw_only=True)
class ReferenceRecord:
    """One curated font, keyed by its path relative to the reference root."""

    path: str
    size: int
    metadata: FontMetadata

    @property
    def file_name(self) -> str:
        return PurePosixPath(self.path).name


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidateRecord:
    """One unreviewed font found during a scan session."""

    path: str
    size: int
    parent: WritableDirectory = field(compare=False, repr=False)
    metadata: FontMetadata | None = None
    extraction_error: str | None = None

    @property
    def file_name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def stem(self) -> str:
        return PurePosixPath(self.path).stem

    @property
    def display_name(self) -> str:
        if self.metadata is not None and self.metadata.effective_full_name:
            return self.metadata.effective_full_name
        return self.stem

    @property
    def extraction_failed(self) -> bool:
        return self.metadata is None

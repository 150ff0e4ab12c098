"""Scan a candidate tree into candidate records."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from fonttriage.domain.extraction import extract_entry
from fonttriage.domain.model import CandidateRecord
from fonttriage.domain.progress import report

if TYPE_CHECKING:
    from fonttriage.domain.ports import FontEnumerator, FontExtractor, WritableDirectory
    from fonttriage.domain.progress import CancellationToken, ProgressCallback

log = getLogger(__name__)


@dataclass(slots=True)
class ScanResult:
    candidates: list[CandidateRecord] = field(default_factory=list["CandidateRecord"])
    failed: int = 0
    cancelled: bool = False


def scan_candidates(
    root: WritableDirectory,
    *,
    enumerator: FontEnumerator,
    extractor: FontExtractor,
    on_progress: ProgressCallback | None = None,
    cancel: CancellationToken | None = None,
) -> ScanResult:
    """Extract every font below ``root``.

    Fonts that fail extraction are kept as candidates without metadata so
    that they surface as problems instead of disappearing. A cancelled scan
    returns the candidates collected so far.
    """

    entries = enumerator(root)
    total = len(entries)
    result = ScanResult()
    log.info("Scanning %s candidate fonts under %s", total, root.name)

    for position, entry in enumerate(entries):
        if cancel is not None and cancel.cancelled:
            log.info("Scan cancelled after %s of %s files", position, total)
            result.cancelled = True
            return result
        report(on_progress, position, total, entry.name)
        extracted = extract_entry(entry, extractor)
        if not extracted.ok:
            result.failed += 1
        result.candidates.append(
            CandidateRecord(
                path=entry.path,
                size=extracted.size,
                parent=entry.parent,
                metadata=extracted.metadata,
                extraction_error=extracted.error,
            )
        )
    report(on_progress, total, total)
    log.info("Scan finished: candidates=%s, failed=%s", len(result.candidates), result.failed)
    return result

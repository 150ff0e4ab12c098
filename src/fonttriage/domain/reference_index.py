"""Reference index: immutable snapshot plus the store that builds and loads it.

A build extracts every reference font into memory first and then hands the
whole collection to the repository in one transaction. Readers therefore see
either the previous complete index or the new one, never a partial write.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING

from fonttriage.domain.extraction import extract_entry
from fonttriage.domain.model import MatchLevel, ReferenceRecord
from fonttriage.domain.ports.persistence import IndexMetadata, StorageWriteError
from fonttriage.domain.progress import report

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping

    from fonttriage.domain.model import FontMetadata
    from fonttriage.domain.ports import (
        FontEnumerator,
        FontExtractor,
        ReferenceIndexUnitOfWork,
        WritableDirectory,
    )
    from fonttriage.domain.progress import CancellationToken, ProgressCallback

log = getLogger(__name__)

type MatchKey = str | tuple[str, str]


def normalize_name(value: str | None) -> str:
    return (value or "").strip().casefold()


@dataclass(frozen=True, slots=True)
class MatchKeys:
    """Normalised lookup keys for each cascade level; empty keys never match."""

    postscript_name: str
    full_name: str
    family: str
    subfamily: str

    @classmethod
    def from_metadata(cls, metadata: FontMetadata) -> MatchKeys:
        return cls(
            postscript_name=normalize_name(metadata.postscript_name),
            full_name=normalize_name(metadata.effective_full_name),
            family=normalize_name(metadata.display_family),
            subfamily=normalize_name(metadata.display_subfamily),
        )

    def key_for(self, level: MatchLevel) -> MatchKey | None:
        if level is MatchLevel.L1_POSTSCRIPT_NAME:
            return self.postscript_name or None
        if level is MatchLevel.L2_FULL_NAME:
            return self.full_name or None
        if level is MatchLevel.L3_FAMILY_STYLE:
            return (self.family, self.subfamily) if self.family else None
        if level is MatchLevel.L4_FAMILY_ONLY:
            return self.family or None
        return None


CASCADE: tuple[MatchLevel, ...] = (
    MatchLevel.L1_POSTSCRIPT_NAME,
    MatchLevel.L2_FULL_NAME,
    MatchLevel.L3_FAMILY_STYLE,
    MatchLevel.L4_FAMILY_ONLY,
)


class ReferenceIndex:
    """Read-only snapshot of the reference collection.

    Records are held in path order, which is the stable iteration order used
    for tie-breaks. Lookup tables per cascade level are built once so that any
    number of classifications can share the snapshot without locking.
    """

    __slots__ = ("_lookups", "_metadata", "_records")

    def __init__(
        self,
        records: Iterable[ReferenceRecord],
        metadata: IndexMetadata | None = None,
    ) -> None:
        self._records: tuple[ReferenceRecord, ...] = tuple(
            sorted(records, key=lambda record: record.path)
        )
        self._metadata = metadata
        lookups: dict[MatchLevel, dict[MatchKey, list[ReferenceRecord]]] = {
            level: defaultdict(list) for level in CASCADE
        }
        for record in self._records:
            keys = MatchKeys.from_metadata(record.metadata)
            for level in CASCADE:
                key = keys.key_for(level)
                if key is not None:
                    lookups[level][key].append(record)
        self._lookups: Mapping[MatchLevel, Mapping[MatchKey, tuple[ReferenceRecord, ...]]] = (
            MappingProxyType(
                {
                    level: MappingProxyType({key: tuple(found) for key, found in table.items()})
                    for level, table in lookups.items()
                }
            )
        )

    @property
    def records(self) -> tuple[ReferenceRecord, ...]:
        return self._records

    @property
    def metadata(self) -> IndexMetadata | None:
        return self._metadata

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ReferenceRecord]:
        return iter(self._records)

    def lookup(self, level: MatchLevel, keys: MatchKeys) -> tuple[ReferenceRecord, ...]:
        """Return every record satisfying ``level`` for ``keys``, in path order."""

        key = keys.key_for(level)
        if key is None:
            return ()
        return self._lookups[level].get(key, ())


@dataclass(slots=True)
class BuildResult:
    """Outcome of one index build."""

    indexed: int = 0
    failed: int = 0
    cancelled: bool = False
    metadata: IndexMetadata | None = None

    @property
    def committed(self) -> bool:
        return self.metadata is not None


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ReferenceIndexStore:
    """Build, load and replace the persisted reference index."""

    def __init__(
        self,
        *,
        unit_of_work_factory: Callable[[], ReferenceIndexUnitOfWork],
        extractor: FontExtractor,
        enumerator: FontEnumerator,
        now_provider: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._extractor = extractor
        self._enumerator = enumerator
        self._now = now_provider

    def build(
        self,
        root: WritableDirectory,
        *,
        on_progress: ProgressCallback | None = None,
        cancel: CancellationToken | None = None,
    ) -> BuildResult:
        """Extract every font below ``root`` and commit them as the new index."""

        entries = self._enumerator(root)
        total = len(entries)
        result = BuildResult()
        records: list[ReferenceRecord] = []
        log.info("Building reference index from %s (%s files)", root.name, total)

        for position, entry in enumerate(entries):
            if cancel is not None and cancel.cancelled:
                log.info("Reference index build cancelled after %s of %s files", position, total)
                result.cancelled = True
                return result
            report(on_progress, position, total, entry.name)
            extracted = extract_entry(entry, self._extractor)
            if extracted.metadata is None:
                result.failed += 1
                continue
            records.append(
                ReferenceRecord(path=entry.path, size=extracted.size, metadata=extracted.metadata)
            )
        report(on_progress, total, total)

        metadata = IndexMetadata(
            root_label=root.name,
            item_count=len(records),
            last_built_at=self._now(),
        )
        self._commit(records, metadata)
        result.indexed = len(records)
        result.metadata = metadata
        log.info(
            "Reference index committed: indexed=%s, failed=%s",
            result.indexed,
            result.failed,
        )
        return result

    def rebuild(
        self,
        root: WritableDirectory,
        *,
        on_progress: ProgressCallback | None = None,
        cancel: CancellationToken | None = None,
    ) -> BuildResult:
        """Discard the current index and build a fresh one.

        The discard is part of the commit transaction, so a failed or cancelled
        rebuild keeps serving the previous index.
        """

        log.info("Rebuilding reference index; previous index is replaced on commit")
        return self.build(root, on_progress=on_progress, cancel=cancel)

    def load(self) -> ReferenceIndex | None:
        """Return the last committed index, or ``None`` when nothing was committed."""

        with self._unit_of_work_factory() as uow:
            repository = uow.repositories.reference_index
            metadata = repository.get_metadata()
            if metadata is None:
                return None
            records = repository.get_all()
        return ReferenceIndex(records, metadata)

    def status(self) -> IndexMetadata | None:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.reference_index.get_metadata()

    def clear(self) -> None:
        with self._unit_of_work_factory() as uow:
            uow.repositories.reference_index.clear()
            uow.commit()
        log.info("Reference index cleared")

    def _commit(self, records: list[ReferenceRecord], metadata: IndexMetadata) -> None:
        try:
            with self._unit_of_work_factory() as uow:
                uow.repositories.reference_index.replace_all(records, metadata)
                uow.commit()
        except StorageWriteError:
            log.exception("Reference index commit failed; previous index kept")
            raise

"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from fonttriage.adapters.extraction import default_extractor
from fonttriage.adapters.localfs import LocalDirectory, LocalFontEnumerator
from fonttriage.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReferenceIndexUnitOfWork,
    is_started,
    startup,
)
from fonttriage.config.triage import get_triage_config
from fonttriage.domain.mutations import ApplyEngine
from fonttriage.domain.reference_index import ReferenceIndexStore
from fonttriage.domain.scanning import scan_candidates
from fonttriage.domain.session import TriageSession

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from fonttriage.config.triage import TriageConfig
    from fonttriage.domain.mutations import ApplyResult
    from fonttriage.domain.ports import FontExtractor, IndexMetadata, ReferenceIndexUnitOfWork
    from fonttriage.domain.progress import CancellationToken, ProgressCallback
    from fonttriage.domain.reference_index import BuildResult
    from fonttriage.domain.scanning import ScanResult

UnitOfWorkFactory = Callable[[], "ReferenceIndexUnitOfWork"]


log = getLogger(__name__)


def _resolve_unit_of_work(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyReferenceIndexUnitOfWork


def _open_root(root_path: Path | str) -> LocalDirectory:
    path = Path(root_path).expanduser()
    if not path.is_dir():
        raise NotADirectoryError(f"Not a directory: {path}")
    return LocalDirectory(path)


def _store(
    *,
    extractor: FontExtractor | None,
    unit_of_work_factory: UnitOfWorkFactory | None,
    config: TriageConfig,
) -> ReferenceIndexStore:
    return ReferenceIndexStore(
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        extractor=extractor or default_extractor(),
        enumerator=LocalFontEnumerator(config),
    )


def build_reference_index(
    root_path: Path | str,
    *,
    extractor: FontExtractor | None = None,
    rebuild: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: TriageConfig | None = None,
    on_progress: ProgressCallback | None = None,
    cancel: CancellationToken | None = None,
) -> BuildResult:
    """Index every font below ``root_path`` and persist it as the reference index."""

    effective_config = config or get_triage_config()
    root = _open_root(root_path)
    store = _store(
        extractor=extractor,
        unit_of_work_factory=unit_of_work_factory,
        config=effective_config,
    )
    log.info("Starting reference index %s: root=%s", "rebuild" if rebuild else "build", root.path)
    if rebuild:
        return store.rebuild(root, on_progress=on_progress, cancel=cancel)
    return store.build(root, on_progress=on_progress, cancel=cancel)


def index_status(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> IndexMetadata | None:
    store = _store(
        extractor=None,
        unit_of_work_factory=unit_of_work_factory,
        config=get_triage_config(),
    )
    return store.status()


def clear_reference_index(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> None:
    store = _store(
        extractor=None,
        unit_of_work_factory=unit_of_work_factory,
        config=get_triage_config(),
    )
    store.clear()


def open_triage_session(
    root_path: Path | str,
    *,
    extractor: FontExtractor | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: TriageConfig | None = None,
    on_progress: ProgressCallback | None = None,
    cancel: CancellationToken | None = None,
) -> tuple[TriageSession, ScanResult]:
    """Load the reference index, scan ``root_path`` and classify every candidate.

    Without a committed index every candidate is compared against an empty
    one and comes out as new (or as a problem or conflict).
    """

    effective_extractor = extractor or default_extractor()
    effective_config = config or get_triage_config()
    root = _open_root(root_path)
    store = _store(
        extractor=effective_extractor,
        unit_of_work_factory=unit_of_work_factory,
        config=effective_config,
    )
    index = store.load()
    if index is None:
        log.warning("No reference index has been built; classifying against an empty index")

    session = TriageSession(index=index, config=effective_config)
    scan = scan_candidates(
        root,
        enumerator=LocalFontEnumerator(effective_config),
        extractor=effective_extractor,
        on_progress=on_progress,
        cancel=cancel,
    )
    session.load_candidates(scan.candidates)
    log.info(
        "Triage session ready: candidates=%s, failed=%s, families=%s, reference_records=%s",
        len(session.candidates),
        scan.failed,
        len(session.groups),
        len(session.index),
    )
    return session, scan


def apply_changes(
    session: TriageSession,
    *,
    renames: Mapping[str, str] | None = None,
    removals: Iterable[str] = (),
    engine: ApplyEngine | None = None,
    on_progress: ProgressCallback | None = None,
) -> ApplyResult:
    """Queue the given intents on ``session`` and apply the whole queue."""

    for path, target_name in (renames or {}).items():
        session.queue_rename(path, target_name)
    for path in removals:
        session.queue_removal(path)
    return (engine or ApplyEngine()).apply(session, on_progress=on_progress)

"""Pending rename/removal intents and the engine that commits them.

The underlying directory capability has no rename primitive, so every rename
and every removal is a copy followed by a delete of the original. The copy is
always complete before the original goes away: an interruption leaves a
harmless duplicate, never a gap.

Applying is all-or-nothing only for its preconditions (no concurrent apply,
write permission on every touched directory). Once those hold, each intent
succeeds or fails on its own and failed intents stay queued for a retry.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from fonttriage.domain.ports.filesystem import PermissionState
from fonttriage.domain.progress import report

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from fonttriage.domain.ports import WritableDirectory
    from fonttriage.domain.progress import ProgressCallback
    from fonttriage.domain.session import TriageSession

log = getLogger(__name__)

_PATH_SEPARATORS = ("/", "\\")
_RESERVED_NAMES = frozenset({".", ".."})
MAX_STAGING_ATTEMPTS = 1000


class NameCollisionError(FileExistsError):
    """Raised when the destination name of a copy already exists."""

    def __init__(self, name: str, directory: str) -> None:
        self.name = name
        self.directory = directory
        super().__init__(f"{name!r} already exists in {directory!r}")


@dataclass(frozen=True, slots=True)
class RenameIntent:
    path: str
    target_name: str
    parent: WritableDirectory = field(compare=False, repr=False)

    @property
    def file_name(self) -> str:
        return PurePosixPath(self.path).name


@dataclass(frozen=True, slots=True)
class RemovalIntent:
    path: str
    parent: WritableDirectory = field(compare=False, repr=False)

    @property
    def file_name(self) -> str:
        return PurePosixPath(self.path).name


class MutationQueue:
    """At most one rename and one removal intent per candidate path."""

    def __init__(self) -> None:
        self._renames: dict[str, RenameIntent] = {}
        self._removals: dict[str, RemovalIntent] = {}

    def queue_rename(self, intent: RenameIntent) -> None:
        """Queue or overwrite the pending rename for ``intent.path``."""
        self._renames[intent.path] = intent

    def queue_removal(self, intent: RemovalIntent) -> None:
        self._removals[intent.path] = intent

    def cancel(self, path: str) -> bool:
        """Drop both intents for ``path``; return whether anything was pending."""
        had_rename = self._renames.pop(path, None) is not None
        had_removal = self._removals.pop(path, None) is not None
        return had_rename or had_removal

    def clear(self) -> None:
        self._renames.clear()
        self._removals.clear()

    @property
    def renames(self) -> tuple[RenameIntent, ...]:
        return tuple(self._renames.values())

    @property
    def removals(self) -> tuple[RemovalIntent, ...]:
        return tuple(self._removals.values())

    def rename_target(self, path: str) -> str | None:
        intent = self._renames.get(path)
        return intent.target_name if intent is not None else None

    def is_removal_pending(self, path: str) -> bool:
        return path in self._removals

    def effective_renames(self) -> tuple[RenameIntent, ...]:
        """Renames that will actually run; a pending removal supersedes them."""
        return tuple(
            intent for intent in self._renames.values() if intent.path not in self._removals
        )

    def __len__(self) -> int:
        return len(self._renames.keys() | self._removals.keys())


class ApplyStatus(StrEnum):
    COMPLETED = "completed"
    PERMISSION_DENIED = "permission_denied"
    REJECTED = "rejected"


class IntentKind(StrEnum):
    RENAME = "rename"
    REMOVAL = "removal"


class OutcomeStatus(StrEnum):
    RENAMED = "renamed"
    REMOVED = "removed"
    NOOP = "noop"
    INVALID_NAME = "invalid_name"
    FAILED = "failed"


_SUCCESS_STATUSES = frozenset({OutcomeStatus.RENAMED, OutcomeStatus.REMOVED, OutcomeStatus.NOOP})


@dataclass(frozen=True, slots=True)
class ApplyOutcome:
    path: str
    kind: IntentKind
    status: OutcomeStatus
    destination: str | None = None
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status in _SUCCESS_STATUSES

    @property
    def touched_disk(self) -> bool:
        return self.status in {OutcomeStatus.RENAMED, OutcomeStatus.REMOVED}


@dataclass(slots=True)
class ApplyResult:
    """Summary of one apply; ``outcomes`` keeps every per-item result for audit."""

    status: ApplyStatus = ApplyStatus.COMPLETED
    renamed: int = 0
    removed: int = 0
    first_error: str | None = None
    outcomes: list[ApplyOutcome] = field(default_factory=list["ApplyOutcome"])

    def record(self, outcome: ApplyOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status is OutcomeStatus.RENAMED:
            self.renamed += 1
        elif outcome.status is OutcomeStatus.REMOVED:
            self.removed += 1
        elif not outcome.succeeded and self.first_error is None:
            self.first_error = outcome.message

    @property
    def failures(self) -> list[ApplyOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ApplyEngine:
    """Commit a session's queued intents to disk, one at a time.

    Only one apply may run per engine and per session; a second request
    while one is in flight is rejected rather than queued.
    """

    def __init__(self, *, now_provider: Callable[[], datetime] = _utcnow) -> None:
        self._lock = threading.Lock()
        self._now = now_provider

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def apply(
        self,
        session: TriageSession,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> ApplyResult:
        if not self._lock.acquire(blocking=False):
            return _rejected()
        try:
            if not session.apply_lock.acquire(blocking=False):
                return _rejected()
            try:
                return self._apply(session, on_progress)
            finally:
                session.apply_lock.release()
        finally:
            self._lock.release()

    def _apply(self, session: TriageSession, on_progress: ProgressCallback | None) -> ApplyResult:
        queue = session.queue
        renames = queue.effective_renames()
        removals = queue.removals
        if not renames and not removals:
            return ApplyResult()

        denied = _first_denied_directory(
            [intent.parent for intent in renames] + [intent.parent for intent in removals]
        )
        if denied is not None:
            log.warning("Apply aborted: write permission denied for %s", denied.name)
            return ApplyResult(
                status=ApplyStatus.PERMISSION_DENIED,
                first_error=f"Write permission denied for directory {denied.name!r}.",
            )

        total = len(renames) + len(removals)
        log.info("Applying %s renames and %s removals", len(renames), len(removals))
        result = ApplyResult()
        for position, intent in enumerate(renames):
            report(on_progress, position, total, intent.file_name)
            result.record(self._rename(intent))
        staging_dir_name = session.config.staging_dir_name
        for position, intent in enumerate(removals, start=len(renames)):
            report(on_progress, position, total, intent.file_name)
            result.record(self._remove(intent, staging_dir_name))
        report(on_progress, total, total)

        self._reconcile(session, result.outcomes)
        log.info(
            "Apply finished: renamed=%s, removed=%s, failed=%s",
            result.renamed,
            result.removed,
            len(result.failures),
        )
        return result

    def _rename(self, intent: RenameIntent) -> ApplyOutcome:
        target = intent.target_name.strip()
        if not target or target == intent.file_name:
            return ApplyOutcome(path=intent.path, kind=IntentKind.RENAME, status=OutcomeStatus.NOOP)
        if target in _RESERVED_NAMES or any(sep in target for sep in _PATH_SEPARATORS):
            return ApplyOutcome(
                path=intent.path,
                kind=IntentKind.RENAME,
                status=OutcomeStatus.INVALID_NAME,
                message=f"Invalid target name {target!r} for {intent.path}",
            )

        parent = intent.parent
        try:
            data = parent.read_file(intent.file_name)
            _create_new(parent, target, data)
            parent.remove_file(intent.file_name)
        except OSError as exc:
            log.warning("Rename of %s to %s failed: %s", intent.path, target, exc)
            return ApplyOutcome(
                path=intent.path,
                kind=IntentKind.RENAME,
                status=OutcomeStatus.FAILED,
                message=f"Rename of {intent.path} failed: {exc}",
            )
        return ApplyOutcome(
            path=intent.path,
            kind=IntentKind.RENAME,
            status=OutcomeStatus.RENAMED,
            destination=target,
        )

    def _remove(self, intent: RemovalIntent, staging_dir_name: str) -> ApplyOutcome:
        parent = intent.parent
        try:
            data = parent.read_file(intent.file_name)
            staging = parent.subdirectory(staging_dir_name, create=True)
            staged_name = self._stage_copy(staging, intent.file_name, data)
            parent.remove_file(intent.file_name)
        except OSError as exc:
            log.warning("Removal of %s failed: %s", intent.path, exc)
            return ApplyOutcome(
                path=intent.path,
                kind=IntentKind.REMOVAL,
                status=OutcomeStatus.FAILED,
                message=f"Removal of {intent.path} failed: {exc}",
            )
        return ApplyOutcome(
            path=intent.path,
            kind=IntentKind.REMOVAL,
            status=OutcomeStatus.REMOVED,
            destination=f"{staging_dir_name}/{staged_name}",
        )

    def _stage_copy(self, staging: WritableDirectory, file_name: str, data: bytes) -> str:
        """Write ``data`` under a unique timestamped name and return that name."""

        original = PurePosixPath(file_name)
        millis = int(self._now().timestamp() * 1000)
        base = f"{original.stem}_{millis}"
        for attempt in range(MAX_STAGING_ATTEMPTS):
            suffix = "" if attempt == 0 else f"_{attempt}"
            candidate = f"{base}{suffix}{original.suffix}"
            try:
                _create_new(staging, candidate, data)
            except NameCollisionError:
                continue
            return candidate
        raise NameCollisionError(f"{base}{original.suffix}", staging.name)

    @staticmethod
    def _reconcile(session: TriageSession, outcomes: Iterable[ApplyOutcome]) -> None:
        gone: list[str] = []
        for outcome in outcomes:
            if not outcome.succeeded:
                continue
            session.queue.cancel(outcome.path)
            if outcome.touched_disk:
                gone.append(outcome.path)
        session.discard(gone)


def _rejected() -> ApplyResult:
    log.warning("Apply rejected: another apply is in progress")
    return ApplyResult(
        status=ApplyStatus.REJECTED,
        first_error="Another apply is already in progress.",
    )


def _create_new(directory: WritableDirectory, name: str, data: bytes) -> None:
    try:
        directory.create_file(name, data)
    except FileExistsError as exc:
        raise NameCollisionError(name, directory.name) from exc


def _first_denied_directory(directories: Iterable[WritableDirectory]) -> WritableDirectory | None:
    """Ask each distinct directory for write access; return the first refusal."""

    distinct: dict[str, WritableDirectory] = {}
    for directory in directories:
        distinct.setdefault(directory.key, directory)
    for key in sorted(distinct):
        directory = distinct[key]
        state = directory.request_write_permission()
        if state != PermissionState.GRANTED:
            return directory
    return None

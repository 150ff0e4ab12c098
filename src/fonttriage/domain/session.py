"""Explicit triage session context.

One session holds everything a review pass needs: the reference index
snapshot, the live candidate set with its match results and family groups,
and the pending mutation queue. Rescanning replaces candidates wholesale;
a successful apply removes individual candidates.
"""

from __future__ import annotations

import threading
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING

from fonttriage.config.triage import TriageConfig
from fonttriage.domain.aggregation import group_by_family, summarize_families
from fonttriage.domain.classification import classify, classify_all
from fonttriage.domain.mutations import MutationQueue, RemovalIntent, RenameIntent
from fonttriage.domain.reference_index import ReferenceIndex

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping

    from fonttriage.domain.aggregation import FamilySummary
    from fonttriage.domain.classification import MatchResult
    from fonttriage.domain.model import CandidateRecord, Verdict

log = getLogger(__name__)


class UnknownCandidateError(LookupError):
    """Raised when an operation names a path that is not in the live candidate set."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No candidate with path {path!r} in this session")


class TriageSession:
    def __init__(
        self,
        *,
        index: ReferenceIndex | None = None,
        config: TriageConfig | None = None,
    ) -> None:
        self.config = config or TriageConfig()
        self._index = index if index is not None else ReferenceIndex(())
        self._candidates: dict[str, CandidateRecord] = {}
        self._results: dict[str, MatchResult] = {}
        self._groups: dict[str, list[CandidateRecord]] | None = None
        self.queue = MutationQueue()
        self.apply_lock = threading.Lock()

    @property
    def applying(self) -> bool:
        return self.apply_lock.locked()

    @property
    def index(self) -> ReferenceIndex:
        return self._index

    def replace_index(self, index: ReferenceIndex) -> None:
        """Swap in a new snapshot and reclassify the live candidates against it."""

        self._index = index
        self._results = classify_all(self._candidates.values(), index, config=self.config)

    def load_candidates(self, candidates: Iterable[CandidateRecord]) -> None:
        """Replace the live set with a fresh scan; pending intents are dropped."""

        self._candidates = {candidate.path: candidate for candidate in candidates}
        self._results = classify_all(self._candidates.values(), self._index, config=self.config)
        self._groups = None
        self.queue.clear()
        log.debug("Session loaded %s candidates", len(self._candidates))

    @property
    def candidates(self) -> Mapping[str, CandidateRecord]:
        return MappingProxyType(self._candidates)

    @property
    def results(self) -> Mapping[str, MatchResult]:
        return MappingProxyType(self._results)

    @property
    def groups(self) -> dict[str, list[CandidateRecord]]:
        if self._groups is None:
            self._groups = group_by_family(self._candidates.values())
        return self._groups

    def candidate(self, path: str) -> CandidateRecord:
        try:
            return self._candidates[path]
        except KeyError:
            raise UnknownCandidateError(path) from None

    def result(self, path: str) -> MatchResult:
        candidate = self.candidate(path)
        cached = self._results.get(path)
        if cached is None:
            cached = classify(candidate, self._index, config=self.config)
            self._results[path] = cached
        return cached

    def family_summaries(
        self,
        *,
        verdicts: Collection[Verdict] | None = None,
        query: str | None = None,
    ) -> list[FamilySummary]:
        return summarize_families(self.groups, self._results, verdicts=verdicts, query=query)

    def queue_rename(self, path: str, target_name: str) -> None:
        candidate = self.candidate(path)
        self.queue.queue_rename(
            RenameIntent(path=path, target_name=target_name, parent=candidate.parent)
        )

    def queue_removal(self, path: str) -> None:
        candidate = self.candidate(path)
        self.queue.queue_removal(RemovalIntent(path=path, parent=candidate.parent))

    def cancel(self, path: str) -> bool:
        return self.queue.cancel(path)

    def clear_queue(self) -> None:
        self.queue.clear()

    def discard(self, paths: Iterable[str]) -> None:
        """Drop candidates whose file no longer exists under their recorded path."""

        removed = False
        for path in paths:
            if self._candidates.pop(path, None) is not None:
                self._results.pop(path, None)
                removed = True
        if removed:
            self._groups = None

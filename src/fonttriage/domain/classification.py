"""Classify candidates against the reference index.

Classification is a pure function of the candidate, the index snapshot and the
triage configuration: identical inputs always give an identical
:class:`MatchResult`. The cascade tries PostScript name, full name,
family/style and family alone, and the first level with any hit wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, assert_never

from fonttriage.config.triage import TriageConfig
from fonttriage.domain.model import MatchFlag, MatchLevel, Verdict
from fonttriage.domain.reference_index import CASCADE, MatchKeys

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fonttriage.domain.model import CandidateRecord, FontMetadata, ReferenceRecord
    from fonttriage.domain.reference_index import ReferenceIndex

DEFAULT_CONFIG = TriageConfig()


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchResult:
    """Outcome of classifying one candidate; recomputed on every pass."""

    candidate_path: str
    level: MatchLevel
    verdict: Verdict
    matched: ReferenceRecord | None = None
    version_delta: float = 0.0
    glyph_delta: int = 0
    size_delta: int = 0
    table_delta: frozenset[str] = field(default_factory=frozenset[str])
    flags: frozenset[MatchFlag] = field(default_factory=frozenset[MatchFlag])

    @property
    def name_conflict(self) -> bool:
        return MatchFlag.NAME_CONFLICT in self.flags

    @property
    def trial_keyword(self) -> bool:
        return MatchFlag.TRIAL_KEYWORD in self.flags


def find_best_match(
    metadata: FontMetadata,
    index: ReferenceIndex,
) -> tuple[MatchLevel, ReferenceRecord | None]:
    """Walk the cascade and return the first level with a hit.

    Among several records at the same level the highest revision wins; a tie
    on revision keeps the first record in path order.
    """

    keys = MatchKeys.from_metadata(metadata)
    for level in CASCADE:
        found = index.lookup(level, keys)
        if found:
            return level, _prefer_highest_revision(found)
    return MatchLevel.L5_NO_MATCH, None


def _prefer_highest_revision(records: tuple[ReferenceRecord, ...]) -> ReferenceRecord:
    best = records[0]
    for record in records[1:]:
        if record.metadata.revision > best.metadata.revision:
            best = record
    return best


def classify(
    candidate: CandidateRecord,
    index: ReferenceIndex,
    *,
    config: TriageConfig = DEFAULT_CONFIG,
) -> MatchResult:
    """Pair ``candidate`` with at most one reference record and assign a verdict."""

    name_flags = _name_flags(candidate, config)
    metadata = candidate.metadata

    if metadata is None:
        verdict = Verdict.CONFLICT if MatchFlag.NAME_CONFLICT in name_flags else Verdict.PROBLEM
        return MatchResult(
            candidate_path=candidate.path,
            level=MatchLevel.L5_NO_MATCH,
            verdict=verdict,
            flags=name_flags,
        )

    level, matched = find_best_match(metadata, index)
    if matched is None:
        flags = name_flags
        version_delta = 0.0
        glyph_delta = 0
        size_delta = 0
        table_delta: frozenset[str] = frozenset()
    else:
        version_delta = metadata.revision - matched.metadata.revision
        glyph_delta = _glyph_delta(metadata, matched.metadata)
        size_delta = candidate.size - matched.size
        table_delta = metadata.table_tags ^ matched.metadata.table_tags
        flags = name_flags | _delta_flags(
            metadata,
            matched,
            version_delta=version_delta,
            glyph_delta=glyph_delta,
            threshold=config.glyph_delta_threshold,
        )

    verdict = decide_verdict(level, flags, metadata=metadata, version_delta=version_delta)
    return MatchResult(
        candidate_path=candidate.path,
        level=level,
        verdict=verdict,
        matched=matched,
        version_delta=version_delta,
        glyph_delta=glyph_delta,
        size_delta=size_delta,
        table_delta=table_delta,
        flags=flags,
    )


def classify_all(
    candidates: Iterable[CandidateRecord],
    index: ReferenceIndex,
    *,
    config: TriageConfig = DEFAULT_CONFIG,
) -> dict[str, MatchResult]:
    return {
        candidate.path: classify(candidate, index, config=config) for candidate in candidates
    }


def decide_verdict(
    level: MatchLevel,
    flags: frozenset[MatchFlag],
    *,
    metadata: FontMetadata,
    version_delta: float,
) -> Verdict:
    if MatchFlag.NAME_CONFLICT in flags:
        return Verdict.CONFLICT
    if not metadata.glyph_count:
        return Verdict.PROBLEM

    if (
        level is MatchLevel.L1_POSTSCRIPT_NAME
        or level is MatchLevel.L2_FULL_NAME
        or level is MatchLevel.L3_FAMILY_STYLE
    ):
        if _contradictory(flags):
            return Verdict.REVIEW
        gained_glyphs = MatchFlag.GLYPH_COUNT_HIGHER in flags
        if version_delta <= 0 and not gained_glyphs:
            return Verdict.SKIP
        return Verdict.UPGRADE
    if level is MatchLevel.L4_FAMILY_ONLY:
        return Verdict.REVIEW
    if level is MatchLevel.L5_NO_MATCH:
        return Verdict.NEW
    assert_never(level)


def _glyph_delta(metadata: FontMetadata, reference: FontMetadata) -> int:
    if metadata.glyph_count is None or reference.glyph_count is None:
        return 0
    return metadata.glyph_count - reference.glyph_count


def _contradictory(flags: frozenset[MatchFlag]) -> bool:
    return (MatchFlag.VERSION_NEWER in flags and MatchFlag.GLYPH_COUNT_LOWER in flags) or (
        MatchFlag.VERSION_OLDER in flags and MatchFlag.GLYPH_COUNT_HIGHER in flags
    )


def _name_flags(candidate: CandidateRecord, config: TriageConfig) -> frozenset[MatchFlag]:
    flags: set[MatchFlag] = set()
    if config.has_conflict_counter(candidate.stem):
        flags.add(MatchFlag.NAME_CONFLICT)
    if config.has_trial_keyword(candidate.file_name):
        flags.add(MatchFlag.TRIAL_KEYWORD)
    return frozenset(flags)


def _delta_flags(
    metadata: FontMetadata,
    matched: ReferenceRecord,
    *,
    version_delta: float,
    glyph_delta: int,
    threshold: int,
) -> frozenset[MatchFlag]:
    flags: set[MatchFlag] = set()
    if version_delta > 0:
        flags.add(MatchFlag.VERSION_NEWER)
    elif version_delta < 0:
        flags.add(MatchFlag.VERSION_OLDER)
    # smaller glyph deltas are noise
    if glyph_delta >= threshold:
        flags.add(MatchFlag.GLYPH_COUNT_HIGHER)
    elif glyph_delta <= -threshold:
        flags.add(MatchFlag.GLYPH_COUNT_LOWER)
    if metadata.table_tags - matched.metadata.table_tags:
        flags.add(MatchFlag.EXTRA_TABLES)
    if matched.metadata.table_tags - metadata.table_tags:
        flags.add(MatchFlag.MISSING_TABLES)
    return frozenset(flags)

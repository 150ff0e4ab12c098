"""Family grouping and severity roll-up for review prioritisation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping, Sequence

    from fonttriage.domain.classification import MatchResult
    from fonttriage.domain.model import CandidateRecord, Verdict


def group_key(candidate: CandidateRecord) -> str:
    """Preferred family, else family, else the candidate's display name."""

    metadata = candidate.metadata
    if metadata is not None:
        if metadata.preferred_family:
            return metadata.preferred_family
        if metadata.family_name:
            return metadata.family_name
    return candidate.display_name


def group_by_family(candidates: Iterable[CandidateRecord]) -> dict[str, list[CandidateRecord]]:
    groups: dict[str, list[CandidateRecord]] = {}
    for candidate in candidates:
        groups.setdefault(group_key(candidate), []).append(candidate)
    return groups


def summarize_group(
    candidates: Sequence[CandidateRecord],
    results: Mapping[str, MatchResult],
) -> Verdict:
    """Return the most severe verdict among the group's members.

    A single conflict among otherwise clean siblings marks the whole group.
    """

    verdicts = [results[candidate.path].verdict for candidate in candidates]
    if not verdicts:
        raise ValueError("Cannot summarise an empty family group")
    return max(verdicts, key=lambda verdict: verdict.severity)


@dataclass(frozen=True, slots=True)
class FamilySummary:
    key: str
    verdict: Verdict
    member_count: int
    filtered_count: int


def summarize_families(
    groups: Mapping[str, Sequence[CandidateRecord]],
    results: Mapping[str, MatchResult],
    *,
    verdicts: Collection[Verdict] | None = None,
    query: str | None = None,
) -> list[FamilySummary]:
    """Summarise every group, most severe first.

    ``verdicts`` filters members and only affects ``filtered_count``; the group
    verdict is always computed over all members. Groups with no member left
    after filtering are dropped. ``query`` matches family keys
    case-insensitively.
    """

    needle = query.strip().casefold() if query else ""
    summaries: list[FamilySummary] = []
    for key, members in groups.items():
        if needle and needle not in key.casefold():
            continue
        if verdicts is None:
            filtered_count = len(members)
        else:
            filtered_count = sum(
                1 for member in members if results[member.path].verdict in verdicts
            )
            if filtered_count == 0:
                continue
        summaries.append(
            FamilySummary(
                key=key,
                verdict=summarize_group(members, results),
                member_count=len(members),
                filtered_count=filtered_count,
            )
        )
    summaries.sort(key=lambda summary: (-summary.verdict.severity, summary.key.casefold()))
    return summaries

"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class FontFormat(StrEnum):
    OTF = "otf"
    TTF = "ttf"
    WOFF = "woff"
    WOFF2 = "woff2"

    @classmethod
    def from_file_name(cls, file_name: str) -> FontFormat | None:
        _, dot, extension = file_name.rpartition(".")
        if not dot:
            return None
        try:
            return cls(extension.lower())
        except ValueError:
            return None


class MatchLevel(StrEnum):
    """Confidence tier at which a candidate was paired with a reference record."""

    L1_POSTSCRIPT_NAME = "L1"
    L2_FULL_NAME = "L2"
    L3_FAMILY_STYLE = "L3"
    L4_FAMILY_ONLY = "L4"
    L5_NO_MATCH = "L5"


class Verdict(StrEnum):
    """Suggested triage action for a candidate."""

    CONFLICT = "conflict"
    PROBLEM = "problem"
    REVIEW = "review"
    UPGRADE = "upgrade"
    NEW = "new"
    SKIP = "skip"

    @property
    def severity(self) -> int:
        """Higher is more severe."""
        return _SEVERITY[self]


# most severe first
SEVERITY_ORDER: tuple[Verdict, ...] = (
    Verdict.CONFLICT,
    Verdict.PROBLEM,
    Verdict.REVIEW,
    Verdict.UPGRADE,
    Verdict.NEW,
    Verdict.SKIP,
)
_SEVERITY = {verdict: len(SEVERITY_ORDER) - rank for rank, verdict in enumerate(SEVERITY_ORDER)}


class MatchFlag(StrEnum):
    NAME_CONFLICT = "name_conflict"
    TRIAL_KEYWORD = "trial_keyword"
    VERSION_NEWER = "version_newer"
    VERSION_OLDER = "version_older"
    GLYPH_COUNT_HIGHER = "glyph_count_higher"
    GLYPH_COUNT_LOWER = "glyph_count_lower"
    EXTRA_TABLES = "extra_tables"
    MISSING_TABLES = "missing_tables"

"""Public domain model surface."""

from __future__ import annotations

from fonttriage.domain.model.enums import (
    SEVERITY_ORDER,
    FontFormat,
    MatchFlag,
    MatchLevel,
    Verdict,
)
from fonttriage.domain.model.records import CandidateRecord, FontMetadata, ReferenceRecord

__all__ = [
    "SEVERITY_ORDER",
    "CandidateRecord",
    "FontFormat",
    "FontMetadata",
    "MatchFlag",
    "MatchLevel",
    "ReferenceRecord",
    "Verdict",
]

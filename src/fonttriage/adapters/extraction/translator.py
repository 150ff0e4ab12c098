"""Translate parser payloads into domain metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fonttriage.domain.model import FontFormat, FontMetadata

if TYPE_CHECKING:
    from .schema import ExtractedFontPayload


def translate_payload(payload: ExtractedFontPayload, *, file_name: str) -> FontMetadata:
    return FontMetadata(
        family_name=payload.family_name.strip(),
        subfamily_name=payload.subfamily_name.strip(),
        preferred_family=payload.preferred_family,
        preferred_subfamily=payload.preferred_subfamily,
        postscript_name=payload.postscript_name.strip(),
        full_name=payload.full_name.strip(),
        version=payload.version.strip(),
        revision=payload.revision,
        glyph_count=payload.glyph_count,
        feature_tags=payload.feature_tags,
        table_tags=payload.table_tags,
        format=_resolve_format(payload.format, file_name),
    )


def _resolve_format(declared: str | None, file_name: str) -> FontFormat | None:
    if declared is not None:
        try:
            return FontFormat(declared.lower().lstrip("."))
        except ValueError:
            pass
    return FontFormat.from_file_name(file_name)

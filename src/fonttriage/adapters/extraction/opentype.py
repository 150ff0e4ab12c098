"""Default font parser built on fontTools.

Reads the name, head and maxp tables plus the GSUB/GPOS feature lists of an
OpenType, TrueType or WOFF/WOFF2 font and returns the raw payload mapping
validated by :class:`ExtractedFontPayload`.
"""

from __future__ import annotations

from io import BytesIO
from typing import TYPE_CHECKING, Final

from fontTools.ttLib import TTFont

if TYPE_CHECKING:
    from fontTools.ttLib.tables._n_a_m_e import table__n_a_m_e

NAME_IDS: Final[dict[str, int]] = {
    "family_name": 1,
    "subfamily_name": 2,
    "full_name": 4,
    "version": 5,
    "postscript_name": 6,
    "preferred_family": 16,
    "preferred_subfamily": 17,
}
LAYOUT_TABLES: Final[tuple[str, ...]] = ("GSUB", "GPOS")
# pseudo-table fontTools adds to every font
_GLYPH_ORDER = "GlyphOrder"


def parse_font(data: bytes) -> dict[str, object]:
    with TTFont(BytesIO(data), lazy=True) as font:
        names = _names(font["name"])
        return {
            **names,
            "revision": float(font["head"].fontRevision),
            "glyph_count": int(font["maxp"].numGlyphs),
            "feature_tags": _feature_tags(font),
            "table_tags": sorted(tag for tag in font.keys() if tag != _GLYPH_ORDER),
            "format": _format(font),
        }


def _names(table: table__n_a_m_e) -> dict[str, str | None]:
    return {field: table.getDebugName(name_id) for field, name_id in NAME_IDS.items()}


def _feature_tags(font: TTFont) -> list[str]:
    tags: set[str] = set()
    for table_tag in LAYOUT_TABLES:
        if table_tag not in font:
            continue
        feature_list = font[table_tag].table.FeatureList
        if feature_list is None:
            continue
        tags.update(record.FeatureTag for record in feature_list.FeatureRecord)
    return sorted(tags)


def _format(font: TTFont) -> str:
    if font.flavor in {"woff", "woff2"}:
        return font.flavor
    return "otf" if font.sfntVersion == "OTTO" else "ttf"

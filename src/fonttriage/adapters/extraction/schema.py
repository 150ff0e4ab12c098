"""Pydantic model for the loosely typed records returned by font parsers."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ParserBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ExtractedFontPayload(ParserBaseModel):
    """Naming and table data of one parsed font.

    Both snake_case and the camelCase keys common to JavaScript-era parsers
    are accepted.
    """

    family_name: str = Field(default="", validation_alias=AliasChoices("family_name", "familyName"))
    subfamily_name: str = Field(
        default="",
        validation_alias=AliasChoices("subfamily_name", "subfamilyName", "styleName"),
    )
    preferred_family: str | None = Field(
        default=None, validation_alias=AliasChoices("preferred_family", "preferredFamily")
    )
    preferred_subfamily: str | None = Field(
        default=None,
        validation_alias=AliasChoices("preferred_subfamily", "preferredSubfamily"),
    )
    postscript_name: str = Field(
        default="",
        validation_alias=AliasChoices("postscript_name", "postscriptName", "psName"),
    )
    full_name: str = Field(default="", validation_alias=AliasChoices("full_name", "fullName"))
    version: str = ""
    revision: float = Field(
        default=0.0,
        ge=0,
        validation_alias=AliasChoices("revision", "fontRevision", "font_revision"),
    )
    glyph_count: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("glyph_count", "glyphCount", "numGlyphs"),
    )
    feature_tags: frozenset[str] = Field(
        default_factory=frozenset,
        validation_alias=AliasChoices("feature_tags", "featureTags", "features"),
    )
    table_tags: frozenset[str] = Field(
        default_factory=frozenset,
        validation_alias=AliasChoices("table_tags", "availableTables", "tables"),
    )
    format: str | None = None

    @field_validator("preferred_family", "preferred_subfamily", "format", mode="before")
    @classmethod
    def _blank_optional(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator(
        "family_name", "subfamily_name", "postscript_name", "full_name", "version", mode="before"
    )
    @classmethod
    def _none_text(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("revision", mode="before")
    @classmethod
    def _none_revision(cls, value: object) -> object:
        return 0.0 if value is None else value

"""Extraction adapter: validate parser output and map it onto domain metadata."""

from __future__ import annotations

from .extractor import PayloadExtractor, default_extractor, load_extractor, load_parse_function
from .opentype import parse_font
from .schema import ExtractedFontPayload
from .translator import translate_payload

__all__ = [
    "ExtractedFontPayload",
    "PayloadExtractor",
    "default_extractor",
    "load_extractor",
    "load_parse_function",
    "parse_font",
    "translate_payload",
]

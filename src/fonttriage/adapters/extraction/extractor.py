"""Adapt third-party parser callables to the ``FontExtractor`` port."""

from __future__ import annotations

import importlib
from collections.abc import Callable, Mapping
from logging import getLogger

from pydantic import ValidationError

from fonttriage.domain.model import FontMetadata
from fonttriage.domain.ports.extraction import ExtractionError

from .opentype import parse_font
from .schema import ExtractedFontPayload
from .translator import translate_payload

type ParseFunction = Callable[[bytes], Mapping[str, object] | FontMetadata]

log = getLogger(__name__)


class PayloadExtractor:
    """Wrap a parser returning a mapping (or ready metadata) into a validated extractor."""

    def __init__(self, parse: ParseFunction) -> None:
        self._parse = parse

    def __call__(self, data: bytes, *, file_name: str) -> FontMetadata:
        try:
            raw = self._parse(data)
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"parser failed: {exc}", file_name=file_name) from exc

        if isinstance(raw, FontMetadata):
            return raw
        try:
            payload = ExtractedFontPayload.model_validate(raw)
        except ValidationError as exc:
            raise ExtractionError(
                f"invalid parser output ({exc.error_count()} errors)", file_name=file_name
            ) from exc
        return translate_payload(payload, file_name=file_name)


def load_parse_function(spec: str) -> ParseFunction:
    """Resolve ``"package.module:attribute"`` into a parser callable."""

    module_name, sep, attribute = spec.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Extractor must look like 'module:callable', got {spec!r}")
    module = importlib.import_module(module_name)
    target: object = module
    for part in attribute.split("."):
        target = getattr(target, part)
    if not callable(target):
        raise TypeError(f"Extractor {spec!r} is not callable")
    log.debug("Loaded extractor %s", spec)
    return target  # type: ignore[return-value]


def load_extractor(spec: str) -> PayloadExtractor:
    return PayloadExtractor(load_parse_function(spec))


def default_extractor() -> PayloadExtractor:
    """Extractor backed by the bundled fontTools parser."""
    return PayloadExtractor(parse_font)

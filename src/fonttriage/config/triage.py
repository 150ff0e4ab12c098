"""Tunables for classification and the apply engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Final

from .env import env_int, env_list, optional_env_var
from .errors import ConfigurationError

DEFAULT_GLYPH_DELTA_THRESHOLD: Final[int] = 50
DEFAULT_TRIAL_KEYWORDS: Final[tuple[str, ...]] = ("trial", "beta", "test", "demo")
# macOS/Finder style duplicate counter: "Name~001.otf"
DEFAULT_CONFLICT_PATTERN: Final[str] = r"~\d{3}$"
DEFAULT_STAGING_DIR_NAME: Final[str] = "_triage_trash"
DEFAULT_FONT_EXTENSIONS: Final[tuple[str, ...]] = (".otf", ".ttf", ".woff", ".woff2")


@dataclass(frozen=True, slots=True)
class TriageConfig:
    glyph_delta_threshold: int = DEFAULT_GLYPH_DELTA_THRESHOLD
    trial_keywords: frozenset[str] = frozenset(DEFAULT_TRIAL_KEYWORDS)
    conflict_pattern: str = DEFAULT_CONFLICT_PATTERN
    staging_dir_name: str = DEFAULT_STAGING_DIR_NAME
    font_extensions: tuple[str, ...] = DEFAULT_FONT_EXTENSIONS
    _conflict_regex: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _trial_regex: re.Pattern[str] | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.glyph_delta_threshold < 1:
            raise ConfigurationError("glyph_delta_threshold must be positive")
        if not self.staging_dir_name or any(sep in self.staging_dir_name for sep in "/\\"):
            raise ConfigurationError(f"Invalid staging directory name: {self.staging_dir_name!r}")
        try:
            conflict_regex = re.compile(self.conflict_pattern)
        except re.error as exc:
            raise ConfigurationError(f"Invalid conflict pattern: {self.conflict_pattern}") from exc
        keywords = sorted(keyword.casefold() for keyword in self.trial_keywords if keyword)
        trial_regex = (
            re.compile("|".join(re.escape(keyword) for keyword in keywords), re.IGNORECASE)
            if keywords
            else None
        )
        object.__setattr__(self, "_conflict_regex", conflict_regex)
        object.__setattr__(self, "_trial_regex", trial_regex)

    def has_conflict_counter(self, stem: str) -> bool:
        return self._conflict_regex.search(stem) is not None

    def has_trial_keyword(self, text: str) -> bool:
        return self._trial_regex is not None and self._trial_regex.search(text) is not None

    def is_font_file(self, name: str) -> bool:
        return name.lower().endswith(self.font_extensions)


def get_triage_config() -> TriageConfig:
    return TriageConfig(
        glyph_delta_threshold=env_int(
            "FONTTRIAGE_GLYPH_THRESHOLD", DEFAULT_GLYPH_DELTA_THRESHOLD, minimum=1
        ),
        trial_keywords=frozenset(env_list("FONTTRIAGE_TRIAL_KEYWORDS", DEFAULT_TRIAL_KEYWORDS)),
        staging_dir_name=optional_env_var("FONTTRIAGE_STAGING_DIR") or DEFAULT_STAGING_DIR_NAME,
    )

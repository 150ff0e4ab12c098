"""Local filesystem implementation of the directory capability ports."""

from __future__ import annotations

import os
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from fonttriage.config.triage import TriageConfig
from fonttriage.domain.ports.filesystem import FontEntry, PermissionState

if TYPE_CHECKING:
    from fonttriage.domain.ports import WritableDirectory

log = getLogger(__name__)


class LocalDirectory:
    """Directory handle over a local path.

    Write permission is answered from the operating system; there is no human
    prompt, so ``PROMPT`` is never returned.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"LocalDirectory({str(self.path)!r})"

    @property
    def name(self) -> str:
        return self.path.name or str(self.path)

    @property
    def key(self) -> str:
        return str(self.path.resolve())

    def request_write_permission(self) -> PermissionState:
        if self.path.is_dir() and os.access(self.path, os.W_OK | os.X_OK):
            return PermissionState.GRANTED
        log.debug("No write access to %s", self.path)
        return PermissionState.DENIED

    def read_file(self, name: str) -> bytes:
        return (self.path / name).read_bytes()

    def exists(self, name: str) -> bool:
        return (self.path / name).exists()

    def create_file(self, name: str, data: bytes) -> None:
        target = self.path / name
        with target.open("xb") as handle:
            try:
                handle.write(data)
            except OSError:
                handle.close()
                target.unlink(missing_ok=True)
                raise

    def remove_file(self, name: str) -> None:
        (self.path / name).unlink()

    def subdirectory(self, name: str, *, create: bool = False) -> LocalDirectory:
        target = self.path / name
        if create:
            target.mkdir(exist_ok=True)
        elif not target.is_dir():
            raise NotADirectoryError(str(target))
        return LocalDirectory(target)


class LocalFontEnumerator:
    """Recursively list font files below a :class:`LocalDirectory`.

    Entries come back sorted by relative POSIX path. Hidden entries and the
    staging directory are skipped.
    """

    def __init__(self, config: TriageConfig | None = None) -> None:
        self.config = config or TriageConfig()

    def __call__(self, root: WritableDirectory) -> list[FontEntry]:
        if not isinstance(root, LocalDirectory):
            raise TypeError(f"Expected a LocalDirectory, got {type(root).__name__}")
        return walk_font_files(root, config=self.config)


def walk_font_files(root: LocalDirectory, *, config: TriageConfig) -> list[FontEntry]:
    entries: list[FontEntry] = []
    base = root.path
    for current, dir_names, file_names in os.walk(base):
        dir_names[:] = sorted(
            name
            for name in dir_names
            if not name.startswith(".") and name != config.staging_dir_name
        )
        current_path = Path(current)
        directory = root if current_path == base else LocalDirectory(current_path)
        for file_name in file_names:
            if file_name.startswith(".") or not config.is_font_file(file_name):
                continue
            relative = (current_path / file_name).relative_to(base).as_posix()
            entries.append(FontEntry(path=relative, parent=directory))
    entries.sort(key=lambda entry: entry.path)
    log.debug("Found %s font files under %s", len(entries), base)
    return entries

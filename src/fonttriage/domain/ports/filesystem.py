"""Ports for directory capabilities and font enumeration.

A directory handle is a session-scoped capability: it can be asked for write
permission (which a human may refuse) and offers no rename primitive, only
exclusive create, read and remove.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable


class PermissionState(StrEnum):
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"


@runtime_checkable
class DirectoryHandle(Protocol):
    """Readable directory capability."""

    @property
    def name(self) -> str: ...

    @property
    def key(self) -> str:
        """Stable identifier used to de-duplicate handles to the same directory."""
        ...

    def read_file(self, name: str) -> bytes: ...

    def exists(self, name: str) -> bool: ...


@runtime_checkable
class WritableDirectory(DirectoryHandle, Protocol):
    """Directory capability that may be granted write access."""

    def request_write_permission(self) -> PermissionState: ...

    def create_file(self, name: str, data: bytes) -> None:
        """Create ``name`` with ``data``; raise ``FileExistsError`` if it already exists."""
        ...

    def remove_file(self, name: str) -> None: ...

    def subdirectory(self, name: str, *, create: bool = False) -> WritableDirectory: ...


@dataclass(frozen=True, slots=True)
class FontEntry:
    """One font file found by enumeration."""

    path: str
    parent: WritableDirectory = field(compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def read(self) -> bytes:
        return self.parent.read_file(self.name)


@runtime_checkable
class FontEnumerator(Protocol):
    """List every font file below ``root`` in a stable order."""

    def __call__(self, root: WritableDirectory) -> list[FontEntry]: ...

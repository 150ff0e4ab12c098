"""Reusable fakes and builders for font triage tests."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from fonttriage.domain.model import CandidateRecord, FontMetadata, ReferenceRecord
from fonttriage.domain.ports import ExtractionError, FontEntry, PermissionState

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


def make_metadata(
    family: str = "Inter",
    style: str = "Regular",
    *,
    revision: float = 1.0,
    glyph_count: int | None = 500,
    postscript_name: str | None = None,
    full_name: str | None = None,
    table_tags: Iterable[str] = ("cmap", "glyf", "head", "name"),
    **overrides: object,
) -> FontMetadata:
    metadata = FontMetadata(
        family_name=family,
        subfamily_name=style,
        postscript_name=(
            postscript_name
            if postscript_name is not None
            else f"{family.replace(' ', '')}-{style.replace(' ', '')}"
        ),
        full_name=full_name if full_name is not None else f"{family} {style}",
        version=f"Version {revision:.3f}",
        revision=revision,
        glyph_count=glyph_count,
        table_tags=frozenset(table_tags),
    )
    return replace(metadata, **overrides)  # type: ignore[arg-type]


def make_reference(
    path: str = "Inter/Inter-Regular.otf",
    *,
    size: int = 1000,
    metadata: FontMetadata | None = None,
) -> ReferenceRecord:
    return ReferenceRecord(path=path, size=size, metadata=metadata or make_metadata())


def make_candidate(
    path: str = "Inter-Regular.otf",
    *,
    size: int = 1000,
    metadata: FontMetadata | None = None,
    parent: FakeDirectory | None = None,
    broken: bool = False,
) -> CandidateRecord:
    return CandidateRecord(
        path=path,
        size=size,
        parent=parent or FakeDirectory("candidates"),
        metadata=None if broken else (metadata or make_metadata()),
        extraction_error="unreadable" if broken else None,
    )


class FakeDirectory:
    """In-memory directory capability with injectable failures."""

    def __init__(
        self,
        name: str = "candidates",
        files: dict[str, bytes] | None = None,
        *,
        permission: PermissionState = PermissionState.GRANTED,
        key: str | None = None,
    ) -> None:
        self._name = name
        self._key = key or name
        self.files: dict[str, bytes] = dict(files or {})
        self.subdirectories: dict[str, FakeDirectory] = {}
        self.permission = permission
        self.permission_requests = 0
        self.fail_create: set[str] = set()
        self.fail_remove: set[str] = set()
        self.fail_read: set[str] = set()
        self.on_permission_request: Callable[[], None] | None = None
        self.operations: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def key(self) -> str:
        return self._key

    def request_write_permission(self) -> PermissionState:
        self.permission_requests += 1
        if self.on_permission_request is not None:
            self.on_permission_request()
        return self.permission

    def read_file(self, name: str) -> bytes:
        if name in self.fail_read or name not in self.files:
            raise FileNotFoundError(name)
        return self.files[name]

    def exists(self, name: str) -> bool:
        return name in self.files

    def create_file(self, name: str, data: bytes) -> None:
        if name in self.files:
            raise FileExistsError(name)
        if name in self.fail_create:
            raise PermissionError(f"cannot create {name}")
        self.operations.append(("create", name))
        self.files[name] = data

    def remove_file(self, name: str) -> None:
        if name in self.fail_remove:
            raise PermissionError(f"cannot remove {name}")
        if name not in self.files:
            raise FileNotFoundError(name)
        self.operations.append(("remove", name))
        del self.files[name]

    def subdirectory(self, name: str, *, create: bool = False) -> FakeDirectory:
        if name not in self.subdirectories:
            if not create:
                raise NotADirectoryError(name)
            self.subdirectories[name] = FakeDirectory(
                name, key=f"{self._key}/{name}", permission=self.permission
            )
        return self.subdirectories[name]


def list_fake_fonts(root: FakeDirectory, prefix: str = "") -> list[FontEntry]:
    """Enumerate ``root`` recursively in path order, like the local enumerator."""

    entries = [
        FontEntry(path=f"{prefix}{name}", parent=root)
        for name in root.files
        if name.lower().endswith((".otf", ".ttf", ".woff", ".woff2"))
    ]
    for name, child in root.subdirectories.items():
        entries.extend(list_fake_fonts(child, prefix=f"{prefix}{name}/"))
    return sorted(entries, key=lambda entry: entry.path)


class FakeExtractor:
    """Return catalogued metadata for known payloads and fail on anything else."""

    def __init__(self, catalog: dict[bytes, FontMetadata] | None = None) -> None:
        self.catalog: dict[bytes, FontMetadata] = dict(catalog or {})
        self.calls: list[str] = []

    def __call__(self, data: bytes, *, file_name: str) -> FontMetadata:
        self.calls.append(file_name)
        try:
            return self.catalog[data]
        except KeyError:
            raise ExtractionError("unrecognised font data", file_name=file_name) from None

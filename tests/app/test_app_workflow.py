from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

import pytest

from fonttriage.app import (
    apply_changes,
    build_reference_index,
    clear_reference_index,
    index_status,
    open_triage_session,
)
from fonttriage.config.triage import TriageConfig
from fonttriage.domain.model import Verdict
from fonttriage.domain.mutations import ApplyStatus
from fonttriage.domain.session import TriageSession
from tests.helpers.fonts import FakeDirectory, FakeExtractor, make_candidate, make_metadata

if TYPE_CHECKING:
    from collections.abc import Callable

    from fonttriage.adapters.sqlalchemy import SqlAlchemyReferenceIndexUnitOfWork


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor(
        {
            b"inter-regular-v1": make_metadata("Inter", "Regular", revision=1.0),
            b"inter-regular-v2": make_metadata("Inter", "Regular", revision=2.0),
            b"lora-bold": make_metadata("Lora", "Bold"),
        }
    )


@pytest.fixture
def reference_root(tmp_path: Path) -> Path:
    root = tmp_path / "reference"
    (root / "Inter").mkdir(parents=True)
    (root / "Inter" / "Inter-Regular.otf").write_bytes(b"inter-regular-v1")
    return root


@pytest.fixture
def candidate_root(tmp_path: Path) -> Path:
    root = tmp_path / "incoming"
    root.mkdir()
    (root / "Inter-Regular.otf").write_bytes(b"inter-regular-v2")
    (root / "Inter-Regular~001.otf").write_bytes(b"inter-regular-v1")
    (root / "Lora-Bold.otf").write_bytes(b"lora-bold")
    (root / "Corrupt.ttf").write_bytes(b"???")
    return root


def test_build_then_triage_then_apply(
    reference_index_unit_of_work: Callable[[], SqlAlchemyReferenceIndexUnitOfWork],
    extractor: FakeExtractor,
    reference_root: Path,
    candidate_root: Path,
) -> None:
    config = TriageConfig()
    build = build_reference_index(
        reference_root,
        extractor=extractor,
        unit_of_work_factory=reference_index_unit_of_work,
        config=config,
    )
    assert build.indexed == 1

    status = index_status(unit_of_work_factory=reference_index_unit_of_work)
    assert status is not None
    assert status.root_label == "reference"

    session, scan = open_triage_session(
        candidate_root,
        extractor=extractor,
        unit_of_work_factory=reference_index_unit_of_work,
        config=config,
    )
    assert scan.failed == 1
    verdicts = {path: result.verdict for path, result in session.results.items()}
    assert verdicts == {
        "Corrupt.ttf": Verdict.PROBLEM,
        "Inter-Regular.otf": Verdict.UPGRADE,
        "Inter-Regular~001.otf": Verdict.CONFLICT,
        "Lora-Bold.otf": Verdict.NEW,
    }

    result = apply_changes(
        session,
        renames={"Lora-Bold.otf": "Lora Bold.otf"},
        removals=["Inter-Regular~001.otf"],
    )

    assert result.status is ApplyStatus.COMPLETED
    assert (result.renamed, result.removed) == (1, 1)
    assert (candidate_root / "Lora Bold.otf").exists()
    assert not (candidate_root / "Inter-Regular~001.otf").exists()
    assert set(session.candidates) == {"Corrupt.ttf", "Inter-Regular.otf"}


def test_apply_changes_rejects_a_second_apply_on_the_same_session() -> None:
    directory = FakeDirectory("dir", {"a.otf": b"A"})
    session = TriageSession()
    session.load_candidates([make_candidate("dir/a.otf", size=1, parent=directory)])
    nested: list[ApplyStatus] = []
    directory.on_permission_request = lambda: nested.append(apply_changes(session).status)

    result = apply_changes(session, removals=["dir/a.otf"])

    assert nested == [ApplyStatus.REJECTED]
    assert result.status is ApplyStatus.COMPLETED
    assert result.removed == 1
    assert result.first_error is None
    assert "dir/a.otf" not in session.candidates


def test_triage_without_index_uses_empty_index(
    reference_index_unit_of_work: Callable[[], SqlAlchemyReferenceIndexUnitOfWork],
    extractor: FakeExtractor,
    candidate_root: Path,
) -> None:
    session, _ = open_triage_session(
        candidate_root,
        extractor=extractor,
        unit_of_work_factory=reference_index_unit_of_work,
        config=TriageConfig(),
    )

    assert len(session.index) == 0
    assert session.result("Inter-Regular.otf").verdict is Verdict.NEW


def test_clear_reference_index(
    reference_index_unit_of_work: Callable[[], SqlAlchemyReferenceIndexUnitOfWork],
    extractor: FakeExtractor,
    reference_root: Path,
) -> None:
    build_reference_index(
        reference_root,
        extractor=extractor,
        unit_of_work_factory=reference_index_unit_of_work,
        config=TriageConfig(),
    )

    clear_reference_index(unit_of_work_factory=reference_index_unit_of_work)

    assert index_status(unit_of_work_factory=reference_index_unit_of_work) is None


def test_missing_root_is_rejected(
    reference_index_unit_of_work: Callable[[], SqlAlchemyReferenceIndexUnitOfWork],
    extractor: FakeExtractor,
    tmp_path: Path,
) -> None:
    with pytest.raises(NotADirectoryError):
        build_reference_index(
            tmp_path / "missing",
            extractor=extractor,
            unit_of_work_factory=reference_index_unit_of_work,
            config=TriageConfig(),
        )

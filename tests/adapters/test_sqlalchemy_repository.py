"""Exercise the SQLAlchemy reference index repository and unit of work."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import text

from fonttriage.adapters.sqlalchemy import SqlAlchemyReferenceIndexRepository, StartupError
from fonttriage.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReferenceIndexUnitOfWork,
    is_started,
    shutdown,
    startup,
)
from fonttriage.domain.model import FontFormat
from fonttriage.domain.ports import IndexMetadata, ReferenceIndexRepository, StorageWriteError
from tests.helpers.fonts import make_metadata, make_reference

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine

BUILT_AT = datetime(2026, 2, 2, 8, 0, tzinfo=UTC)


def _metadata(count: int) -> IndexMetadata:
    return IndexMetadata(root_label="Library", item_count=count, last_built_at=BUILT_AT)


def test_round_trip_preserves_metadata_fields(
    reference_index_unit_of_work: Callable[[], SqlAlchemyReferenceIndexUnitOfWork],
) -> None:
    record = make_reference(
        "Inter/Inter-Italic.woff2",
        size=4321,
        metadata=make_metadata(
            "Inter",
            "Italic",
            preferred_family="Inter Variable",
            revision=4.001,
            glyph_count=None,
            feature_tags=frozenset({"liga", "kern"}),
            table_tags={"cmap", "GSUB"},
            format=FontFormat.WOFF2,
        ),
    )

    with reference_index_unit_of_work() as uow:
        assert isinstance(uow.repositories.reference_index, ReferenceIndexRepository)
        uow.repositories.reference_index.replace_all([record], _metadata(1))
        uow.commit()

    with reference_index_unit_of_work() as uow:
        (loaded,) = uow.repositories.reference_index.get_all()
        stored_metadata = uow.repositories.reference_index.get_metadata()

    assert loaded == record
    assert stored_metadata == _metadata(1)


def test_uncommitted_replace_is_rolled_back(
    reference_index_unit_of_work: Callable[[], SqlAlchemyReferenceIndexUnitOfWork],
) -> None:
    with reference_index_unit_of_work() as uow:
        uow.repositories.reference_index.replace_all([make_reference("a.otf")], _metadata(1))
        uow.commit()

    with reference_index_unit_of_work() as uow:
        uow.repositories.reference_index.replace_all([make_reference("b.otf")], _metadata(1))

    with reference_index_unit_of_work() as uow:
        paths = [record.path for record in uow.repositories.reference_index.get_all()]

    assert paths == ["a.otf"]


def test_duplicate_paths_raise_storage_write_error(
    reference_index_unit_of_work: Callable[[], SqlAlchemyReferenceIndexUnitOfWork],
) -> None:
    duplicate = make_reference("same.otf")

    with pytest.raises(StorageWriteError), reference_index_unit_of_work() as uow:
        uow.repositories.reference_index.replace_all([duplicate, duplicate], _metadata(2))


def test_tags_are_stored_as_sorted_json(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    try:
        with SqlAlchemyReferenceIndexUnitOfWork() as uow:
            uow.repositories.reference_index.replace_all(
                [make_reference(metadata=make_metadata(table_tags={"name", "cmap", "GPOS"}))],
                _metadata(1),
            )
            uow.commit()
        with sqlite_engine.connect() as connection:
            stored = connection.execute(text("SELECT table_tags FROM reference_record")).scalar()
    finally:
        shutdown()

    assert stored == '["GPOS", "cmap", "name"]'


def test_clear_removes_records_and_metadata(
    reference_index_unit_of_work: Callable[[], SqlAlchemyReferenceIndexUnitOfWork],
) -> None:
    with reference_index_unit_of_work() as uow:
        uow.repositories.reference_index.replace_all([make_reference()], _metadata(1))
        uow.commit()

    with reference_index_unit_of_work() as uow:
        uow.repositories.reference_index.clear()
        uow.commit()

    with reference_index_unit_of_work() as uow:
        assert uow.repositories.reference_index.get_all() == []
        assert uow.repositories.reference_index.get_metadata() is None


def test_unit_of_work_requires_startup() -> None:
    shutdown()

    with pytest.raises(StartupError):
        SqlAlchemyReferenceIndexUnitOfWork()


def test_startup_refuses_silent_reconfiguration(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    try:
        with pytest.raises(StartupError):
            startup(engine=sqlite_engine)
        assert is_started()
    finally:
        shutdown()


def test_repository_exposes_session(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    try:
        with SqlAlchemyReferenceIndexUnitOfWork() as uow:
            repository = uow.repositories.reference_index
            assert isinstance(repository, SqlAlchemyReferenceIndexRepository)
            assert repository.session is uow.session
    finally:
        shutdown()

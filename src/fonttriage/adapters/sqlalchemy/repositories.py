"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from fonttriage.adapters.sqlalchemy.mappings import (
    CURRENT_INDEX_ID,
    reference_index_meta_table,
    reference_record_table,
)
from fonttriage.domain.model import FontFormat, FontMetadata, ReferenceRecord
from fonttriage.domain.ports.persistence import IndexMetadata, StorageWriteError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Row
    from sqlalchemy.orm import Session


class SqlAlchemyReferenceIndexRepository:
    """Whole-collection storage for reference records.

    ``replace_all`` only stages statements in the session's transaction; the
    unit of work decides whether they are committed or rolled back.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def replace_all(self, records: Sequence[ReferenceRecord], metadata: IndexMetadata) -> None:
        rows = [_record_to_row(record) for record in records]
        try:
            self.session.execute(delete(reference_record_table))
            if rows:
                self.session.execute(insert(reference_record_table), rows)
            self.session.execute(delete(reference_index_meta_table))
            self.session.execute(
                insert(reference_index_meta_table).values(
                    id=CURRENT_INDEX_ID,
                    root_label=metadata.root_label,
                    item_count=metadata.item_count,
                    last_built_at=metadata.last_built_at,
                )
            )
        except SQLAlchemyError as exc:
            raise StorageWriteError(f"Could not write reference index: {exc}") from exc

    def get_all(self) -> list[ReferenceRecord]:
        stmt = select(reference_record_table).order_by(reference_record_table.c.path)
        return [_row_to_record(row) for row in self.session.execute(stmt)]

    def get_metadata(self) -> IndexMetadata | None:
        stmt = select(reference_index_meta_table).where(
            reference_index_meta_table.c.id == CURRENT_INDEX_ID
        )
        row = self.session.execute(stmt).one_or_none()
        if row is None:
            return None
        return IndexMetadata(
            root_label=row.root_label,
            item_count=row.item_count,
            last_built_at=row.last_built_at,
        )

    def clear(self) -> None:
        try:
            self.session.execute(delete(reference_record_table))
            self.session.execute(delete(reference_index_meta_table))
        except SQLAlchemyError as exc:
            raise StorageWriteError(f"Could not clear reference index: {exc}") from exc


def _record_to_row(record: ReferenceRecord) -> dict[str, Any]:
    metadata = record.metadata
    return {
        "path": record.path,
        "size": record.size,
        "family_name": metadata.family_name,
        "subfamily_name": metadata.subfamily_name,
        "preferred_family": metadata.preferred_family,
        "preferred_subfamily": metadata.preferred_subfamily,
        "postscript_name": metadata.postscript_name,
        "full_name": metadata.full_name,
        "version": metadata.version,
        "revision": metadata.revision,
        "glyph_count": metadata.glyph_count,
        "feature_tags": metadata.feature_tags,
        "table_tags": metadata.table_tags,
        "format": metadata.format.value if metadata.format is not None else None,
    }


def _row_to_record(row: Row[Any]) -> ReferenceRecord:
    return ReferenceRecord(
        path=row.path,
        size=row.size,
        metadata=FontMetadata(
            family_name=row.family_name,
            subfamily_name=row.subfamily_name,
            preferred_family=row.preferred_family,
            preferred_subfamily=row.preferred_subfamily,
            postscript_name=row.postscript_name,
            full_name=row.full_name,
            version=row.version,
            revision=row.revision,
            glyph_count=row.glyph_count,
            feature_tags=row.feature_tags,
            table_tags=row.table_tags,
            format=FontFormat(row.format) if row.format else None,
        ),
    )


if TYPE_CHECKING:
    from typing import cast

    from fonttriage.domain.ports.persistence import ReferenceIndexRepository

    _session_stub = cast("Session", object())
    _repo_check: ReferenceIndexRepository = SqlAlchemyReferenceIndexRepository(_session_stub)

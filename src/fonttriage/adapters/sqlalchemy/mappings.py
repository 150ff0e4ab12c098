"""SQLAlchemy table metadata for the persisted reference index."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Final, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

CURRENT_INDEX_ID: Final[str] = "current"


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class TagSetType(TypeDecorator[frozenset[str]]):
    """Store a set of OpenType tags as a sorted JSON array."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: frozenset[str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(sorted(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> frozenset[str]:
        _ = dialect
        if value is None:
            return frozenset()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return frozenset()
        items = cast(list[Any], loaded)
        return frozenset(item for item in items if isinstance(item, str))


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "pk": "pk_%(table_name)s",
    }
)

reference_record_table = Table(
    "reference_record",
    metadata,
    Column("path", String, primary_key=True),
    Column("size", Integer, nullable=False),
    Column("family_name", String, nullable=False, default=""),
    Column("subfamily_name", String, nullable=False, default=""),
    Column("preferred_family", String, nullable=True),
    Column("preferred_subfamily", String, nullable=True),
    Column("postscript_name", String, nullable=False, default=""),
    Column("full_name", String, nullable=False, default=""),
    Column("version", String, nullable=False, default=""),
    Column("revision", Float, nullable=False, default=0.0),
    Column("glyph_count", Integer, nullable=True),
    Column("feature_tags", TagSetType, nullable=False),
    Column("table_tags", TagSetType, nullable=False),
    Column("format", String(8), nullable=True),
)
Index("ix_reference_record_family_name", reference_record_table.c.family_name)

reference_index_meta_table = Table(
    "reference_index_meta",
    metadata,
    Column("id", String, primary_key=True),
    Column("root_label", String, nullable=False),
    Column("item_count", Integer, nullable=False),
    Column("last_built_at", UTCDateTime, nullable=False),
)


def create_all_tables(engine: Engine) -> None:
    """Create the reference index tables if they do not exist yet."""

    log.debug("Creating reference index tables")
    metadata.create_all(engine, checkfirst=True)

"""Declarative base, column types and mixins shared by all tables.

Column types are chosen per dialect so the same models run on PostgreSQL
in production and on SQLite in tests.
"""

from datetime import UTC, datetime

from sqlalchemy import JSON, BigInteger, DateTime, Integer, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")

JSONDocument = JSON().with_variant(JSONB(), "postgresql")

# Native UUID on PostgreSQL, CHAR(32) elsewhere
UUIDColumn = Uuid(as_uuid=True)


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_aware(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Base(DeclarativeBase):
    type_annotation_map = {datetime: DateTime(timezone=True)}


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )


class SoftDeleteMixin:
    """Rows are hidden rather than removed on delete.

    Repositories exclude rows with ``deleted_at`` set unless asked to
    include them.
    """

    deleted_at: Mapped[datetime | None] = mapped_column(default=None)

    @property
    def trashed(self) -> bool:
        return self.deleted_at is not None

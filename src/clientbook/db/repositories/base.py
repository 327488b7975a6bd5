"""Base repository with common CRUD operations.

Provides a generic repository pattern for SQLAlchemy models with async
support and explicit soft-delete handling.

Usage:
    from clientbook.db.repositories.base import BaseRepository

    class CustomerRepository(BaseRepository[Customer]):
        pass

    repo = CustomerRepository(db_session)
    customer = await repo.get(customer_id)
    page = await repo.paginate(page=1, per_page=15)
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clientbook.db.models.base import Base, SoftDeleteMixin, utcnow

ModelType = TypeVar("ModelType", bound=Base)
T = TypeVar("T")


@dataclass(slots=True)
class Page(Generic[T]):
    """One page of query results plus the numbers needed to navigate."""

    items: list[T]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def first_item(self) -> int | None:
        """1-based position of the first item, None on an empty page."""
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + 1

    @property
    def last_item(self) -> int | None:
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + len(self.items)


class BaseRepository(Generic[ModelType]):
    """Generic repository for SQLAlchemy models.

    Models using ``SoftDeleteMixin`` get ``deleted_at IS NULL`` applied to
    every read unless ``with_trashed=True`` is passed.

    Attributes:
        model: The model class
        db: The database session
    """

    model: type[ModelType]

    def __init__(self, db: AsyncSession):
        self.db = db

    def __init_subclass__(cls, **kwargs):
        """Extract model type from generic parameter."""
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            args = getattr(base, "__args__", None)
            if args and len(args) >= 1:
                first_arg = args[0]
                if isinstance(first_arg, type) and issubclass(first_arg, Base):
                    cls.model = first_arg
                    break

    @property
    def soft_deletes(self) -> bool:
        return issubclass(self.model, SoftDeleteMixin)

    def query(self, *, with_trashed: bool = False) -> Select[tuple[ModelType]]:
        """Base select for this model with the soft-delete predicate applied."""
        stmt = select(self.model)
        if self.soft_deletes and not with_trashed:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return stmt

    async def get(self, pk: int, *, with_trashed: bool = False) -> ModelType | None:
        """Get a single record by primary key."""
        stmt = self.query(with_trashed=with_trashed).where(self._get_pk_column() == pk)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_raise(self, pk: int, *, with_trashed: bool = False) -> ModelType:
        """Get a single record by primary key or raise.

        Raises:
            LookupError: If record not found
        """
        result = await self.get(pk, with_trashed=with_trashed)
        if result is None:
            raise LookupError(f"{self.model.__name__} not found: {pk}")
        return result

    async def get_by_uuid(
        self, uuid: UUID | str, *, with_trashed: bool = False
    ) -> ModelType | None:
        """Get a single record by its external uuid.

        Malformed uuid strings match nothing.
        """
        if not isinstance(uuid, UUID):
            try:
                uuid = UUID(str(uuid))
            except ValueError:
                return None
        stmt = self.query(with_trashed=with_trashed).where(self.model.uuid == uuid)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def all(self, *, with_trashed: bool = False) -> list[ModelType]:
        stmt = self.query(with_trashed=with_trashed).order_by(self._get_pk_column())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_where(self, *, with_trashed: bool = False, **conditions: Any) -> list[ModelType]:
        """Find records whose columns equal the given values."""
        stmt = self._where(self.query(with_trashed=with_trashed), conditions)
        result = await self.db.execute(stmt.order_by(self._get_pk_column()))
        return list(result.scalars().all())

    async def find_where_first(
        self, *, with_trashed: bool = False, **conditions: Any
    ) -> ModelType | None:
        stmt = self._where(self.query(with_trashed=with_trashed), conditions)
        result = await self.db.execute(stmt.order_by(self._get_pk_column()).limit(1))
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType | dict[str, Any], *, commit: bool = True) -> ModelType:
        """Create a new record from a model instance or a dict of attributes.

        Args:
            obj: Model instance or attribute dict
            commit: Whether to commit the transaction

        Returns:
            Created model instance
        """
        if isinstance(obj, dict):
            obj = self.model(**obj)
        self.db.add(obj)
        if commit:
            await self.db.commit()
            await self.db.refresh(obj)
        else:
            await self.db.flush()
        return obj

    async def update(
        self, obj: ModelType, updates: dict[str, Any], *, commit: bool = True
    ) -> ModelType:
        """Update a record with given values.

        Only attributes listed in the model's ``writable_fields`` are
        applied; anything else in ``updates`` is ignored.
        """
        writable = getattr(self.model, "writable_fields", ())
        for field, value in updates.items():
            if field in writable:
                setattr(obj, field, value)

        if commit:
            await self.db.commit()
            await self.db.refresh(obj)
        else:
            await self.db.flush()

        return obj

    async def delete(self, obj: ModelType, *, commit: bool = True) -> None:
        """Delete a record. Soft-deleting models only get ``deleted_at`` set."""
        if not self.soft_deletes:
            await self.force_delete(obj, commit=commit)
            return

        obj.deleted_at = utcnow()
        await self._finish(obj, commit)

    async def force_delete(self, obj: ModelType, *, commit: bool = True) -> None:
        """Remove a record permanently."""
        await self.db.delete(obj)
        if commit:
            await self.db.commit()
        else:
            await self.db.flush()

    async def restore(self, obj: ModelType, *, commit: bool = True) -> ModelType:
        """Clear ``deleted_at`` on a soft-deleted record."""
        obj.deleted_at = None
        await self._finish(obj, commit)
        return obj

    async def paginate(
        self,
        page: int = 1,
        per_page: int = 15,
        *,
        stmt: Select | None = None,
        with_trashed: bool = False,
        **filters: Any,
    ) -> Page[ModelType]:
        """Return one page of results.

        Args:
            page: 1-based page number
            per_page: Page size
            stmt: Pre-built select (filters, ordering) to paginate
            with_trashed: Include soft-deleted rows when ``stmt`` is not given
            **filters: Column equality filters applied when ``stmt`` is not given
        """
        if stmt is None:
            stmt = self._where(self.query(with_trashed=with_trashed), filters)
            stmt = stmt.order_by(self._get_pk_column())

        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        page = max(page, 1)
        result = await self.db.execute(stmt.limit(per_page).offset((page - 1) * per_page))
        return Page(items=list(result.scalars().all()), total=total, page=page, per_page=per_page)

    async def count(self, *, with_trashed: bool = False, **conditions: Any) -> int:
        stmt = self._where(self.query(with_trashed=with_trashed), conditions)
        count_stmt = select(func.count()).select_from(stmt.subquery())
        return (await self.db.execute(count_stmt)).scalar() or 0

    async def exists(self, *, with_trashed: bool = False, **conditions: Any) -> bool:
        return await self.count(with_trashed=with_trashed, **conditions) > 0

    async def create_many(
        self, objs: Sequence[ModelType], *, commit: bool = True
    ) -> list[ModelType]:
        for obj in objs:
            self.db.add(obj)

        if commit:
            await self.db.commit()
            for obj in objs:
                await self.db.refresh(obj)
        else:
            await self.db.flush()

        return list(objs)

    async def _finish(self, obj: ModelType, commit: bool) -> None:
        if commit:
            await self.db.commit()
            await self.db.refresh(obj)
        else:
            await self.db.flush()

    def _where(self, stmt: Select, conditions: dict[str, Any]) -> Select:
        for field, value in conditions.items():
            column = getattr(self.model, field)
            stmt = stmt.where(column.is_(None) if value is None else column == value)
        return stmt

    def _get_pk_column(self):
        mapper = self.model.__mapper__
        pk_cols = mapper.primary_key
        if not pk_cols:
            raise ValueError(f"No primary key found for {self.model.__name__}")
        return pk_cols[0]

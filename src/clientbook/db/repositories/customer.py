"""Repository for customer records."""

from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from sqlalchemy import Select, func, or_, select

from clientbook.db.models.customer import Customer, CustomerStatus
from clientbook.db.repositories.base import BaseRepository, Page

SORTABLE_FIELDS = ("name", "email", "created_at", "updated_at")
DEFAULT_SORT = ("created_at", "desc")
SEARCH_LIMIT = 50


class CustomerRepository(BaseRepository[Customer]):
    """Customer persistence with search, filter and sort composition."""

    async def find_by_email(self, email: str, *, with_trashed: bool = False) -> Customer | None:
        stmt = self.query(with_trashed=with_trashed).where(Customer.email == email)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str, *, exclude_id: int | None = None) -> bool:
        """Check whether any row, soft-deleted ones included, uses ``email``.

        The unique index on ``customers.email`` spans every row, so the
        check has to as well.
        """
        stmt = select(func.count(Customer.id)).where(Customer.email == email)
        if exclude_id is not None:
            stmt = stmt.where(Customer.id != exclude_id)
        return ((await self.db.execute(stmt)).scalar() or 0) > 0

    async def find_by_status(self, status: CustomerStatus | str) -> list[Customer]:
        stmt = self.query().where(Customer.status == CustomerStatus(status)).order_by(Customer.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_active_customers(self) -> list[Customer]:
        stmt = (
            self.query()
            .where(Customer.status == CustomerStatus.ACTIVE)
            .order_by(Customer.name, Customer.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def search_customers(self, term: str, *, limit: int = SEARCH_LIMIT) -> list[Customer]:
        """Free-text search over name, email and company, capped at ``limit`` rows."""
        stmt = self._apply_search(self.query(), term).order_by(Customer.name, Customer.id)
        result = await self.db.execute(stmt.limit(min(limit, SEARCH_LIMIT)))
        return list(result.scalars().all())

    def filtered_query(
        self,
        *,
        search: str | None = None,
        status: CustomerStatus | str | None = None,
        company: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        with_trashed: bool = False,
        sort_by: str | None = None,
        sort_direction: str | None = None,
    ) -> Select[tuple[Customer]]:
        """Compose the listing query from optional filters.

        Filters combine with AND; ``search`` matches name OR email OR
        company. Unknown statuses are ignored. Sorting outside the
        allow-list falls back to newest first.
        """
        stmt = self.query(with_trashed=with_trashed)

        if search:
            stmt = self._apply_search(stmt, search)

        if status and str(getattr(status, "value", status)) in CustomerStatus.values():
            stmt = stmt.where(Customer.status == CustomerStatus(status))

        if company:
            stmt = stmt.where(
                func.lower(Customer.company).contains(company.lower(), autoescape=True)
            )

        # date bounds cover the whole calendar day
        if start_date is not None:
            stmt = stmt.where(Customer.created_at >= _start_of_day(start_date))
        if end_date is not None:
            stmt = stmt.where(Customer.created_at < _start_of_day(end_date + timedelta(days=1)))

        return self._apply_sort(stmt, sort_by, sort_direction)

    async def paginate_filtered(
        self, page: int = 1, per_page: int = 15, **filters: Any
    ) -> Page[Customer]:
        return await self.paginate(page, per_page, stmt=self.filtered_query(**filters))

    def _apply_search(self, stmt: Select, term: str) -> Select:
        needle = term.lower()
        return stmt.where(
            or_(
                func.lower(Customer.name).contains(needle, autoescape=True),
                func.lower(Customer.email).contains(needle, autoescape=True),
                func.lower(Customer.company).contains(needle, autoescape=True),
            )
        )

    def _apply_sort(self, stmt: Select, sort_by: str | None, direction: str | None) -> Select:
        """Order by ``sort_by``, with id as the tie-breaker.

        An unknown ``sort_by`` falls back to ``DEFAULT_SORT`` as a whole: the
        requested direction is discarded too, so the listing is newest first.
        A known field with a missing or invalid direction sorts descending.
        """
        field, default_direction = DEFAULT_SORT
        if sort_by in SORTABLE_FIELDS:
            field = sort_by
            direction = (direction or "desc").lower()
        else:
            direction = default_direction
        if direction not in ("asc", "desc"):
            direction = default_direction

        column = getattr(Customer, field)
        if direction == "asc":
            return stmt.order_by(column.asc(), Customer.id.asc())
        return stmt.order_by(column.desc(), Customer.id.desc())


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)

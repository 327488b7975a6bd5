"""Data types for the customer domain."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from clientbook.db.models.customer import Customer, CustomerStatus


@dataclass(frozen=True, slots=True)
class CustomerData:
    """The client-writable attributes of a customer.

    Create and update both apply every field, so an update that omits an
    optional field clears it.
    """

    name: str
    email: str
    phone: str | None = None
    address: str | None = None
    company: str | None = None
    status: CustomerStatus = CustomerStatus.ACTIVE
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomerData":
        return cls(
            name=data["name"],
            email=data["email"],
            phone=data.get("phone"),
            address=data.get("address"),
            company=data.get("company"),
            status=CustomerStatus(data.get("status") or CustomerStatus.ACTIVE),
            metadata=dict(data.get("metadata") or {}),
        )

    def to_attributes(self) -> dict[str, Any]:
        """Map onto model attribute names."""
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "company": self.company,
            "status": self.status,
            "metadata_": dict(self.metadata),
        }


@dataclass(frozen=True, slots=True)
class CustomerFilterData:
    """Filters, sorting and paging for the customer listing."""

    search: str | None = None
    status: CustomerStatus | None = None
    company: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    with_trashed: bool = False
    page: int = 1
    per_page: int = 15
    sort_by: str | None = None
    sort_direction: str | None = None

    def query_filters(self) -> dict[str, Any]:
        """Keyword arguments for ``CustomerRepository.filtered_query``."""
        return {
            "search": self.search,
            "status": self.status,
            "company": self.company,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "with_trashed": self.with_trashed,
            "sort_by": self.sort_by,
            "sort_direction": self.sort_direction,
        }


def snapshot(customer: Customer) -> dict[str, Any]:
    """Writable attribute values of ``customer``, keyed by public field name."""
    return {
        "name": customer.name,
        "email": customer.email,
        "phone": customer.phone,
        "address": customer.address,
        "company": customer.company,
        "status": customer.status.value if customer.status else None,
        "metadata": dict(customer.metadata_ or {}),
    }


def diff_snapshots(before: dict[str, Any], after: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Fields whose value changed, as ``{field: {"old": ..., "new": ...}}``."""
    return {
        key: {"old": before.get(key), "new": value}
        for key, value in after.items()
        if before.get(key) != value
    }

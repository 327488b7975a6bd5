"""API schemas for customer endpoints.

Request schemas validate client input at the boundary; resources shape
ORM rows for responses.
"""

from datetime import date, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from clientbook.customers.types import CustomerData, CustomerFilterData
from clientbook.db.models.base import as_aware
from clientbook.db.models.customer import Customer, CustomerStatus

# =============================================================================
# Request Schemas
# =============================================================================


class CustomerRequest(BaseModel):
    """Body for creating or replacing a customer.

    Example:
        {
            "name": "Jane Doe",
            "email": "jane@example.com",
            "company": "Acme",
            "status": "pending",
            "metadata": {"source": "referral"}
        }
    """

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    company: str | None = Field(default=None, max_length=255)
    status: CustomerStatus = CustomerStatus.ACTIVE
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_data(self) -> CustomerData:
        return CustomerData(
            name=self.name,
            email=str(self.email),
            phone=self.phone,
            address=self.address,
            company=self.company,
            status=self.status,
            metadata=dict(self.metadata),
        )


class CustomerIndexQuery(BaseModel):
    """Query parameters accepted by the customer listing."""

    search: str | None = Field(default=None, max_length=255)
    status: CustomerStatus | None = None
    company: str | None = Field(default=None, max_length=255)
    start_date: date | None = None
    end_date: date | None = None
    with_trashed: bool = False
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=15, ge=1, le=100)
    sort_by: str | None = Field(default=None, max_length=64)
    sort_direction: Literal["asc", "desc"] | None = None

    def to_filters(self) -> CustomerFilterData:
        return CustomerFilterData(**self.model_dump())


# =============================================================================
# Response Schemas
# =============================================================================


class StatusResource(BaseModel):
    value: str
    label: str


class CustomerResource(BaseModel):
    """Public representation of a customer.

    ``deleted_at`` is only present for soft-deleted rows.
    """

    uuid: UUID
    name: str
    email: str
    phone: str | None = None
    address: str | None = None
    company: str | None = None
    status: StatusResource
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @classmethod
    def from_model(cls, customer: Customer) -> "CustomerResource":
        return cls(
            uuid=customer.uuid,
            name=customer.name,
            email=customer.email,
            phone=customer.phone,
            address=customer.address,
            company=customer.company,
            status=StatusResource(value=customer.status.value, label=customer.status.label),
            metadata=dict(customer.metadata_ or {}),
            is_active=customer.is_active,
            created_at=as_aware(customer.created_at),
            updated_at=as_aware(customer.updated_at),
            deleted_at=as_aware(customer.deleted_at),
        )

    def to_response(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        if data["deleted_at"] is None:
            del data["deleted_at"]
        return data

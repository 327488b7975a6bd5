"""Customer records."""

from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, BigIntPK, JSONDocument, SoftDeleteMixin, TimestampMixin, UUIDColumn


class CustomerStatus(str, Enum):
    """Lifecycle status of a customer account."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING = "pending"

    @property
    def label(self) -> str:
        if self is CustomerStatus.PENDING:
            return "Pending Verification"
        return self.value.capitalize()

    @property
    def color(self) -> str:
        return _STATUS_COLORS[self]

    @classmethod
    def values(cls) -> list[str]:
        return [status.value for status in cls]


_STATUS_COLORS = {
    CustomerStatus.ACTIVE: "green",
    CustomerStatus.INACTIVE: "gray",
    CustomerStatus.SUSPENDED: "red",
    CustomerStatus.PENDING: "yellow",
}


class Customer(Base, TimestampMixin, SoftDeleteMixin):
    """A customer record.

    ``uuid`` is generated at creation and never changes. ``email`` is
    unique across all rows, soft-deleted ones included.
    """

    __tablename__ = "customers"

    # Attributes the update path may assign from client input
    writable_fields = ("name", "email", "phone", "address", "company", "status", "metadata_")

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    uuid: Mapped[UUID] = mapped_column(UUIDColumn, unique=True, nullable=False, default=uuid7)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[CustomerStatus] = mapped_column(
        SAEnum(
            CustomerStatus,
            name="customer_status",
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=CustomerStatus.ACTIVE,
    )
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONDocument, nullable=False, default=dict
    )

    __table_args__ = (
        Index("idx_customers_status", "status"),
        Index("idx_customers_company", "company"),
        Index("idx_customers_created_at", "created_at"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == CustomerStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, email={self.email}, status={self.status.value})>"

"""Database models for Clientbook."""

from .base import Base, JSONDocument, SoftDeleteMixin, TimestampMixin, UUIDColumn
from .customer import Customer, CustomerStatus
from .user import AccessToken, User

__all__ = [
    "Base",
    "JSONDocument",
    "UUIDColumn",
    "SoftDeleteMixin",
    "TimestampMixin",
    "AccessToken",
    "Customer",
    "CustomerStatus",
    "User",
]

"""Repository pattern implementations for database access."""

from clientbook.db.repositories.base import BaseRepository, Page
from clientbook.db.repositories.customer import CustomerRepository
from clientbook.db.repositories.user import IssuedToken, UserRepository

__all__ = [
    "BaseRepository",
    "Page",
    "CustomerRepository",
    "IssuedToken",
    "UserRepository",
]

"""Seed the database with the default accounts.

Usage:
    python -m clientbook.db.seed
"""

import asyncio

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from clientbook.config.settings import get_settings
from clientbook.core.logging import setup_logging
from clientbook.db.config import close_db, get_async_session, init_db
from clientbook.db.models.base import utcnow
from clientbook.db.models.user import User
from clientbook.db.repositories.user import UserRepository
from clientbook.security.passwords import PasswordHasher

logger = structlog.get_logger()

DEFAULT_PASSWORD = "password"

DEFAULT_USERS = (
    {"name": "Admin User", "username": "admin", "email": "admin@example.com"},
    {"name": "Test User", "username": "testuser", "email": "test@example.com"},
)


async def seed_users(session: AsyncSession, hasher: PasswordHasher) -> list[User]:
    """Create the default accounts that do not exist yet.

    Returns:
        The users that were created
    """
    repo = UserRepository(session)
    created: list[User] = []
    for attrs in DEFAULT_USERS:
        if await repo.exists_by_username(attrs["username"]):
            continue
        user = await repo.create(
            User(
                **attrs,
                password_hash=hasher.hash(DEFAULT_PASSWORD),
                is_active=True,
                email_verified_at=utcnow(),
            ),
            commit=False,
        )
        created.append(user)
        logger.info("user_seeded", username=user.username)

    await session.commit()
    return created


async def main() -> None:
    settings = get_settings()
    setup_logging(settings=settings)
    await init_db(settings)
    try:
        async with get_async_session() as session:
            created = await seed_users(session, PasswordHasher(settings.bcrypt_rounds))
        logger.info("seed_completed", created=len(created))
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())

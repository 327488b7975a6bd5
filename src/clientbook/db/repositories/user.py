"""Repository for users and their access tokens."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, func, select, update

from clientbook.db.models.base import as_aware, utcnow
from clientbook.db.models.user import AccessToken, User
from clientbook.db.repositories.base import BaseRepository
from clientbook.security.tokens import (
    format_token,
    generate_token,
    hash_token,
    hashes_match,
    split_token,
)


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """A freshly created token. ``plain_text`` is only available here."""

    plain_text: str
    token: AccessToken


class UserRepository(BaseRepository[User]):
    """User lookups plus bearer token issuance and revocation."""

    async def find_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def exists_by_username(self, username: str) -> bool:
        return await self.exists(username=username)

    async def exists_by_email(self, email: str) -> bool:
        return await self.exists(email=email)

    async def get_active_users(self) -> list[User]:
        stmt = select(User).where(User.is_active.is_(True)).order_by(User.name, User.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def lock_for_update(self, user: User) -> User:
        """Re-read the user row with ``SELECT ... FOR UPDATE``.

        Concurrent logins for the same user serialize on this lock, which
        keeps device-scoped token replacement atomic. SQLite ignores the
        clause; its single writer gives the same guarantee.
        """
        stmt = select(User).where(User.id == user.id).with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def create_token(
        self,
        user: User,
        device_name: str,
        *,
        expires_in: timedelta | None = None,
        commit: bool = True,
    ) -> IssuedToken:
        """Issue a new bearer token for ``device_name``.

        Args:
            user: Token owner
            device_name: Free-text device label, e.g. "mobile"
            expires_in: Token lifetime, None for no expiry
            commit: Whether to commit the transaction
        """
        secret = generate_token()
        token = AccessToken(
            user_id=user.id,
            name=device_name,
            token_hash=hash_token(secret),
            expires_at=utcnow() + expires_in if expires_in is not None else None,
        )
        self.db.add(token)
        # flush to get the id used as the plain-text prefix
        await self.db.flush()
        plain_text = format_token(token.id, secret)
        if commit:
            await self.db.commit()
        return IssuedToken(plain_text=plain_text, token=token)

    async def delete_tokens_by_device(
        self, user: User, device_name: str, *, commit: bool = True
    ) -> int:
        stmt = delete(AccessToken).where(
            AccessToken.user_id == user.id,
            AccessToken.name == device_name,
        )
        return await self._execute_delete(stmt, commit)

    async def delete_all_tokens(self, user: User, *, commit: bool = True) -> int:
        stmt = delete(AccessToken).where(AccessToken.user_id == user.id)
        return await self._execute_delete(stmt, commit)

    async def delete_token(self, token: AccessToken, *, commit: bool = True) -> int:
        stmt = delete(AccessToken).where(AccessToken.id == token.id)
        return await self._execute_delete(stmt, commit)

    async def find_token(self, plain_text: str) -> AccessToken | None:
        """Resolve a plain-text bearer token to its stored row.

        Returns None for unknown tokens. Expiry is the caller's concern.
        """
        token_id, secret = split_token(plain_text)
        if not secret:
            return None

        if token_id is None:
            result = await self.db.execute(
                select(AccessToken).where(AccessToken.token_hash == hash_token(secret))
            )
            return result.scalar_one_or_none()

        token = await self.db.get(AccessToken, token_id)
        if token is None or not hashes_match(secret, token.token_hash):
            return None
        return token

    async def touch_token(self, token: AccessToken, *, commit: bool = True) -> None:
        """Record that ``token`` was just used."""
        now = utcnow()
        await self.db.execute(
            update(AccessToken).where(AccessToken.id == token.id).values(last_used_at=now)
        )
        token.last_used_at = now
        if commit:
            await self.db.commit()

    async def count_tokens(self, user: User, device_name: str | None = None) -> int:
        stmt = select(func.count(AccessToken.id)).where(AccessToken.user_id == user.id)
        if device_name is not None:
            stmt = stmt.where(AccessToken.name == device_name)
        return (await self.db.execute(stmt)).scalar() or 0

    @staticmethod
    def token_expired(token: AccessToken, now: datetime | None = None) -> bool:
        expires_at = as_aware(token.expires_at)
        return expires_at is not None and expires_at <= (now or utcnow())

    async def _execute_delete(self, stmt, commit: bool) -> int:
        result = await self.db.execute(stmt)
        if commit:
            await self.db.commit()
        else:
            await self.db.flush()
        return result.rowcount or 0

"""Use-case actions for logging in and out."""

from datetime import timedelta

import structlog

from clientbook.auth.types import AuthTokenData, LoginData, LoginResult
from clientbook.core.events import EventDispatcher, UserLoggedIn, UserLoggedOut
from clientbook.core.exceptions import InvalidCredentialsError
from clientbook.db.models.base import as_aware
from clientbook.db.models.user import AccessToken, User
from clientbook.db.repositories.user import UserRepository
from clientbook.security.passwords import PasswordHasher

logger = structlog.get_logger()


class LoginAction:
    """Exchange credentials for a device-scoped bearer token.

    A successful login replaces any token the user already holds for the
    same device name, so each (user, device) pair has at most one live
    token. The replacement runs in one transaction under a row lock on
    the user.
    """

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        events: EventDispatcher,
        token_ttl: timedelta | None = None,
    ):
        self.users = users
        self.hasher = hasher
        self.events = events
        self.token_ttl = token_ttl

    async def execute(self, data: LoginData, ip_address: str | None = None) -> LoginResult:
        """Authenticate and issue a token.

        Raises:
            InvalidCredentialsError: Unknown user, wrong password or disabled account
        """
        user = await self.users.find_by_username(data.username)
        if user is None:
            self.hasher.verify_dummy(data.password)
            raise InvalidCredentialsError()
        if not self.hasher.verify(data.password, user.password_hash) or not user.is_active:
            raise InvalidCredentialsError()

        try:
            user = await self.users.lock_for_update(user)
            await self.users.delete_tokens_by_device(user, data.device_name, commit=False)
            issued = await self.users.create_token(
                user, data.device_name, expires_in=self.token_ttl, commit=False
            )
            await self.users.db.commit()
        except Exception:
            await self.users.db.rollback()
            raise

        logger.info("login_succeeded", user_id=user.id, device_name=data.device_name)
        await self.events.dispatch(
            UserLoggedIn(
                user_id=user.id,
                user_uuid=str(user.uuid),
                username=user.username,
                device_name=data.device_name,
                ip_address=ip_address,
            )
        )

        return LoginResult(
            user=user,
            token=AuthTokenData(
                access_token=issued.plain_text,
                expires_at=as_aware(issued.token.expires_at),
            ),
        )


class LogoutAction:
    """Revoke the calling token, or every token the user holds.

    Revoking is idempotent: tokens that are already gone are not an error.
    """

    def __init__(self, users: UserRepository, events: EventDispatcher):
        self.users = users
        self.events = events

    async def execute(
        self,
        user: User,
        current_token: AccessToken | None = None,
        *,
        all_devices: bool = False,
    ) -> bool:
        if all_devices:
            revoked = await self.users.delete_all_tokens(user)
        elif current_token is not None:
            revoked = await self.users.delete_token(current_token)
        else:
            revoked = 0

        logger.info("logout_succeeded", user_id=user.id, all_devices=all_devices, revoked=revoked)
        await self.events.dispatch(
            UserLoggedOut(user_id=user.id, user_uuid=str(user.uuid), all_devices=all_devices)
        )
        return True

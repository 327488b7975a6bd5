"""Authentication service facade."""

from uuid import UUID

from clientbook.auth.actions import LoginAction, LogoutAction
from clientbook.auth.types import LoginData, LoginResult
from clientbook.core.exceptions import AuthenticationError, UserNotFoundError
from clientbook.db.models.user import AccessToken, User
from clientbook.db.repositories.user import UserRepository


class AuthService:
    """Entry point for login, logout and bearer token resolution."""

    def __init__(
        self,
        users: UserRepository,
        login_action: LoginAction,
        logout_action: LogoutAction,
    ):
        self.users = users
        self.login_action = login_action
        self.logout_action = logout_action

    async def login(self, data: LoginData, ip_address: str | None = None) -> LoginResult:
        return await self.login_action.execute(data, ip_address)

    async def logout(
        self,
        user: User,
        current_token: AccessToken | None = None,
        *,
        all_devices: bool = False,
    ) -> bool:
        return await self.logout_action.execute(user, current_token, all_devices=all_devices)

    async def find_by_uuid(self, uuid: UUID | str) -> User | None:
        return await self.users.get_by_uuid(uuid)

    async def find_by_username(self, username: str) -> User | None:
        return await self.users.find_by_username(username)

    async def get_by_username(self, username: str) -> User:
        """Like ``find_by_username`` but raises when the user is missing.

        Raises:
            UserNotFoundError: If no user has this username
        """
        user = await self.users.find_by_username(username)
        if user is None:
            raise UserNotFoundError(username)
        return user

    async def find_by_email(self, email: str) -> User | None:
        return await self.users.find_by_email(email)

    async def authenticate_token(self, plain_text: str) -> tuple[User, AccessToken]:
        """Resolve a bearer token to its user.

        Records the time of use on success.

        Raises:
            AuthenticationError: Unknown or expired token, or a disabled user
        """
        token = await self.users.find_token(plain_text)
        if token is None or self.users.token_expired(token):
            raise AuthenticationError()

        user = await self.users.get(token.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError()

        await self.users.touch_token(token)
        return user, token

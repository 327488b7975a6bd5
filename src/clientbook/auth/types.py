"""Data types for the authentication domain."""

from dataclasses import dataclass
from datetime import datetime

from clientbook.db.models.user import User

DEFAULT_DEVICE_NAME = "api"


@dataclass(frozen=True, slots=True)
class LoginData:
    """Credentials submitted to log in.

    Attributes:
        username: Account username
        password: Plain-text password, never logged
        device_name: Label the issued token is scoped to
    """

    username: str
    password: str
    device_name: str = DEFAULT_DEVICE_NAME

    def __repr__(self) -> str:
        return f"LoginData(username={self.username!r}, device_name={self.device_name!r})"


@dataclass(frozen=True, slots=True)
class AuthTokenData:
    access_token: str
    token_type: str = "Bearer"
    expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class LoginResult:
    user: User
    token: AuthTokenData

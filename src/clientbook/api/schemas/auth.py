"""API schemas for authentication endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from clientbook.auth.types import DEFAULT_DEVICE_NAME, AuthTokenData, LoginData


class LoginRequest(BaseModel):
    """Request body for ``POST /v1/login``."""

    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=6)
    device_name: str | None = Field(default=None, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"username": "admin", "password": "password", "device_name": "cli"}
        }
    )

    def to_login_data(self) -> LoginData:
        return LoginData(
            username=self.username,
            password=self.password,
            device_name=self.device_name or DEFAULT_DEVICE_NAME,
        )


class UserResource(BaseModel):
    """Public representation of a user."""

    model_config = ConfigDict(from_attributes=True)

    uuid: UUID
    name: str
    username: str
    email: str
    is_active: bool
    email_verified_at: datetime | None = None
    created_at: datetime | None = None


class TokenResource(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_at: datetime | None = None

    @classmethod
    def from_token(cls, token: AuthTokenData) -> "TokenResource":
        return cls(
            access_token=token.access_token,
            token_type=token.token_type,
            expires_at=token.expires_at,
        )


class LoginResource(BaseModel):
    user: UserResource
    token: TokenResource

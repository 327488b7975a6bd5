"""Authentication domain: login, logout and bearer token resolution."""

from clientbook.auth.actions import LoginAction, LogoutAction
from clientbook.auth.listeners import log_auth_event, register_auth_listeners
from clientbook.auth.service import AuthService
from clientbook.auth.types import AuthTokenData, LoginData, LoginResult

__all__ = [
    "AuthService",
    "AuthTokenData",
    "LoginAction",
    "LoginData",
    "LoginResult",
    "LogoutAction",
    "log_auth_event",
    "register_auth_listeners",
]

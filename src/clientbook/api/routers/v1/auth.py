"""Authentication endpoints.

- POST /v1/login - Exchange credentials for a bearer token
- POST /v1/logout - Revoke the current token
- POST /v1/logout-all - Revoke every token of the user
- GET /v1/me - The authenticated user
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from clientbook.api.dependencies import (
    get_auth_service,
    get_current_token,
    get_current_user,
    rate_limit,
)
from clientbook.api.network import get_client_ip
from clientbook.api.responses import ApiResponse
from clientbook.api.schemas.auth import LoginRequest, LoginResource, TokenResource, UserResource
from clientbook.auth.service import AuthService
from clientbook.db.models.user import AccessToken, User

router = APIRouter(tags=["auth"])


@router.post(
    "/login",
    summary="Log in",
    dependencies=[Depends(rate_limit("auth"))],
)
async def login(
    body: LoginRequest,
    request: Request,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> JSONResponse:
    """Issue a token for the given device, replacing any previous one."""
    result = await auth.login(body.to_login_data(), ip_address=get_client_ip(request))
    payload = LoginResource(
        user=UserResource.model_validate(result.user),
        token=TokenResource.from_token(result.token),
    )
    return ApiResponse.success(payload.model_dump(mode="json"), "Login successful")


@router.post(
    "/logout",
    summary="Log out the current device",
    dependencies=[Depends(rate_limit("api"))],
)
async def logout(
    user: Annotated[User, Depends(get_current_user)],
    token: Annotated[AccessToken, Depends(get_current_token)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> JSONResponse:
    await auth.logout(user, token)
    return ApiResponse.success(message="Logged out successfully")


@router.post(
    "/logout-all",
    summary="Log out every device",
    dependencies=[Depends(rate_limit("sensitive"))],
)
async def logout_all(
    user: Annotated[User, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> JSONResponse:
    await auth.logout(user, all_devices=True)
    return ApiResponse.success(message="Logged out from all devices successfully")


@router.get(
    "/me",
    summary="Current user",
    dependencies=[Depends(rate_limit("api"))],
)
async def me(user: Annotated[User, Depends(get_current_user)]) -> JSONResponse:
    return ApiResponse.success(
        UserResource.model_validate(user).model_dump(mode="json"),
        "User retrieved successfully",
    )

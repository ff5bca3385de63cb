"""Authentication routes."""

import logging

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from tally.application.usecase.auth import (
    LoginUseCase,
    RegisterUseCase,
    VerifyTokenUseCase,
)
from tally.application.usecase.auth.login import LoginRequest, LoginResponse
from tally.application.usecase.auth.register import RegisterRequest, RegisterResponse
from tally.application.usecase.auth.user_info import UserInfo
from tally.application.usecase.auth.verify_token import VerifyTokenRequest
from tally.domain.error import (
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    UnknownUserError,
    ValidationError,
)
from tally.domain.value import AuthCapabilities
from tally.interface.api.session import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"], route_class=DishkaRoute)


class ConfiguredCheckResponse(BaseModel):
    """Whether Google sign-in can be attempted."""

    model_config = ConfigDict(populate_by_name=True)

    configured: bool
    callback_url: str = Field(alias="callbackUrl")


class MeResponse(BaseModel):
    """Current user response."""

    user: UserInfo


def _verify_failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "message": message}
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    register_use_case: FromDishka[RegisterUseCase],
) -> RegisterResponse:
    """Create a password account and return a token for it.

    Raises:
        HTTPException: 400 with a readable reason for invalid or duplicate input

    Example:
        POST /auth/register
        {"username": "alice", "email": "alice@example.com", "password": "secret1"}
    """
    try:
        return await register_use_case.execute(request)
    except (ValidationError, DuplicateIdentityError) as e:
        logger.info(f"Registration rejected: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/login",
    response_model=LoginResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def login(
    request: LoginRequest,
    login_use_case: FromDishka[LoginUseCase],
) -> LoginResponse:
    """Sign in with email and password.

    Raises:
        HTTPException: 400 "Invalid credentials" on mismatch
    """
    try:
        return await login_use_case.execute(request)
    except (ValidationError, InvalidCredentialsError) as e:
        logger.info(f"Login rejected: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/me",
    response_model=MeResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def get_current_user(user: CurrentUser) -> MeResponse:
    """Return the user the bearer token belongs to."""
    return MeResponse(user=UserInfo.from_user(user))


@router.post("/verify-token")
async def verify_token(
    request: VerifyTokenRequest,
    verify_token_use_case: FromDishka[VerifyTokenUseCase],
):
    """Validate a token received out of band (e.g. from the sign-in popup).

    Example:
        POST /auth/verify-token {"token": "eyJhbGciOi..."}
        -> {"success": true, "message": "Token is valid", "userId": "..."}
    """
    try:
        result = await verify_token_use_case.execute(request)
    except MissingTokenError:
        return _verify_failure(status.HTTP_400_BAD_REQUEST, "No token provided")
    except InvalidTokenError as e:
        logger.info(f"Token verification failed: {e}")
        return _verify_failure(status.HTTP_401_UNAUTHORIZED, str(e))
    except UnknownUserError:
        return _verify_failure(status.HTTP_404_NOT_FOUND, "User not found")

    return {"success": True, "message": result.message, "userId": result.user_id}


@router.get(
    "/configured-check",
    response_model=ConfiguredCheckResponse,
    response_model_by_alias=True,
)
async def configured_check(
    capabilities: FromDishka[AuthCapabilities],
) -> ConfiguredCheckResponse:
    """Report whether Google sign-in is available."""
    return ConfiguredCheckResponse(
        configured=capabilities.federated_login_enabled,
        callback_url=capabilities.callback_url,
    )

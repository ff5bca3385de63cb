"""Request authentication dependency for protected routes."""

import logging
from typing import Annotated

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import Depends, Header, HTTPException, Request, status

from tally.application.usecase.auth import GetCurrentUserUseCase
from tally.application.usecase.auth.get_current_user import GetCurrentUserRequest
from tally.domain.error import AuthenticationError
from tally.domain.model import User

logger = logging.getLogger(__name__)


def unauthorized(error: AuthenticationError) -> HTTPException:
    """401 carrying the failure-specific message."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=str(error),
        headers={"WWW-Authenticate": "Bearer"},
    )


@inject
async def require_user(
    request: Request,
    get_current_user_use_case: FromDishka[GetCurrentUserUseCase],
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """Resolve the bearer token on the request to its user.

    Raises:
        HTTPException: 401 for a missing, invalid or expired token, or an unknown user
    """
    try:
        return await get_current_user_use_case.execute(
            GetCurrentUserRequest(authorization=authorization)
        )
    except AuthenticationError as e:
        logger.info(f"Rejected request to {request.url.path}: {e.kind}")
        raise unauthorized(e)


CurrentUser = Annotated[User, Depends(require_user)]

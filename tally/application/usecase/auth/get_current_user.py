"""Get current user use case."""

from pydantic import BaseModel

from tally.domain.model import User
from tally.domain.service import SessionGuard

from ..base import BaseUseCase


class GetCurrentUserRequest(BaseModel):
    """Get current user request."""

    authorization: str | None = None  # Raw Authorization header


class GetCurrentUserUseCase(BaseUseCase[GetCurrentUserRequest, User]):
    """Use case for resolving the authenticated user of a request."""

    def __init__(self, session_guard: SessionGuard) -> None:
        self.session_guard = session_guard

    async def execute(self, request: GetCurrentUserRequest) -> User:
        """Resolve the bearer header to a user.

        Raises:
            MissingTokenError: If no token is presented
            InvalidTokenError: If the token is invalid or expired
            UnknownUserError: If the user no longer exists
        """
        return await self.session_guard.authenticate(request.authorization)

"""Out-of-band token verification use case."""

from pydantic import BaseModel

from tally.domain.error import MissingTokenError
from tally.domain.service import SessionGuard

from ..base import BaseUseCase


class VerifyTokenRequest(BaseModel):
    """Token handed back by a popup handshake."""

    token: str | None = None


class VerifyTokenResponse(BaseModel):
    """Verification result."""

    success: bool
    message: str
    user_id: str


class VerifyTokenUseCase(BaseUseCase[VerifyTokenRequest, VerifyTokenResponse]):
    """Check that a token is valid and still belongs to a user."""

    def __init__(self, session_guard: SessionGuard) -> None:
        self.session_guard = session_guard

    async def execute(self, request: VerifyTokenRequest) -> VerifyTokenResponse:
        """Verify the token.

        Raises:
            MissingTokenError: If no token was sent
            InvalidTokenError: If verification fails
            UnknownUserError: If the token's user does not exist
        """
        if not request.token:
            raise MissingTokenError()

        user = await self.session_guard.resolve_token(request.token)
        return VerifyTokenResponse(
            success=True, message="Token is valid", user_id=str(user.id)
        )

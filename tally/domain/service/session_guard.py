"""Bearer-token session guard."""

from uuid import UUID

import logfire

from tally.domain.error import (
    InvalidTokenError,
    MissingTokenError,
    NotFoundError,
    UnknownUserError,
)
from tally.domain.model import User
from tally.domain.value import UserId
from tally.util.jwt import JWTError, TokenExpiredError

from .base import Service
from .jwt_service import JWTService
from .user_service import UserService

BEARER_SCHEME = "bearer"


class SessionGuard(Service):
    """Resolves an ``Authorization`` header to the authenticated user."""

    def __init__(self, jwt_service: JWTService, user_service: UserService) -> None:
        self.jwt_service = jwt_service
        self.user_service = user_service

    @staticmethod
    def extract_token(authorization: str | None) -> str | None:
        """Pull the token out of a ``Bearer <token>`` header value."""
        if not authorization:
            return None
        value = authorization.strip()
        scheme, _, credentials = value.partition(" ")
        if scheme.lower() == BEARER_SCHEME:
            value = credentials.strip()
        return value or None

    async def authenticate(self, authorization: str | None) -> User:
        """Authenticate a request from its bearer header.

        Args:
            authorization: Raw ``Authorization`` header, if any

        Returns:
            The user the token was issued to

        Raises:
            MissingTokenError: No token was presented
            InvalidTokenError: Verification failed, including expiry
            UnknownUserError: Token is valid but the user no longer exists
        """
        token = self.extract_token(authorization)
        if token is None:
            raise MissingTokenError()
        return await self.resolve_token(token)

    async def resolve_token(self, token: str) -> User:
        """Verify a raw token and load its user."""
        with logfire.span("session_guard.resolve_token"):
            try:
                payload = self.jwt_service.verify_token(token)
            except TokenExpiredError:
                raise InvalidTokenError("token has expired", expired=True)
            except JWTError:
                raise InvalidTokenError("signature verification failed")

            try:
                user_id = UserId(UUID(payload.user_id))
            except ValueError:
                raise InvalidTokenError("malformed user id")

            try:
                return await self.user_service.get_by_id(user_id)
            except NotFoundError:
                raise UnknownUserError(payload.user_id)

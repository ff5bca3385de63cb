"""Password login use case."""

import logfire
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tally.domain.error import InvalidCredentialsError, ValidationError
from tally.domain.service import JWTService, UserService
from tally.domain.value import Email
from tally.util.password import verify_password

from ..base import BaseUseCase
from .user_info import UserInfo


class LoginRequest(BaseModel):
    """Email and password credentials."""

    email: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    """Login response."""

    message: str
    token: str
    user: UserInfo


class LoginUseCase(BaseUseCase[LoginRequest, LoginResponse]):
    """Use case for email/password login.

    Accounts created through Google carry a random password nobody knows, so
    they cannot sign in here until a password is set.
    """

    def __init__(self, jwt_service: JWTService, user_service: UserService) -> None:
        """Initialize login use case.

        Args:
            jwt_service: JWT token domain service
            user_service: User domain service
        """
        self.jwt_service = jwt_service
        self.user_service = user_service

    async def execute(self, request: LoginRequest) -> LoginResponse:
        """Check credentials and issue a token.

        Raises:
            ValidationError: If the email is malformed or password missing
            InvalidCredentialsError: If no user matches or the password is wrong
        """
        try:
            email = Email(request.email)
        except PydanticValidationError:
            raise ValidationError("Please enter a valid email")
        if not request.password:
            raise ValidationError("Password is required")

        with logfire.span("login_user", email=email.root):
            user = await self.user_service.get_user_by_email(email)
            if not user or not verify_password(request.password, user.password_hash):
                logfire.warn("Login rejected", email=email.root)
                raise InvalidCredentialsError()

            token = self.jwt_service.create_token(str(user.id))
            logfire.info("User logged in", user_id=str(user.id))

        return LoginResponse(
            message="Login successful", token=token, user=UserInfo.from_user(user)
        )

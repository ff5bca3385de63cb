"""Password registration use case."""

from uuid import uuid4

import logfire
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tally.domain.error import DuplicateIdentityError, ValidationError
from tally.domain.model import User
from tally.domain.service import JWTService, UserService
from tally.domain.value import Email, UserId, Username
from tally.util.password import hash_password

from ..base import BaseUseCase
from .user_info import UserInfo

MIN_PASSWORD_LENGTH = 6


def _first_error(error: PydanticValidationError) -> str:
    """Message of the first failed check, without pydantic's prefix."""
    message = error.errors()[0]["msg"]
    return message.removeprefix("Value error, ")


class RegisterRequest(BaseModel):
    """Registration form."""

    username: str = ""
    email: str = ""
    password: str = ""


class RegisterResponse(BaseModel):
    """Registration response."""

    message: str
    token: str
    user: UserInfo


class RegisterUseCase(BaseUseCase[RegisterRequest, RegisterResponse]):
    """Create a password account and sign it in."""

    def __init__(self, jwt_service: JWTService, user_service: UserService) -> None:
        self.jwt_service = jwt_service
        self.user_service = user_service

    def _validate(self, request: RegisterRequest) -> tuple[Username, Email]:
        errors: list[str] = []
        username = email = None
        try:
            username = Username(request.username)
        except PydanticValidationError as e:
            errors.append(_first_error(e))
        try:
            email = Email(request.email)
        except PydanticValidationError as e:
            errors.append(_first_error(e))
        if len(request.password) < MIN_PASSWORD_LENGTH:
            errors.append(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        if errors or username is None or email is None:
            raise ValidationError("; ".join(errors))
        return username, email

    async def execute(self, request: RegisterRequest) -> RegisterResponse:
        """Register a new user.

        Raises:
            ValidationError: If a field is malformed
            DuplicateIdentityError: If the email or username is taken
        """
        username, email = self._validate(request)

        with logfire.span("register_user", username=username.root):
            if await self.user_service.get_user_by_email(email):
                raise DuplicateIdentityError("email")
            if await self.user_service.get_user_by_username(username):
                raise DuplicateIdentityError("username")

            user = User(
                id=UserId(uuid4()),
                username=username,
                email=email,
                password_hash=hash_password(request.password),
            )
            token = self.jwt_service.create_token(str(user.id))
            saved = await self.user_service.save(user)

            logfire.info("User registered", user_id=str(saved.id))

        return RegisterResponse(
            message="User registered successfully",
            token=token,
            user=UserInfo.from_user(saved),
        )

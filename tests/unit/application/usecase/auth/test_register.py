"""Unit tests for RegisterUseCase."""

from dishka import AsyncContainer
import pytest

from tally.application.usecase.auth import RegisterUseCase
from tally.application.usecase.auth.register import RegisterRequest
from tally.domain.error import DuplicateIdentityError, ValidationError
from tally.domain.service import JWTService, UserService
from tally.domain.value import Email
from tally.util.password import verify_password
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


class TestRegisterUseCase:
    """Tests for RegisterUseCase."""

    @pytest.mark.asyncio
    async def test_register_creates_user_with_hashed_password(
        self, unit_env: AsyncContainer
    ):
        # Arrange
        use_case = await unit_env.get(RegisterUseCase)
        user_service = await unit_env.get(UserService)
        jwt_service = await unit_env.get(JWTService)

        # Act
        response = await use_case.execute(
            RegisterRequest(
                username="alice", email="Alice@Example.com", password="secret1"
            )
        )

        # Assert
        assert response.message == "User registered successfully"
        assert response.user.email == "alice@example.com"
        saved = await user_service.get_user_by_email(Email("alice@example.com"))
        assert saved is not None
        assert saved.password_hash != "secret1"
        assert verify_password("secret1", saved.password_hash)
        assert jwt_service.verify_token(response.token).user_id == str(saved.id)

    @pytest.mark.asyncio
    async def test_duplicate_email_is_rejected(self, unit_env: AsyncContainer):
        # Arrange
        use_case = await unit_env.get(RegisterUseCase)
        await use_case.execute(
            RegisterRequest(username="alice", email="alice@example.com", password="secret1")
        )

        # Act & Assert
        with pytest.raises(DuplicateIdentityError, match="Email already registered"):
            await use_case.execute(
                RegisterRequest(
                    username="alice2", email="ALICE@example.com", password="secret1"
                )
            )

    @pytest.mark.asyncio
    async def test_duplicate_username_is_rejected(self, unit_env: AsyncContainer):
        use_case = await unit_env.get(RegisterUseCase)
        await use_case.execute(
            RegisterRequest(username="alice", email="alice@example.com", password="secret1")
        )

        with pytest.raises(DuplicateIdentityError, match="Username already taken"):
            await use_case.execute(
                RegisterRequest(
                    username="alice", email="other@example.com", password="secret1"
                )
            )

    @pytest.mark.asyncio
    async def test_invalid_fields_are_reported_together(
        self, unit_env: AsyncContainer
    ):
        """Every failing field contributes a readable message."""
        # Arrange
        use_case = await unit_env.get(RegisterUseCase)

        # Act
        with pytest.raises(ValidationError) as exc_info:
            await use_case.execute(
                RegisterRequest(username="al", email="nope", password="123")
            )

        # Assert
        message = str(exc_info.value)
        assert "Username must be between 3 and 20 characters" in message
        assert "Please enter a valid email" in message
        assert "Password must be at least 6 characters" in message

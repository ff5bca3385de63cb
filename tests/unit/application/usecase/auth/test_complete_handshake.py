"""Unit tests for CompleteHandshakeUseCase."""

from uuid import uuid4

from dishka import AsyncContainer
import pytest

from tally.adapter.error import ProviderDeniedError
from tally.adapter.google import GoogleOAuthClient
from tally.application.usecase.auth import CompleteHandshakeUseCase
from tally.application.usecase.auth.complete_handshake import (
    CompleteHandshakeRequest,
    Resolution,
)
from tally.domain.error import DuplicateIdentityError, UnverifiedEmailError
from tally.domain.model import User
from tally.domain.repository import UserRepository
from tally.domain.service import JWTService, UserService
from tally.domain.value import Email, UserId, Username
from tally.util.jwt import JWTError
from tally.util.password import hash_password, verify_password
from tests.harness import create_env_fixture, make_profile

# Unit test fixture
unit_env = create_env_fixture()


def _callback(code: str = "auth-code-123") -> CompleteHandshakeRequest:
    return CompleteHandshakeRequest(callback_params={"code": code, "state": "s"})


class TestCompleteHandshakeUseCase:
    """Tests for CompleteHandshakeUseCase."""

    @pytest.mark.asyncio
    async def test_first_handshake_creates_user(self, unit_env: AsyncContainer):
        """An unknown Google identity creates a fresh account."""
        # Arrange
        google = await unit_env.get(GoogleOAuthClient)
        google.profile = make_profile()
        use_case = await unit_env.get(CompleteHandshakeUseCase)
        user_service = await unit_env.get(UserService)
        jwt_service = await unit_env.get(JWTService)

        # Act
        response = await use_case.execute(_callback())

        # Assert
        assert response.resolution is Resolution.CREATED
        assert response.user.email == "alice@example.com"
        assert response.user.username.startswith("alicesmith")
        assert response.user.profile_picture == "https://example.com/alice.png"

        saved = await user_service.get_user_by_external_id("google-sub-1")
        assert saved is not None
        assert str(saved.id) == response.user.id
        assert saved.password_hash is not None
        assert jwt_service.verify_token(response.token).user_id == str(saved.id)

    @pytest.mark.asyncio
    async def test_created_user_cannot_sign_in_with_empty_password(
        self, unit_env: AsyncContainer
    ):
        """The random password on federated accounts is never guessable."""
        # Arrange
        google = await unit_env.get(GoogleOAuthClient)
        google.profile = make_profile()
        use_case = await unit_env.get(CompleteHandshakeUseCase)
        user_service = await unit_env.get(UserService)

        # Act
        await use_case.execute(_callback())

        # Assert
        saved = await user_service.get_user_by_email(Email("alice@example.com"))
        assert saved is not None
        assert not verify_password("", saved.password_hash)
        assert not verify_password("password", saved.password_hash)

    @pytest.mark.asyncio
    async def test_second_handshake_reuses_account_unchanged(
        self, unit_env: AsyncContainer
    ):
        """A known external id signs in without modifying the account."""
        # Arrange
        google = await unit_env.get(GoogleOAuthClient)
        google.profile = make_profile()
        use_case = await unit_env.get(CompleteHandshakeUseCase)
        user_service = await unit_env.get(UserService)
        first = await use_case.execute(_callback())
        before = await user_service.get_user_by_external_id("google-sub-1")

        # Act
        second = await use_case.execute(_callback())

        # Assert
        assert second.resolution is Resolution.EXISTING
        assert second.user.id == first.user.id
        after = await user_service.get_user_by_external_id("google-sub-1")
        assert after == before

    @pytest.mark.asyncio
    async def test_matching_email_links_existing_password_account(
        self, unit_env: AsyncContainer
    ):
        """A password account with the same email gets the Google identity."""
        # Arrange
        user_service = await unit_env.get(UserService)
        existing = await user_service.save(
            User(
                id=UserId(uuid4()),
                username=Username("alice"),
                email=Email("alice@example.com"),
                password_hash=hash_password("secret1"),
            )
        )
        google = await unit_env.get(GoogleOAuthClient)
        google.profile = make_profile(email="Alice@Example.com")
        use_case = await unit_env.get(CompleteHandshakeUseCase)

        # Act
        response = await use_case.execute(_callback())

        # Assert
        assert response.resolution is Resolution.LINKED
        assert response.user.id == str(existing.id)
        assert response.user.username == "alice"

        linked = await user_service.get_by_id(existing.id)
        assert linked.external_id == "google-sub-1"
        assert linked.profile_picture == "https://example.com/alice.png"
        assert verify_password("secret1", linked.password_hash)

    @pytest.mark.asyncio
    async def test_unverified_email_is_not_linked(self, unit_env: AsyncContainer):
        """Only a provider-verified email may attach to an existing account."""
        # Arrange
        user_service = await unit_env.get(UserService)
        existing = await user_service.save(
            User(
                id=UserId(uuid4()),
                username=Username("alice"),
                email=Email("alice@example.com"),
                password_hash=hash_password("secret1"),
            )
        )
        google = await unit_env.get(GoogleOAuthClient)
        google.profile = make_profile(email_verified=False)
        use_case = await unit_env.get(CompleteHandshakeUseCase)

        # Act / Assert
        with pytest.raises(UnverifiedEmailError):
            await use_case.execute(_callback())

        unchanged = await user_service.get_by_id(existing.id)
        assert unchanged.external_id is None

    @pytest.mark.asyncio
    async def test_unverified_email_still_creates_new_account(
        self, unit_env: AsyncContainer
    ):
        google = await unit_env.get(GoogleOAuthClient)
        google.profile = make_profile(email_verified=False)
        use_case = await unit_env.get(CompleteHandshakeUseCase)

        response = await use_case.execute(_callback())

        assert response.resolution is Resolution.CREATED

    @pytest.mark.asyncio
    async def test_same_display_name_yields_distinct_usernames(
        self, unit_env: AsyncContainer
    ):
        """Two new users named alike both get a free username."""
        # Arrange
        google = await unit_env.get(GoogleOAuthClient)
        google.profiles["code-a"] = make_profile(
            external_id="sub-a", email="alice.a@example.com"
        )
        google.profiles["code-b"] = make_profile(
            external_id="sub-b", email="alice.b@example.com"
        )
        use_case = await unit_env.get(CompleteHandshakeUseCase)

        # Act
        first = await use_case.execute(_callback("code-a"))
        second = await use_case.execute(_callback("code-b"))

        # Assert
        assert first.user.id != second.user.id
        assert first.user.username != second.user.username

    @pytest.mark.asyncio
    async def test_missing_display_name_uses_email_local_part(
        self, unit_env: AsyncContainer
    ):
        google = await unit_env.get(GoogleOAuthClient)
        google.profile = make_profile(email="carol@example.com", display_name=None)
        use_case = await unit_env.get(CompleteHandshakeUseCase)

        response = await use_case.execute(_callback())

        assert response.user.username.startswith("carol")

    @pytest.mark.asyncio
    async def test_provider_denial_propagates(self, unit_env: AsyncContainer):
        """A denied consent is a provider error, not a user write."""
        # Arrange
        use_case = await unit_env.get(CompleteHandshakeUseCase)
        repository = await unit_env.get(UserRepository)

        # Act & Assert
        with pytest.raises(ProviderDeniedError):
            await use_case.execute(
                CompleteHandshakeRequest(callback_params={"error": "access_denied"})
            )
        assert repository.count() == 0

    @pytest.mark.asyncio
    async def test_conflict_during_create_retries_once(
        self, unit_env: AsyncContainer, monkeypatch
    ):
        """A concurrent create for the same identity resolves to that account."""
        # Arrange
        google = await unit_env.get(GoogleOAuthClient)
        google.profile = make_profile()
        use_case = await unit_env.get(CompleteHandshakeUseCase)
        repository = await unit_env.get(UserRepository)
        original_save = repository.save
        concurrent_user = User(
            id=UserId(uuid4()),
            username=Username("alicesmith0001"),
            email=Email("alice@example.com"),
            external_id="google-sub-1",
        )
        calls = []

        async def racing_save(user: User) -> User:
            calls.append(user)
            if len(calls) == 1:
                # Another request wins the race before our insert lands
                await original_save(concurrent_user)
            return await original_save(user)

        monkeypatch.setattr(repository, "save", racing_save)

        # Act
        response = await use_case.execute(_callback())

        # Assert
        assert len(calls) == 1
        assert response.resolution is Resolution.EXISTING
        assert response.user.id == str(concurrent_user.id)
        assert repository.count() == 1

    @pytest.mark.asyncio
    async def test_persistent_conflict_fails_after_one_retry(
        self, unit_env: AsyncContainer, monkeypatch
    ):
        # Arrange
        google = await unit_env.get(GoogleOAuthClient)
        google.profile = make_profile()
        use_case = await unit_env.get(CompleteHandshakeUseCase)
        repository = await unit_env.get(UserRepository)
        calls = []

        async def always_conflicting(user: User) -> User:
            calls.append(user)
            raise DuplicateIdentityError("username")

        monkeypatch.setattr(repository, "save", always_conflicting)

        # Act & Assert
        with pytest.raises(DuplicateIdentityError):
            await use_case.execute(_callback())
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_token_failure_writes_nothing(
        self, unit_env: AsyncContainer, monkeypatch
    ):
        """If no token can be minted, no account is created."""
        # Arrange
        google = await unit_env.get(GoogleOAuthClient)
        google.profile = make_profile()
        use_case = await unit_env.get(CompleteHandshakeUseCase)
        jwt_service = await unit_env.get(JWTService)
        repository = await unit_env.get(UserRepository)

        def broken_signer(user_id, issued_at=None):
            raise JWTError("JWT secret is not configured")

        monkeypatch.setattr(jwt_service, "create_token", broken_signer)

        # Act & Assert
        with pytest.raises(JWTError):
            await use_case.execute(_callback())
        assert repository.count() == 0

"""Complete federated handshake use case."""

from enum import Enum
from uuid import uuid4

import logfire
from pydantic import BaseModel

from tally.domain.error import DuplicateIdentityError, UnverifiedEmailError
from tally.domain.model import User
from tally.domain.service import AuthService, JWTService, UserService
from tally.domain.value import AuthProvider, Email, ProviderProfile, UserId
from tally.util.password import generate_unusable_password, hash_password

from ..base import BaseUseCase
from .user_info import UserInfo

# Resolution is re-run once after a unique-constraint conflict
MAX_RESOLUTION_ATTEMPTS = 2


class Resolution(str, Enum):
    """Which branch resolved the local account."""

    EXISTING = "existing"
    LINKED = "linked"
    CREATED = "created"


class CompleteHandshakeRequest(BaseModel):
    """Callback query parameters as sent by the provider."""

    callback_params: dict[str, str]


class CompleteHandshakeResponse(BaseModel):
    """Signed-in user and token to deliver to the opener window."""

    token: str
    user: UserInfo
    resolution: Resolution


class CompleteHandshakeUseCase(
    BaseUseCase[CompleteHandshakeRequest, CompleteHandshakeResponse]
):
    """Use case for finishing a Google handshake.

    The local account is resolved in order:

    1. external id match: reused unchanged
    2. email match: Google identity linked onto that account
    3. no match: a new account with a derived username

    The token is minted before anything is written, so a signing failure
    leaves the store untouched and a write failure never yields a token.
    """

    def __init__(
        self,
        auth_service: AuthService,
        jwt_service: JWTService,
        user_service: UserService,
    ) -> None:
        """Initialize complete handshake use case.

        Args:
            auth_service: Authentication domain service
            jwt_service: JWT token domain service
            user_service: User domain service
        """
        self.auth_service = auth_service
        self.jwt_service = jwt_service
        self.user_service = user_service

    async def execute(
        self, request: CompleteHandshakeRequest
    ) -> CompleteHandshakeResponse:
        """Exchange the callback for a profile and sign the user in.

        Raises:
            ProviderError: If the provider denied access or the exchange failed
            FederatedLoginDisabledError: If Google sign-in is not configured
            UnverifiedEmailError: If the email matches an existing account but
                the provider has not verified it
            DuplicateIdentityError: If a conflict persists after one retry
        """
        profile = await self.auth_service.complete_login(
            AuthProvider.GOOGLE, request.callback_params
        )

        with logfire.span(
            "complete_handshake",
            external_id=profile.external_id,
            email=profile.email,
        ):
            for attempt in range(1, MAX_RESOLUTION_ATTEMPTS + 1):
                try:
                    return await self._sign_in(profile)
                except DuplicateIdentityError as e:
                    if attempt == MAX_RESOLUTION_ATTEMPTS:
                        logfire.error(
                            "Handshake resolution conflict persisted",
                            field=e.field,
                            external_id=profile.external_id,
                        )
                        raise
                    logfire.warn(
                        "Handshake resolution conflict, retrying",
                        field=e.field,
                        external_id=profile.external_id,
                    )

        # Unreachable: the loop either returns or raises
        raise RuntimeError("handshake resolution did not complete")

    async def _sign_in(self, profile: ProviderProfile) -> CompleteHandshakeResponse:
        user, resolution = await self._resolve(profile)

        token = self.jwt_service.create_token(str(user.id))

        if resolution is not Resolution.EXISTING:
            user = await self.user_service.save(user)

        logfire.info(
            "Handshake completed",
            user_id=str(user.id),
            resolution=resolution.value,
        )

        return CompleteHandshakeResponse(
            token=token, user=UserInfo.from_user(user), resolution=resolution
        )

    async def _resolve(self, profile: ProviderProfile) -> tuple[User, Resolution]:
        """Pick (but do not persist) the account this profile signs in to."""
        existing = await self.user_service.get_user_by_external_id(profile.external_id)
        if existing:
            return existing, Resolution.EXISTING

        email = Email(profile.email)
        by_email = await self.user_service.get_user_by_email(email)
        if by_email:
            if not profile.email_verified:
                logfire.warn(
                    "Refusing to link unverified email to existing account",
                    user_id=str(by_email.id),
                    provider=profile.provider.value,
                )
                raise UnverifiedEmailError(profile.provider.value)
            return (
                by_email.link_external_identity(
                    profile.external_id, profile.profile_picture
                ),
                Resolution.LINKED,
            )

        username = await self.user_service.generate_unique_username(
            profile.display_name or email.root.split("@")[0]
        )
        user = User(
            id=UserId(uuid4()),
            username=username,
            email=email,
            password_hash=hash_password(generate_unusable_password()),
            external_id=profile.external_id,
            profile_picture=profile.profile_picture,
        )
        return user, Resolution.CREATED

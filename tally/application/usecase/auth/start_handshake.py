"""Start federated handshake use case."""

import secrets

import logfire
from pydantic import BaseModel

from tally.config import Settings
from tally.domain.service import AuthService
from tally.domain.value import AuthorizationOptions, AuthProvider, HandshakeState

from ..base import BaseUseCase

SELECT_ACCOUNT = "select_account"


class StartHandshakeRequest(BaseModel):
    """Query parameters of the handshake entry point."""

    prompt: str | None = None
    access_type: str | None = None
    include_granted_scopes: bool | None = None
    login_hint: str | None = None
    authuser: str | None = None
    approval_prompt: str | None = None
    unique: str | None = None  # Correlation id chosen by the popup opener
    force_selection: bool = False


class StartHandshakeResponse(BaseModel):
    """Where to send the popup next."""

    authorization_url: str
    unique_id: str
    prompt: str | None


class StartHandshakeUseCase(
    BaseUseCase[StartHandshakeRequest, StartHandshakeResponse]
):
    """Build the provider redirect for a new popup handshake."""

    def __init__(self, auth_service: AuthService, settings: Settings) -> None:
        self.auth_service = auth_service
        self.settings = settings

    def _options(self, request: StartHandshakeRequest) -> AuthorizationOptions:
        if request.force_selection:
            # Must re-prompt even if the provider holds a cached consent
            prompt: str | None = SELECT_ACCOUNT
        elif request.prompt:
            prompt = request.prompt
        elif request.approval_prompt:
            prompt = None
        else:
            prompt = SELECT_ACCOUNT

        return AuthorizationOptions(
            prompt=prompt,
            access_type=request.access_type or "online",
            include_granted_scopes=bool(request.include_granted_scopes),
            login_hint=request.login_hint,
            authuser=request.authuser,
            approval_prompt=request.approval_prompt,
        )

    async def execute(self, request: StartHandshakeRequest) -> StartHandshakeResponse:
        """Encode handshake state and ask the provider for its consent URL.

        The client origin in the state always comes from configuration.

        Raises:
            FederatedLoginDisabledError: If Google sign-in is not configured
        """
        unique_id = request.unique or secrets.token_urlsafe(12)
        state = HandshakeState(
            client_url=self.settings.api.frontend_url,
            unique_id=unique_id,
            force_selection=request.force_selection,
        )
        options = self._options(request)

        with logfire.span(
            "start_handshake",
            unique_id=unique_id,
            force_selection=request.force_selection,
            prompt=options.prompt,
        ):
            url = await self.auth_service.initiate_login(
                AuthProvider.GOOGLE, state.encode(), options
            )

        return StartHandshakeResponse(
            authorization_url=url, unique_id=unique_id, prompt=options.prompt
        )

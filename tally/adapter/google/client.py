"""Google OAuth 2.0 client implementation.

Authorization code flow against Google's OpenID Connect endpoints. The
callback is stateless: everything needed after the redirect travels in the
``state`` parameter, so nothing is kept per attempt here.
"""

from collections.abc import Mapping
from urllib.parse import urlencode

import httpx
import logfire
from pydantic import ValidationError

from tally.adapter.error import GoogleOAuthError, ProviderDeniedError
from tally.domain.service.auth_service import OAuthClient
from tally.domain.value import AuthorizationOptions, AuthProvider, ProviderProfile

GOOGLE_SCOPES = "openid profile email"


def _require_code(callback_params: Mapping[str, str]) -> str:
    """Return the authorization code or raise if the provider refused."""
    error = callback_params.get("error")
    if error:
        raise ProviderDeniedError(error)
    code = callback_params.get("code")
    if not code:
        raise ProviderDeniedError("missing authorization code")
    return code


def _parse_json_object(response: httpx.Response, context: str) -> dict:
    """Decode a Google response body that must be a JSON object.

    Raises:
        GoogleOAuthError: If the body is not JSON or not an object
    """
    try:
        payload = response.json()
    except ValueError:
        logfire.error("Google returned invalid JSON", context=context)
        raise GoogleOAuthError(f"Invalid JSON in {context}")

    if not isinstance(payload, dict):
        logfire.error("Google returned unexpected JSON", context=context)
        raise GoogleOAuthError(f"Invalid {context}: expected JSON object")
    return payload


class GoogleOAuthClient(OAuthClient):
    """Base class for Google OAuth clients.

    Provides type distinction for dependency injection.
    """

    pass


class RealGoogleOAuthClient(GoogleOAuthClient):
    """Google OAuth 2.0 client backed by httpx."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Google OAuth client.

        Args:
            client_id: Google OAuth client ID
            client_secret: Google OAuth client secret
            redirect_uri: Callback URL registered with Google
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.transport = transport

        # OAuth endpoints
        self.authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
        self.token_url = "https://oauth2.googleapis.com/token"
        self.user_info_url = "https://openidconnect.googleapis.com/v1/userinfo"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=30.0)

    async def initiate_authorization(
        self, state: str, options: AuthorizationOptions
    ) -> str:
        """Build the Google consent screen URL.

        Args:
            state: Encoded handshake state
            options: Prompt behaviour requested by the client

        Returns:
            Authorization URL to redirect user to
        """
        params: dict[str, str] = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": GOOGLE_SCOPES,
            "state": state,
            "access_type": options.access_type,
            "include_granted_scopes": "true" if options.include_granted_scopes else "false",
        }
        if options.prompt:
            params["prompt"] = options.prompt
        elif options.approval_prompt:
            # Google rejects approval_prompt combined with prompt
            params["approval_prompt"] = options.approval_prompt
        if options.login_hint:
            params["login_hint"] = options.login_hint
        if options.authuser:
            params["authuser"] = options.authuser

        logfire.info(
            "Google OAuth authorization initiated",
            redirect_uri=self.redirect_uri,
            prompt=options.prompt,
        )

        return f"{self.authorize_url}?{urlencode(params)}"

    async def complete_authorization(
        self, callback_params: Mapping[str, str]
    ) -> ProviderProfile:
        """Exchange the authorization code for the user's Google profile.

        Args:
            callback_params: Query parameters from the callback redirect

        Returns:
            Provider profile

        Raises:
            ProviderDeniedError: If Google reported an error or sent no code
            GoogleOAuthError: If the token or userinfo request fails
        """
        code = _require_code(callback_params)

        access_token = await self._exchange_code_for_token(code)
        user_info = await self._get_user_info(access_token)

        if not user_info.get("sub") or not user_info.get("email"):
            raise GoogleOAuthError("Google profile is missing subject or email")

        logfire.info(
            "Google OAuth completed",
            external_id=user_info["sub"],
            email=user_info["email"],
        )

        try:
            return ProviderProfile(
                provider=AuthProvider.GOOGLE,
                external_id=str(user_info["sub"]),
                email=user_info["email"],
                display_name=user_info.get("name"),
                profile_picture=user_info.get("picture"),
                # Some Google responses encode booleans as strings
                email_verified=user_info.get("email_verified") in (True, "true"),
            )
        except ValidationError as e:
            raise GoogleOAuthError(f"Unexpected Google profile fields: {e}")

    async def _exchange_code_for_token(self, code: str) -> str:
        """Exchange authorization code for access token.

        Raises:
            GoogleOAuthError: If token exchange fails
        """
        data = {
            "code": code,
            "grant_type": "authorization_code",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    self.token_url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            logfire.error("Google token exchange HTTP error", error=str(e))
            raise GoogleOAuthError(f"HTTP error during token exchange: {e}")

        if response.status_code != 200:
            logfire.error(
                "Google token exchange failed",
                status_code=response.status_code,
                error=response.text,
            )
            raise GoogleOAuthError(f"Token exchange failed: {response.status_code}")

        access_token = _parse_json_object(response, "token response").get(
            "access_token"
        )
        if not access_token:
            raise GoogleOAuthError("Token response did not include an access token")
        return access_token

    async def _get_user_info(self, access_token: str) -> dict:
        """Fetch the OpenID Connect userinfo document.

        Raises:
            GoogleOAuthError: If the request fails
        """
        try:
            async with self._client() as client:
                response = await client.get(
                    self.user_info_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logfire.error("Google userinfo HTTP error", error=str(e))
            raise GoogleOAuthError(f"HTTP error fetching user info: {e}")

        if response.status_code != 200:
            logfire.error(
                "Google userinfo request failed",
                status_code=response.status_code,
                error=response.text,
            )
            raise GoogleOAuthError(f"User info request failed: {response.status_code}")

        return _parse_json_object(response, "userinfo response")


class MockGoogleOAuthClient(GoogleOAuthClient):
    """Mock Google OAuth client for testing.

    Returns a configurable profile without making real API calls. Codes listed
    in ``profiles`` map to specific profiles; any other code yields the default.
    """

    def __init__(self, profile: ProviderProfile | None = None) -> None:
        self.profile = profile or ProviderProfile(
            provider=AuthProvider.GOOGLE,
            external_id="google-mock-123",
            email="mock.user@gmail.com",
            display_name="Mock User",
            profile_picture="https://example.com/avatar.jpg",
            email_verified=True,
        )
        self.profiles: dict[str, ProviderProfile] = {}
        self.last_options: AuthorizationOptions | None = None

    async def initiate_authorization(
        self, state: str, options: AuthorizationOptions
    ) -> str:
        self.last_options = options
        params = {"state": state, "mock": "true"}
        if options.prompt:
            params["prompt"] = options.prompt
        return f"https://accounts.google.com/o/oauth2/v2/auth?{urlencode(params)}"

    async def complete_authorization(
        self, callback_params: Mapping[str, str]
    ) -> ProviderProfile:
        code = _require_code(callback_params)
        return self.profiles.get(code, self.profile)

"""Unit tests for the Google OAuth client."""

from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from tally.adapter.error import GoogleOAuthError, ProviderDeniedError
from tally.adapter.google import RealGoogleOAuthClient
from tally.domain.value import AuthorizationOptions, AuthProvider

REDIRECT_URI = "http://localhost:8000/handshake/callback"


def _client(handler) -> RealGoogleOAuthClient:
    return RealGoogleOAuthClient(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri=REDIRECT_URI,
        transport=httpx.MockTransport(handler),
    )


def _google_handler(userinfo: dict, token_status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "oauth2.googleapis.com":
            form = parse_qs(request.content.decode())
            assert form["code"] == ["auth-code"]
            assert form["redirect_uri"] == [REDIRECT_URI]
            assert form["client_secret"] == ["client-secret"]
            if token_status != 200:
                return httpx.Response(token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "access-123"})
        assert request.headers["Authorization"] == "Bearer access-123"
        return httpx.Response(200, json=userinfo)

    return handler


class TestInitiateAuthorization:
    """Tests for building the consent URL."""

    @pytest.mark.asyncio
    async def test_url_carries_scopes_state_and_prompt(self):
        # Arrange
        client = _client(lambda request: httpx.Response(500))

        # Act
        url = await client.initiate_authorization(
            "state-123", AuthorizationOptions(login_hint="alice@example.com")
        )

        # Assert
        parts = urlsplit(url)
        query = parse_qs(parts.query)
        assert parts.netloc == "accounts.google.com"
        assert query["scope"] == ["openid profile email"]
        assert query["state"] == ["state-123"]
        assert query["prompt"] == ["select_account"]
        assert query["access_type"] == ["online"]
        assert query["include_granted_scopes"] == ["false"]
        assert query["redirect_uri"] == [REDIRECT_URI]
        assert query["login_hint"] == ["alice@example.com"]
        assert "approval_prompt" not in query

    @pytest.mark.asyncio
    async def test_approval_prompt_only_without_prompt(self):
        """Google rejects requests carrying both prompt parameters."""
        client = _client(lambda request: httpx.Response(500))

        url = await client.initiate_authorization(
            "s", AuthorizationOptions(prompt=None, approval_prompt="force")
        )

        query = parse_qs(urlsplit(url).query)
        assert query["approval_prompt"] == ["force"]
        assert "prompt" not in query


class TestCompleteAuthorization:
    """Tests for the code exchange."""

    @pytest.mark.asyncio
    async def test_exchange_returns_profile(self):
        # Arrange
        client = _client(
            _google_handler(
                {
                    "sub": "1234567890",
                    "email": "alice@example.com",
                    "name": "Alice Smith",
                    "picture": "https://example.com/alice.png",
                    "email_verified": True,
                }
            )
        )

        # Act
        profile = await client.complete_authorization({"code": "auth-code"})

        # Assert
        assert profile.provider is AuthProvider.GOOGLE
        assert profile.external_id == "1234567890"
        assert profile.email == "alice@example.com"
        assert profile.display_name == "Alice Smith"
        assert profile.email_verified

    @pytest.mark.asyncio
    async def test_provider_error_param_is_denial(self):
        client = _client(lambda request: httpx.Response(500))

        with pytest.raises(ProviderDeniedError):
            await client.complete_authorization({"error": "access_denied"})

    @pytest.mark.asyncio
    async def test_missing_code_is_denial(self):
        client = _client(lambda request: httpx.Response(500))

        with pytest.raises(ProviderDeniedError):
            await client.complete_authorization({"state": "abc"})

    @pytest.mark.asyncio
    async def test_failed_token_exchange_raises(self):
        client = _client(_google_handler({}, token_status=400))

        with pytest.raises(GoogleOAuthError):
            await client.complete_authorization({"code": "auth-code"})

    @pytest.mark.asyncio
    async def test_profile_without_email_raises(self):
        client = _client(_google_handler({"sub": "1234567890"}))

        with pytest.raises(GoogleOAuthError):
            await client.complete_authorization({"code": "auth-code"})

    @pytest.mark.asyncio
    async def test_network_failure_raises(self):
        """Transport errors surface as provider errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)

        with pytest.raises(GoogleOAuthError):
            await client.complete_authorization({"code": "auth-code"})

    @pytest.mark.asyncio
    async def test_non_json_token_response_raises(self):
        """A proxy error page in place of JSON is a provider error."""

        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        client = _client(handler)

        # Act / Assert
        with pytest.raises(GoogleOAuthError):
            await client.complete_authorization({"code": "auth-code"})

    @pytest.mark.asyncio
    async def test_userinfo_that_is_not_an_object_raises(self):
        client = _client(_google_handler(["1234567890", "alice@example.com"]))

        with pytest.raises(GoogleOAuthError):
            await client.complete_authorization({"code": "auth-code"})

    @pytest.mark.asyncio
    async def test_string_email_verified_is_honoured(self):
        client = _client(
            _google_handler(
                {"sub": "1", "email": "alice@example.com", "email_verified": "false"}
            )
        )

        profile = await client.complete_authorization({"code": "auth-code"})

        assert not profile.email_verified

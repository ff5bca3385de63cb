"""End-to-end tests for the Google popup handshake."""

from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient

from tally.adapter.google import GoogleOAuthClient
from tally.domain.value import HandshakeState
from tests.harness import build_test_app, make_profile, resolve


@pytest.fixture
def client():
    """Create test client backed by in-memory persistence and mock Google."""
    with TestClient(build_test_app()) as test_client:
        yield test_client


@pytest.fixture
def google(client):
    """The mock Google client the app is wired to."""
    return resolve(client, GoogleOAuthClient)


def _start(client: TestClient, **params) -> str:
    """Run /handshake/start and return the encoded state sent to Google."""
    response = client.get("/handshake/start", params=params, follow_redirects=False)
    assert response.status_code == 302
    return parse_qs(urlsplit(response.headers["location"]).query)["state"][0]


class TestHandshakeStart:
    def test_start_redirects_to_google(self, client):
        # Act
        response = client.get(
            "/handshake/start", params={"unique": "abc123"}, follow_redirects=False
        )

        # Assert
        location = response.headers["location"]
        query = parse_qs(urlsplit(location).query)
        assert response.status_code == 302
        assert location.startswith("https://accounts.google.com/")
        assert query["prompt"] == ["select_account"]
        state = HandshakeState.decode(query["state"][0])
        assert state is not None
        assert state.unique_id == "abc123"
        assert state.client_url == "http://localhost:3000"

    def test_force_selection_is_recorded_in_state(self, client, google):
        state = HandshakeState.decode(
            _start(client, unique="abc123", prompt="none", force_selection="true")
        )

        assert state is not None
        assert state.force_selection is True
        assert google.last_options.prompt == "select_account"


class TestHandshakeCallback:
    """Callback outcomes as seen by the popup."""

    def test_new_user_receives_token_page(self, client, google):
        # Arrange
        google.profile = make_profile()
        state = _start(client, unique="abc123")

        # Act
        response = client.get(
            "/handshake/callback", params={"code": "auth-code", "state": state}
        )

        # Assert
        body = response.text
        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "no-store"
        assert response.headers["Cross-Origin-Opener-Policy"] == "unsafe-none"
        assert '"token": "' in body
        assert '"uniqueId": "abc123"' in body
        assert '"email": "alice@example.com"' in body
        assert '"http://localhost:3000"' in body

    def test_federated_account_cannot_use_password_login(self, client, google):
        """Accounts created through Google have no usable password."""
        # Arrange
        google.profile = make_profile()
        state = _start(client)
        client.get("/handshake/callback", params={"code": "auth-code", "state": state})

        # Act
        response = client.post(
            "/auth/login", json={"email": "alice@example.com", "password": "secret1"}
        )

        # Assert
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid credentials"

    def test_repeat_handshake_resolves_same_account(self, client, google):
        # Arrange
        google.profile = make_profile()

        # Act
        first = client.get(
            "/handshake/callback", params={"code": "c1", "state": _start(client)}
        )
        second = client.get(
            "/handshake/callback", params={"code": "c2", "state": _start(client)}
        )

        # Assert
        assert first.status_code == second.status_code == 200
        first_user = first.text.split('"user": {"id": "')[1].split('"')[0]
        second_user = second.text.split('"user": {"id": "')[1].split('"')[0]
        assert first_user == second_user

    def test_handshake_links_password_account(self, client, google):
        """Google sign-in with a registered email signs into that account."""
        # Arrange
        registered = client.post(
            "/auth/register",
            json={
                "username": "alice",
                "email": "alice@example.com",
                "password": "secret1",
            },
        ).json()
        google.profile = make_profile()

        # Act
        response = client.get(
            "/handshake/callback", params={"code": "c1", "state": _start(client)}
        )

        # Assert
        assert f'"id": "{registered["user"]["id"]}"' in response.text
        login = client.post(
            "/auth/login", json={"email": "alice@example.com", "password": "secret1"}
        )
        assert login.status_code == 200

    def test_unverified_email_is_not_linked_to_password_account(
        self, client, google
    ):
        """An unverified Google email cannot take over a registered account."""
        # Arrange
        client.post(
            "/auth/register",
            json={
                "username": "alice",
                "email": "alice@example.com",
                "password": "secret1",
            },
        )
        google.profile = make_profile(email_verified=False)

        # Act
        response = client.get(
            "/handshake/callback",
            params={"code": "c1", "state": _start(client)},
            follow_redirects=False,
        )

        # Assert
        assert response.status_code == 302
        assert response.headers["location"].startswith("/handshake/cancel?")

    def test_token_from_callback_opens_protected_route(self, client, google):
        # Arrange
        google.profile = make_profile()
        response = client.get(
            "/handshake/callback", params={"code": "c1", "state": _start(client)}
        )
        token = response.text.split('"token": "')[1].split('"')[0]

        # Act
        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        # Assert
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "alice@example.com"

    def test_provider_denial_redirects_to_cancel(self, client):
        state = _start(client, unique="abc123")

        response = client.get(
            "/handshake/callback",
            params={"error": "access_denied", "state": state},
            follow_redirects=False,
        )

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("/handshake/cancel?")
        assert parse_qs(urlsplit(location).query)["state"] == [state]

    def test_cancel_page_posts_cancelled(self, client):
        state = _start(client, unique="abc123")

        response = client.get("/handshake/cancel", params={"state": state})

        assert response.status_code == 200
        assert '{"cancelled": true, "uniqueId": "abc123"}' in response.text

    def test_internal_failure_renders_500_page(self, client, google, monkeypatch):
        """Resolution errors never leak a token to the opener."""
        # Arrange
        google.profile = make_profile()
        state = _start(client, unique="abc123")

        async def broken(self, profile):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(
            "tally.application.usecase.auth.complete_handshake."
            "CompleteHandshakeUseCase._resolve",
            broken,
        )

        # Act
        response = client.get(
            "/handshake/callback", params={"code": "c1", "state": state}
        )

        # Assert
        assert response.status_code == 500
        assert '"token"' not in response.text
        assert '"cancelled": true' in response.text


class TestGoogleDisabled:
    """Federated login without Google credentials."""

    @pytest.fixture
    def disabled_client(self, google_disabled):
        with TestClient(build_test_app()) as test_client:
            yield test_client

    def test_configured_check_reports_disabled(self, disabled_client):
        response = disabled_client.get("/auth/configured-check")

        assert response.status_code == 200
        assert response.json() == {
            "configured": False,
            "callbackUrl": "http://localhost:8000/handshake/callback",
        }

    def test_start_returns_503(self, disabled_client):
        response = disabled_client.get("/handshake/start", follow_redirects=False)

        assert response.status_code == 503
        assert "not configured" in response.json()["detail"]

    def test_configured_check_reports_enabled(self, client):
        response = client.get("/auth/configured-check")

        assert response.json()["configured"] is True

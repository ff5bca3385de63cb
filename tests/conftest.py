"""Test configuration and fixtures."""

import logfire
import pytest

# Keep spans local during tests
logfire.configure(send_to_logfire=False, console=False)

TEST_GOOGLE_CLIENT_ID = "test-client-id.apps.googleusercontent.com"
TEST_GOOGLE_CLIENT_SECRET = "test-client-secret"


@pytest.fixture(autouse=True)
def test_settings_env(monkeypatch):
    """Run every test against the "test" environment with Google enabled."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("HOST", "localhost")
    monkeypatch.setenv("FRONTEND_HOST", "localhost")
    monkeypatch.delenv("AUTH__JWT_SECRET", raising=False)
    monkeypatch.setenv("AUTH__GOOGLE__CLIENT_ID", TEST_GOOGLE_CLIENT_ID)
    monkeypatch.setenv("AUTH__GOOGLE__CLIENT_SECRET", TEST_GOOGLE_CLIENT_SECRET)


@pytest.fixture
def google_disabled(monkeypatch):
    """Remove Google credentials so federated login is disabled."""
    monkeypatch.delenv("AUTH__GOOGLE__CLIENT_ID", raising=False)
    monkeypatch.delenv("AUTH__GOOGLE__CLIENT_SECRET", raising=False)

"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from tally.config import AuthSettings, Settings
from tally.domain.value import AuthCapabilities
from tally.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file automatically.
    """

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings from environment."""
        return Settings()

    @provide(scope=Scope.APP)
    def provide_auth_settings(self, settings: Settings) -> AuthSettings:
        """Provide auth settings."""
        return settings.auth

    @provide(scope=Scope.APP)
    def provide_auth_capabilities(self, settings: Settings) -> AuthCapabilities:
        """Decide once at startup which sign-in methods are available."""
        return AuthCapabilities(
            federated_login_enabled=settings.auth.google.configured,
            callback_url=settings.auth.google_callback_url,
        )

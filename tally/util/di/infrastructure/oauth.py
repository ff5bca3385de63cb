"""OAuth infrastructure provider for federated authentication."""

from dishka import Scope, provide

from tally.adapter.google.client import GoogleOAuthClient
from tally.domain.service.auth_service import OAuthClient
from tally.domain.value import AuthCapabilities, AuthProvider
from tally.util.di.base import ProviderBase


class OAuthAggregatorProvider(ProviderBase):
    """Provider that aggregates the enabled OAuth clients into a dictionary."""

    scope = Scope.APP

    @provide(scope=Scope.APP)
    def get_oauth_clients(
        self,
        capabilities: AuthCapabilities,
        google_oauth_client: GoogleOAuthClient,
    ) -> dict[AuthProvider, OAuthClient]:
        """Provide dictionary of enabled OAuth clients by provider.

        Args:
            capabilities: Sign-in methods enabled at startup
            google_oauth_client: Google OAuth client (specific type)

        Returns:
            Dictionary mapping AuthProvider to OAuthClient
        """
        if not capabilities.federated_login_enabled:
            return {}
        return {AuthProvider.GOOGLE: google_oauth_client}

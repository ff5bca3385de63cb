"""Federated authentication domain service."""

from collections.abc import Mapping

from tally.domain.error import FederatedLoginDisabledError
from tally.domain.value import (
    AuthCapabilities,
    AuthorizationOptions,
    AuthProvider,
    ProviderProfile,
)

from .base import Service


class OAuthClient:
    """Interface implemented once per identity provider."""

    async def initiate_authorization(
        self, state: str, options: AuthorizationOptions
    ) -> str:
        """Build the provider authorization URL.

        Args:
            state: Opaque state parameter echoed back on callback
            options: Provider prompt behaviour

        Returns:
            Authorization URL to redirect user to
        """
        raise NotImplementedError

    async def complete_authorization(
        self, callback_params: Mapping[str, str]
    ) -> ProviderProfile:
        """Exchange callback parameters for the end user's profile.

        Args:
            callback_params: Query parameters the provider redirected back with

        Returns:
            Provider profile

        Raises:
            ProviderDeniedError: If the provider reported a failure or denial
            ProviderError: If the exchange with the provider fails
        """
        raise NotImplementedError


class AuthService(Service):
    """Routes federated login steps to the configured provider client."""

    def __init__(
        self,
        oauth_clients: dict[AuthProvider, OAuthClient],
        capabilities: AuthCapabilities,
    ) -> None:
        """Initialize auth service.

        Args:
            oauth_clients: Map of provider to OAuth client implementation
            capabilities: Features enabled at startup
        """
        self.oauth_clients = oauth_clients
        self.capabilities = capabilities

    def _client_for(self, provider: AuthProvider) -> OAuthClient:
        client = self.oauth_clients.get(provider)
        if not self.capabilities.federated_login_enabled or client is None:
            raise FederatedLoginDisabledError(provider.value.capitalize())
        return client

    async def initiate_login(
        self, provider: AuthProvider, state: str, options: AuthorizationOptions
    ) -> str:
        """Return the provider authorization URL.

        Raises:
            FederatedLoginDisabledError: If the provider is not configured
        """
        return await self._client_for(provider).initiate_authorization(state, options)

    async def complete_login(
        self, provider: AuthProvider, callback_params: Mapping[str, str]
    ) -> ProviderProfile:
        """Complete the provider leg of the handshake.

        Raises:
            FederatedLoginDisabledError: If the provider is not configured
        """
        return await self._client_for(provider).complete_authorization(callback_params)

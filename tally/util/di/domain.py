"""Domain layer DI providers."""

from dishka import Scope, provide

from tally.config import AuthSettings
from tally.domain.repository import UserRepository
from tally.domain.service import (
    AuthService,
    JWTService,
    OAuthClient,
    SessionGuard,
    UserService,
)
from tally.domain.value import AuthCapabilities, AuthProvider
from tally.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    Each HTTP request gets fresh service instances with their own transaction.
    """

    scope = Scope.REQUEST

    @provide
    def get_auth_service(
        self,
        oauth_clients: dict[AuthProvider, OAuthClient],
        capabilities: AuthCapabilities,
    ) -> AuthService:
        """Provide federated authentication domain service.

        Args:
            oauth_clients: Dictionary mapping providers to their OAuth clients
            capabilities: Sign-in methods enabled at startup

        Returns:
            AuthService configured with all available OAuth clients
        """
        return AuthService(oauth_clients=oauth_clients, capabilities=capabilities)

    @provide
    def get_jwt_service(self, auth_settings: AuthSettings) -> JWTService:
        """Provide JWT token domain service."""
        return JWTService(auth_settings=auth_settings)

    @provide
    def get_user_service(self, user_repository: UserRepository) -> UserService:
        """Provide user domain service."""
        return UserService(user_repository=user_repository)

    @provide
    def get_session_guard(
        self, jwt_service: JWTService, user_service: UserService
    ) -> SessionGuard:
        """Provide bearer-token session guard."""
        return SessionGuard(jwt_service=jwt_service, user_service=user_service)

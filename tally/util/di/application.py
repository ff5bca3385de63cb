"""Application layer DI providers."""

from dishka import Scope, provide

from tally.application.usecase.auth import (
    CompleteHandshakeUseCase,
    GetCurrentUserUseCase,
    LoginUseCase,
    RegisterUseCase,
    StartHandshakeUseCase,
    VerifyTokenUseCase,
)
from tally.config import Settings
from tally.domain.service import AuthService, JWTService, SessionGuard, UserService
from tally.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    # Handshake use cases
    @provide(scope=Scope.REQUEST)
    def get_start_handshake_use_case(
        self, auth_service: AuthService, settings: Settings
    ) -> StartHandshakeUseCase:
        """Provide start handshake use case."""
        return StartHandshakeUseCase(auth_service=auth_service, settings=settings)

    @provide(scope=Scope.REQUEST)
    def get_complete_handshake_use_case(
        self,
        auth_service: AuthService,
        jwt_service: JWTService,
        user_service: UserService,
    ) -> CompleteHandshakeUseCase:
        """Provide complete handshake use case."""
        return CompleteHandshakeUseCase(
            auth_service=auth_service,
            jwt_service=jwt_service,
            user_service=user_service,
        )

    # Password use cases
    @provide(scope=Scope.REQUEST)
    def get_register_use_case(
        self, jwt_service: JWTService, user_service: UserService
    ) -> RegisterUseCase:
        """Provide register use case."""
        return RegisterUseCase(jwt_service=jwt_service, user_service=user_service)

    @provide(scope=Scope.REQUEST)
    def get_login_use_case(
        self, jwt_service: JWTService, user_service: UserService
    ) -> LoginUseCase:
        """Provide login use case."""
        return LoginUseCase(jwt_service=jwt_service, user_service=user_service)

    # Session use cases
    @provide(scope=Scope.REQUEST)
    def get_current_user_use_case(
        self, session_guard: SessionGuard
    ) -> GetCurrentUserUseCase:
        """Provide get current user use case."""
        return GetCurrentUserUseCase(session_guard=session_guard)

    @provide(scope=Scope.REQUEST)
    def get_verify_token_use_case(
        self, session_guard: SessionGuard
    ) -> VerifyTokenUseCase:
        """Provide verify token use case."""
        return VerifyTokenUseCase(session_guard=session_guard)

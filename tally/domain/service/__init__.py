"""Domain services."""

from .auth_service import AuthService, OAuthClient
from .base import Service
from .jwt_service import JWTService
from .session_guard import SessionGuard
from .user_service import UserService

__all__ = [
    "AuthService",
    "JWTService",
    "OAuthClient",
    "Service",
    "SessionGuard",
    "UserService",
]

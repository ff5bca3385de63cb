"""Domain value objects for Tally."""

from tally.domain.value.handshake import HandshakeState
from tally.domain.value.identifiers import UserId
from tally.domain.value.types import (
    AuthCapabilities,
    AuthorizationOptions,
    AuthProvider,
    Email,
    ProviderProfile,
    Username,
)

__all__ = [
    # Identifiers
    "UserId",
    # Types
    "AuthCapabilities",
    "AuthorizationOptions",
    "AuthProvider",
    "Email",
    "HandshakeState",
    "ProviderProfile",
    "Username",
]

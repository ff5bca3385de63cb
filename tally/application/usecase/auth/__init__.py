"""Authentication use cases."""

from .complete_handshake import CompleteHandshakeUseCase
from .get_current_user import GetCurrentUserUseCase
from .login import LoginUseCase
from .register import RegisterUseCase
from .start_handshake import StartHandshakeUseCase
from .verify_token import VerifyTokenUseCase

__all__ = [
    "CompleteHandshakeUseCase",
    "GetCurrentUserUseCase",
    "LoginUseCase",
    "RegisterUseCase",
    "StartHandshakeUseCase",
    "VerifyTokenUseCase",
]

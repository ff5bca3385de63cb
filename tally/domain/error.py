"""Domain layer errors."""

from typing import Literal


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class AuthenticationError(DomainError):
    """Base for request authentication failures (all surface as 401)."""

    kind: str = "authentication_failed"


class MissingTokenError(AuthenticationError):
    """No bearer token on the request."""

    kind = "missing_token"

    def __init__(self) -> None:
        super().__init__("No token, authorization denied")


class InvalidTokenError(AuthenticationError):
    """Token failed verification (bad signature, malformed or expired)."""

    kind = "invalid_token"

    def __init__(self, reason: str, expired: bool = False) -> None:
        self.expired = expired
        super().__init__(f"Token is not valid - {reason}")


class UnknownUserError(AuthenticationError):
    """Token verified but its user no longer exists."""

    kind = "unknown_user"

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__("Token is not valid - user not found")


class InvalidCredentialsError(AuthenticationError):
    """Email/password pair did not match."""

    kind = "invalid_credentials"

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class DuplicateIdentityError(DomainError):
    """A unique user attribute is already taken."""

    MESSAGES = {
        "email": "Email already registered",
        "username": "Username already taken",
        "external_id": "This Google account is already linked to another user",
    }

    def __init__(self, field: Literal["email", "username", "external_id"]) -> None:
        self.field = field
        super().__init__(self.MESSAGES[field])


class FederatedLoginDisabledError(DomainError):
    """Federated login requested but provider credentials are not configured."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"{provider} sign-in is not configured on this server")


class UnverifiedEmailError(DomainError):
    """Provider email matches an account but the provider has not verified it."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(
            f"{provider} has not verified this email; it cannot be linked "
            "to an existing account"
        )

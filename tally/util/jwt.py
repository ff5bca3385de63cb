"""JWT token utilities."""

from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel

from tally.config import AuthSettings


class TokenPayload(BaseModel):
    """JWT token payload."""

    user_id: str
    iat: datetime
    exp: datetime


class JWTError(Exception):
    """JWT-related error."""

    pass


class InvalidSignatureError(JWTError):
    """Token signature does not match the configured secret, or token is malformed."""

    pass


class TokenExpiredError(JWTError):
    """Token expiry has passed."""

    pass


def create_token(
    user_id: str, settings: AuthSettings, issued_at: datetime | None = None
) -> str:
    """Create a JWT token for the user.

    Args:
        user_id: User ID
        settings: Authentication settings
        issued_at: Issue time (defaults to now, UTC)

    Returns:
        Encoded JWT token
    """
    if not settings.jwt_secret:
        raise JWTError("JWT secret is not configured")

    issued_at = issued_at or datetime.now(timezone.utc)
    expiry = issued_at + timedelta(days=settings.jwt_expiry_days)

    payload = {
        "user_id": user_id,
        "iat": issued_at,
        "exp": expiry,
    }

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: AuthSettings) -> TokenPayload:
    """Verify and decode a JWT token.

    An elapsed expiry is reported as ``TokenExpiredError`` even when the
    signature is also wrong.

    Args:
        token: JWT token to verify
        settings: Authentication settings

    Returns:
        Token payload if valid

    Raises:
        TokenExpiredError: If the token has expired
        InvalidSignatureError: If the signature is wrong or the token is malformed
    """
    if not settings.jwt_secret:
        raise JWTError("JWT secret is not configured")

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat", "user_id"]},
        )
        return TokenPayload(**payload)
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except jwt.InvalidTokenError:
        if _has_elapsed_expiry(token):
            raise TokenExpiredError("Token has expired")
        raise InvalidSignatureError("Invalid token signature")


def _has_elapsed_expiry(token: str) -> bool:
    """Read the unverified ``exp`` claim and check whether it has passed."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return False

    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return False
    return datetime.fromtimestamp(exp, tz=timezone.utc) <= datetime.now(timezone.utc)

"""Password hashing helpers (bcrypt)."""

import secrets

import bcrypt

# bcrypt only considers the first 72 bytes of input
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt."""
    encoded = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    """Check a password against a stored hash.

    Accounts without a stored hash never match.
    """
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:_BCRYPT_MAX_BYTES], hashed.encode("utf-8")
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def generate_unusable_password() -> str:
    """Random password for federated accounts; never shown to anyone."""
    return secrets.token_urlsafe(32)

"""Domain value objects for Tally.

Value objects are immutable and defined by their values, not identity.
They encapsulate validation rules and normalization.
"""

import re
from enum import Enum

from pydantic import field_validator

from tally.domain.value.common import RootValueObject, ValueObject


class AuthProvider(str, Enum):
    """Supported federated identity providers."""

    GOOGLE = "google"


class Username(RootValueObject[str]):
    """Unique public username, 3-20 characters."""

    @field_validator("root")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Trim and check length."""
        v = v.strip()
        if len(v) < 3 or len(v) > 20:
            raise ValueError("Username must be between 3 and 20 characters")
        return v


class Email(RootValueObject[str]):
    """Email address, stored trimmed and lower-cased."""

    @field_validator("root")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize case and check basic shape."""
        v = v.strip().lower()
        if not re.match(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", v):
            raise ValueError("Please enter a valid email")
        return v


class ProviderProfile(ValueObject):
    """Profile returned by an identity provider after a successful grant."""

    provider: AuthProvider
    external_id: str  # Provider-issued subject id
    email: str
    display_name: str | None = None
    profile_picture: str | None = None
    email_verified: bool = False


class AuthCapabilities(ValueObject):
    """Authentication features enabled by startup configuration."""

    federated_login_enabled: bool
    callback_url: str


class AuthorizationOptions(ValueObject):
    """Provider-side prompt behaviour requested by the client."""

    prompt: str | None = "select_account"
    access_type: str = "online"
    include_granted_scopes: bool = False
    login_hint: str | None = None
    authuser: str | None = None
    approval_prompt: str | None = None

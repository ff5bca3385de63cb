"""User aggregate root.

Users sign in with a password, with Google, or with both once a Google
identity has been linked to a password account sharing the same email.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from tally.domain.model.common import DomainModel
from tally.domain.value import Email, UserId, Username


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(DomainModel):
    """User aggregate root."""

    id: UserId
    username: Username
    email: Email
    password_hash: Optional[str] = None  # None only for federation-only accounts
    external_id: Optional[str] = None  # Google subject id once linked
    profile_picture: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_federated(self) -> bool:
        return self.external_id is not None

    def link_external_identity(
        self, external_id: str, profile_picture: str | None
    ) -> "User":
        """Attach a federated identity, keeping an existing picture if none is given."""
        return self.model_copy(
            update={
                "external_id": external_id,
                "profile_picture": profile_picture or self.profile_picture,
                "updated_at": _utcnow(),
            }
        )

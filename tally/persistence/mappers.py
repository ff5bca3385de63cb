"""Mappers for converting between database rows and domain models.

Domain models are immutable pydantic models, so rows are mapped by hand
rather than through SQLAlchemy's ORM.
"""

from typing import Any, Dict
from uuid import UUID

from tally.domain.model import User
from tally.domain.value import Email, UserId, Username


def row_to_user(row: Dict[str, Any]) -> User:
    """Convert database row to User domain model.

    Args:
        row: Database row as dict

    Returns:
        User domain model
    """
    return User(
        id=UserId(UUID(row["id"]) if isinstance(row["id"], str) else row["id"]),
        username=Username(row["username"]),
        email=Email(row["email"]),
        password_hash=row.get("password_hash"),
        external_id=row.get("external_id"),
        profile_picture=row.get("profile_picture"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def user_to_dict(user: User) -> Dict[str, Any]:
    """Convert User domain model to database dict."""
    return user.model_dump()

"""User repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from tally.domain.model.user import User
from tally.domain.value import Email, UserId, Username


class UserRepository(ABC):
    """Repository for User aggregate.

    This is the credential store: users are unique by username, by email and,
    when present, by external identity id. Implementations must enforce those
    constraints on write and raise ``DuplicateIdentityError`` naming the field.
    """

    @abstractmethod
    async def find_by_id(self, user_id: UserId) -> Optional[User]:
        """Find a user by ID.

        Args:
            user_id: The user's unique identifier

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_username(self, username: Username) -> Optional[User]:
        """Find a user by their username."""
        pass

    @abstractmethod
    async def find_by_email(self, email: Email) -> Optional[User]:
        """Find a user by their (normalized) email."""
        pass

    @abstractmethod
    async def find_by_external_id(self, external_id: str) -> Optional[User]:
        """Find a user by their provider-issued subject id."""
        pass

    @abstractmethod
    async def save(self, user: User) -> User:
        """Save a user (create or update).

        Args:
            user: The user to save

        Returns:
            The saved user

        Raises:
            DuplicateIdentityError: If a unique attribute belongs to another user
        """
        pass

    @abstractmethod
    async def delete(self, user_id: UserId) -> None:
        """Remove a user record."""
        pass

"""In-memory user repository for testing."""

from typing import Optional

from tally.domain.error import DuplicateIdentityError
from tally.domain.model.user import User
from tally.domain.repository.user import UserRepository
from tally.domain.value import Email, UserId, Username


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of UserRepository for testing.

    Enforces the same unique constraints as the ``users`` table.
    """

    def __init__(self) -> None:
        self._users: dict[UserId, User] = {}

    async def find_by_id(self, user_id: UserId) -> Optional[User]:
        """Find a user by ID."""
        return self._users.get(user_id)

    async def find_by_username(self, username: Username) -> Optional[User]:
        for user in self._users.values():
            if user.username == username:
                return user
        return None

    async def find_by_email(self, email: Email) -> Optional[User]:
        for user in self._users.values():
            if user.email == email:
                return user
        return None

    async def find_by_external_id(self, external_id: str) -> Optional[User]:
        for user in self._users.values():
            if user.external_id == external_id:
                return user
        return None

    async def save(self, user: User) -> User:
        """Save or update a user."""
        for other in self._users.values():
            if other.id == user.id:
                continue
            if other.email == user.email:
                raise DuplicateIdentityError("email")
            if other.username == user.username:
                raise DuplicateIdentityError("username")
            if user.external_id and other.external_id == user.external_id:
                raise DuplicateIdentityError("external_id")
        self._users[user.id] = user
        return user

    async def delete(self, user_id: UserId) -> None:
        self._users.pop(user_id, None)

    def count(self) -> int:
        return len(self._users)

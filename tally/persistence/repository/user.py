"""PostgreSQL implementation of User repository."""

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tally.domain.error import DuplicateIdentityError
from tally.domain.model import User
from tally.domain.repository import UserRepository
from tally.domain.value import Email, UserId, Username
from tally.persistence.mappers import row_to_user, user_to_dict
from tally.persistence.tables import UNIQUE_CONSTRAINT_FIELDS, users_table


def _duplicate_field(error: IntegrityError) -> str | None:
    """Name of the user field behind a unique violation, if recognisable."""
    constraint = getattr(getattr(error.orig, "__cause__", None), "constraint_name", None)
    message = str(error.orig)
    for name, field in UNIQUE_CONSTRAINT_FIELDS.items():
        if name == constraint or name in message:
            return field
    return None


class PostgresUserRepository(UserRepository):
    """PostgreSQL implementation of UserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def _find_one(self, *criteria) -> Optional[User]:
        stmt = select(users_table).where(*criteria)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_user(dict(row)) if row else None

    async def find_by_id(self, user_id: UserId) -> Optional[User]:
        """Find a user by ID."""
        return await self._find_one(users_table.c.id == user_id)

    async def find_by_username(self, username: Username) -> Optional[User]:
        """Find a user by their username."""
        return await self._find_one(users_table.c.username == username.root)

    async def find_by_email(self, email: Email) -> Optional[User]:
        """Find a user by their email."""
        return await self._find_one(users_table.c.email == email.root)

    async def find_by_external_id(self, external_id: str) -> Optional[User]:
        """Find a user by their Google subject id."""
        return await self._find_one(users_table.c.external_id == external_id)

    async def save(self, user: User) -> User:
        """Save a user (create or update).

        The write runs in a savepoint so a unique violation leaves the
        request transaction usable for a retry.

        Args:
            user: User to save

        Returns:
            Saved user

        Raises:
            DuplicateIdentityError: If username, email or external id is taken
        """
        existing = await self.find_by_id(user.id)
        user_dict = user_to_dict(user)

        if existing:
            stmt = (
                users_table.update()
                .where(users_table.c.id == user.id)
                .values(**user_dict)
            )
        else:
            stmt = users_table.insert().values(**user_dict)

        try:
            async with self.session.begin_nested():
                await self.session.execute(stmt)
        except IntegrityError as e:
            field = _duplicate_field(e)
            if field is None:
                raise
            raise DuplicateIdentityError(field) from e  # type: ignore[arg-type]

        return user

    async def delete(self, user_id: UserId) -> None:
        """Remove a user record."""
        await self.session.execute(delete(users_table).where(users_table.c.id == user_id))
        await self.session.flush()

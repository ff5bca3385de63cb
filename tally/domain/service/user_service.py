"""User domain service."""

import re
import secrets

import logfire

from tally.domain.error import NotFoundError
from tally.domain.model import User
from tally.domain.repository import UserRepository
from tally.domain.value import Email, UserId, Username

from .base import Service

# Base part of a derived username; four digits are appended
USERNAME_BASE_MAX = 15
USERNAME_ATTEMPTS = 20


class UserService(Service):
    """Domain service for user operations."""

    def __init__(self, user_repository: UserRepository) -> None:
        """Initialize user service.

        Args:
            user_repository: User repository
        """
        self.user_repository = user_repository

    async def get_by_id(self, user_id: UserId) -> User:
        """Get user by ID.

        Raises:
            NotFoundError: If user not found
        """
        with logfire.span("user_service.get_by_id", user_id=str(user_id)):
            user = await self.user_repository.find_by_id(user_id)
            if not user:
                logfire.warn("User not found", user_id=str(user_id))
                raise NotFoundError("User", str(user_id))
            return user

    async def get_user_by_username(self, username: Username) -> User | None:
        with logfire.span("user_service.get_user_by_username", username=username.root):
            return await self.user_repository.find_by_username(username)

    async def get_user_by_email(self, email: Email) -> User | None:
        """Get user by normalized email.

        Args:
            email: User email

        Returns:
            User if found, None otherwise
        """
        with logfire.span("user_service.get_user_by_email", email=email.root):
            user = await self.user_repository.find_by_email(email)
            if user:
                logfire.info("User found", email=email.root, user_id=str(user.id))
            return user

    async def get_user_by_external_id(self, external_id: str) -> User | None:
        """Get user by provider-issued subject id."""
        with logfire.span(
            "user_service.get_user_by_external_id", external_id=external_id
        ):
            user = await self.user_repository.find_by_external_id(external_id)
            if user:
                logfire.info(
                    "User found", external_id=external_id, user_id=str(user.id)
                )
            return user

    async def save(self, user: User) -> User:
        """Save user (create or update).

        Raises:
            DuplicateIdentityError: If email, username or external id is taken
        """
        with logfire.span(
            "user_service.save", user_id=str(user.id), username=user.username.root
        ):
            saved = await self.user_repository.save(user)
            logfire.info(
                "User saved", user_id=str(saved.id), username=saved.username.root
            )
            return saved

    async def delete(self, user_id: UserId) -> None:
        with logfire.span("user_service.delete", user_id=str(user_id)):
            await self.user_repository.delete(user_id)
            logfire.info("User deleted", user_id=str(user_id))

    async def generate_unique_username(self, display_name: str | None) -> Username:
        """Derive an unused username from a provider display name.

        Whitespace is removed, the result lower-cased and suffixed with four
        random digits. Suffixes are redrawn until the name is free.

        Args:
            display_name: Display name reported by the identity provider

        Returns:
            Username not currently held by any user
        """
        base = re.sub(r"\s+", "", display_name or "").lower()[:USERNAME_BASE_MAX]
        if not base:
            base = "user"

        for _ in range(USERNAME_ATTEMPTS):
            candidate = Username(f"{base}{secrets.randbelow(10_000):04d}")
            if await self.user_repository.find_by_username(candidate) is None:
                return candidate

        # Heavily used base name: fall back to a longer random suffix
        return Username(f"{base[:11]}{secrets.token_hex(4)}")

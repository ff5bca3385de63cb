"""PostgreSQL repository implementations."""

from tally.persistence.repository.user import PostgresUserRepository

__all__ = ["PostgresUserRepository"]

"""SQLAlchemy table definitions for Tally.

These table definitions are used with SQLAlchemy core queries.
They match the schema defined in Alembic migrations.
"""

from sqlalchemy import Column, Index, MetaData, String, Table, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# USERS TABLE (credential store)
# ============================================================================
users_table = Table(
    "users",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True),
    Column("username", String(20), nullable=False),
    Column("email", String(255), nullable=False),  # Lower-cased before insert
    Column("password_hash", Text, nullable=True),
    Column("external_id", String(255), nullable=True),  # Google subject id
    Column("profile_picture", Text, nullable=True),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    UniqueConstraint("username", name="uq_users_username"),
    UniqueConstraint("email", name="uq_users_email"),
    # NULLs are distinct in Postgres, so unlinked accounts do not collide
    UniqueConstraint("external_id", name="uq_users_external_id"),
)

Index("idx_users_created_at", users_table.c.created_at)

# Constraint name -> user field it protects
UNIQUE_CONSTRAINT_FIELDS = {
    "uq_users_username": "username",
    "uq_users_email": "email",
    "uq_users_external_id": "external_id",
}

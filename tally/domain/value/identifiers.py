"""Strongly typed identifiers for Tally domain entities."""

from typing import NewType
from uuid import UUID

UserId = NewType("UserId", UUID)

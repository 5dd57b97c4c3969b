"""Port for storefront customer profile rows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class ProfileCreateInput:
    """Minimal payload for inserting a profile after signup or first login."""

    user_id: UUID
    email: str


@dataclass(frozen=True)
class ProfileRecord:
    """Profile persistence model."""

    user_id: UUID
    email: str
    full_name: str | None
    created_at: datetime
    updated_at: datetime


class ProfileAlreadyExistsError(ValueError):
    """Raised when a profile row already exists for the account id."""

    def __init__(self, *, user_id: UUID) -> None:
        super().__init__(f"profile already exists: {user_id}")
        self.user_id = user_id


class ProfileRepositoryPort(Protocol):
    """Profile repository contract."""

    async def get_by_id(self, *, user_id: UUID) -> ProfileRecord | None:
        """Return profile by account id or None."""

    async def create_profile(self, payload: ProfileCreateInput) -> ProfileRecord:
        """Insert one profile row and return it."""

    async def update_full_name(
        self,
        *,
        user_id: UUID,
        full_name: str | None,
    ) -> ProfileRecord | None:
        """Set the display name and return the updated row, or None when absent."""

"""SQLAlchemy adapter for storefront profile rows."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from velo_storefront.application.ports.profile_repository_port import (
    ProfileAlreadyExistsError,
    ProfileCreateInput,
    ProfileRecord,
    ProfileRepositoryPort,
)
from velo_storefront.infrastructure.db.metadata import profiles


class SqlAlchemyProfileRepository(ProfileRepositoryPort):
    """Profile repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, *, user_id: UUID) -> ProfileRecord | None:
        """Return profile by account id or None."""

        statement = _select_profiles().where(profiles.c.id == user_id).limit(1)

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_profile_record(row)

    async def create_profile(self, payload: ProfileCreateInput) -> ProfileRecord:
        """Insert one minimal profile row and return the stored record."""

        statement = sa.insert(profiles).values(id=payload.user_id, email=payload.email)

        async with self._session_factory() as session:
            try:
                await session.execute(statement)
                await session.commit()
            except IntegrityError as error:
                await session.rollback()
                raise ProfileAlreadyExistsError(user_id=payload.user_id) from error

        created = await self.get_by_id(user_id=payload.user_id)
        if created is None:  # pragma: no cover - row inserted above.
            raise RuntimeError(f"profile missing after insert: {payload.user_id}")
        return created

    async def update_full_name(
        self,
        *,
        user_id: UUID,
        full_name: str | None,
    ) -> ProfileRecord | None:
        """Set the profile display name; returns None when no row matches."""

        statement = (
            sa.update(profiles)
            .where(profiles.c.id == user_id)
            .values(full_name=full_name, updated_at=sa.func.current_timestamp())
        )

        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(statement))
            await session.commit()

        if int(result.rowcount or 0) == 0:
            return None
        return await self.get_by_id(user_id=user_id)


def _select_profiles() -> sa.Select[tuple[object, ...]]:
    return sa.select(
        profiles.c.id,
        profiles.c.email,
        profiles.c.full_name,
        profiles.c.created_at,
        profiles.c.updated_at,
    )


def _to_profile_record(row: sa.RowMapping) -> ProfileRecord:
    raw_user_id = row["id"]
    user_id = raw_user_id if isinstance(raw_user_id, UUID) else UUID(str(raw_user_id))
    return ProfileRecord(
        user_id=user_id,
        email=cast(str, row["email"]),
        full_name=cast(str | None, row["full_name"]),
        created_at=cast(datetime, row["created_at"]),
        updated_at=cast(datetime, row["updated_at"]),
    )

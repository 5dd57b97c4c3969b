"""Application service for the signed-in customer's profile row."""

from __future__ import annotations

import logging

from velo_storefront.application.ports.identity_backend_port import (
    IdentityAccount,
    IdentityBackendPort,
)
from velo_storefront.application.ports.profile_repository_port import (
    ProfileAlreadyExistsError,
    ProfileCreateInput,
    ProfileRecord,
    ProfileRepositoryPort,
)

logger = logging.getLogger(__name__)

MAX_FULL_NAME_LENGTH = 200


class ProfileService:
    """Read and edit the profile owned by a session token.

    A missing row is created on first access, the same way sign-in does.
    """

    def __init__(
        self,
        *,
        identity: IdentityBackendPort,
        profiles: ProfileRepositoryPort,
    ) -> None:
        self._identity = identity
        self._profiles = profiles

    async def get_profile(self, *, session_token: str) -> ProfileRecord:
        """Return the caller's profile."""

        account = await self._identity.get_account(access_token=session_token)
        return await self._get_or_create(account=account)

    async def update_full_name(
        self,
        *,
        session_token: str,
        full_name: str | None,
    ) -> ProfileRecord:
        """Set or clear the caller's display name.

        Surrounding whitespace is dropped and a blank name clears the field.
        """

        normalized = normalize_full_name(full_name)
        account = await self._identity.get_account(access_token=session_token)
        await self._get_or_create(account=account)

        updated = await self._profiles.update_full_name(
            user_id=account.user_id,
            full_name=normalized,
        )
        if updated is None:  # pragma: no cover - row ensured above.
            raise RuntimeError(f"profile missing after ensure: {account.user_id}")
        logger.info("profile_updated user_id=%s", account.user_id)
        return updated

    async def _get_or_create(self, *, account: IdentityAccount) -> ProfileRecord:
        existing = await self._profiles.get_by_id(user_id=account.user_id)
        if existing is not None:
            return existing

        try:
            created = await self._profiles.create_profile(
                ProfileCreateInput(user_id=account.user_id, email=account.email)
            )
        except ProfileAlreadyExistsError:
            concurrent = await self._profiles.get_by_id(user_id=account.user_id)
            if concurrent is None:
                raise
            return concurrent
        logger.info("profile_created_on_access user_id=%s", account.user_id)
        return created


def normalize_full_name(full_name: str | None) -> str | None:
    """Strip a display name; blank becomes None, overlong raises ValueError."""

    if full_name is None:
        return None
    stripped = full_name.strip()
    if not stripped:
        return None
    if len(stripped) > MAX_FULL_NAME_LENGTH:
        raise ValueError(f"full name must be at most {MAX_FULL_NAME_LENGTH} characters")
    return stripped

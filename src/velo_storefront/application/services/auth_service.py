"""Application authentication service for storefront sign-in and sign-out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from velo_storefront.application.ports.identity_backend_port import (
    IdentityAccount,
    IdentityBackendError,
    IdentityBackendPort,
    IdentitySession,
    InvalidCredentialsError,
)
from velo_storefront.application.ports.profile_repository_port import (
    ProfileCreateInput,
    ProfileRepositoryPort,
)
from velo_storefront.domain.auth.credentials import normalize_user_email

logger = logging.getLogger(__name__)


class AuthOutcome(StrEnum):
    """Supported sign-in outcomes."""

    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"


@dataclass(frozen=True)
class AuthResult:
    """Sign-in result model."""

    outcome: AuthOutcome
    session: IdentitySession | None = None


class AuthService:
    """Sign customers in through the identity backend and keep profiles present.

    The password policy is not applied here, accounts created before the
    policy existed must still be able to sign in.
    """

    def __init__(
        self,
        *,
        identity: IdentityBackendPort,
        profiles: ProfileRepositoryPort,
    ) -> None:
        self._identity = identity
        self._profiles = profiles

    async def sign_in(self, *, email: str, password: str) -> AuthResult:
        """Authenticate credentials and ensure the account has a profile row."""

        try:
            normalized_email = normalize_user_email(email=email)
        except ValueError:
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)

        try:
            session = await self._identity.sign_in(email=normalized_email, password=password)
        except InvalidCredentialsError:
            logger.info("login_failed reason=invalid_credentials")
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)

        logger.info("login_success user_id=%s", session.account.user_id)
        await self._ensure_profile(account=session.account)
        return AuthResult(outcome=AuthOutcome.SUCCESS, session=session)

    async def sign_out(self, *, access_token: str) -> None:
        """Revoke the caller session.

        Backend revocation failures are logged; sign-out still completes.
        """

        try:
            await self._identity.sign_out(access_token=access_token)
        except IdentityBackendError as exc:
            logger.warning("logout_revoke_failed error=%s", exc)
            return
        logger.info("logout_success")

    async def _ensure_profile(self, *, account: IdentityAccount) -> None:
        """Create a missing profile row; failures are logged and ignored."""

        try:
            if await self._profiles.get_by_id(user_id=account.user_id) is not None:
                return
            await self._profiles.create_profile(
                ProfileCreateInput(user_id=account.user_id, email=account.email)
            )
            logger.info("login_profile_created user_id=%s", account.user_id)
        except Exception:  # noqa: BLE001
            logger.exception("login_profile_ensure_failed user_id=%s", account.user_id)

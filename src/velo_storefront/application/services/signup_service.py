"""Application service for email/password account signup."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from velo_storefront.application.ports.identity_backend_port import (
    IdentityAccount,
    IdentityBackendPort,
)
from velo_storefront.application.ports.profile_repository_port import (
    ProfileCreateInput,
    ProfileRepositoryPort,
)
from velo_storefront.application.services.password_gate import (
    SIGNUP_MISMATCH_MESSAGE,
    require_acceptable_password,
)
from velo_storefront.domain.auth.credentials import normalize_user_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignupResult:
    """Signup outcome returned to HTTP callers."""

    account: IdentityAccount
    profile_created: bool

    @property
    def confirmation_required(self) -> bool:
        return not self.account.email_confirmed


class SignupService:
    """Gate signup passwords locally, then register with the identity backend."""

    def __init__(
        self,
        *,
        identity: IdentityBackendPort,
        profiles: ProfileRepositoryPort,
    ) -> None:
        self._identity = identity
        self._profiles = profiles

    async def sign_up(self, *, email: str, password: str, confirm_password: str) -> SignupResult:
        """Create one account; gate failures never reach the identity backend.

        A failed profile insert does not fail the signup, the profile is
        created again on the next successful sign-in.
        """

        normalized_email = normalize_user_email(email=email)
        require_acceptable_password(
            password=password,
            confirmation=confirm_password,
            mismatch_message=SIGNUP_MISMATCH_MESSAGE,
        )

        account = await self._identity.create_account(email=normalized_email, password=password)
        logger.info("signup_account_created user_id=%s", account.user_id)

        try:
            await self._profiles.create_profile(
                ProfileCreateInput(user_id=account.user_id, email=account.email)
            )
        except Exception:  # noqa: BLE001
            logger.exception("signup_profile_create_failed user_id=%s", account.user_id)
            return SignupResult(account=account, profile_created=False)

        return SignupResult(account=account, profile_created=True)

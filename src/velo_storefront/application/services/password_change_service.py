"""Application service for the account-settings password change."""

from __future__ import annotations

import logging

from velo_storefront.application.ports.identity_backend_port import IdentityBackendPort
from velo_storefront.application.services.password_gate import (
    SETTINGS_MISMATCH_MESSAGE,
    require_acceptable_password,
)

logger = logging.getLogger(__name__)


class PasswordChangeService:
    """Gate a new password locally, then update it for the caller session."""

    def __init__(self, *, identity: IdentityBackendPort) -> None:
        self._identity = identity

    async def change_password(
        self,
        *,
        session_token: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """Update the session owner's password.

        Passing the gate does not guarantee the update; backend errors such as
        an expired session propagate to the caller.
        """

        require_acceptable_password(
            password=new_password,
            confirmation=confirm_password,
            mismatch_message=SETTINGS_MISMATCH_MESSAGE,
        )
        await self._identity.update_password(
            access_token=session_token,
            new_password=new_password,
        )
        logger.info("password_change_success")

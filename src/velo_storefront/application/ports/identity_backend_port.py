"""Port for the hosted auth/identity backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class IdentityAccount:
    """Account as reported by the identity backend."""

    user_id: UUID
    email: str
    email_confirmed: bool


@dataclass(frozen=True)
class IdentitySession:
    """Authenticated session issued by the identity backend."""

    access_token: str
    refresh_token: str | None
    expires_at: datetime | None
    account: IdentityAccount


class IdentityBackendError(RuntimeError):
    """Base class for typed identity backend failures.

    ``status_code`` and ``backend_message`` carry the backend's own HTTP status
    and user-facing message when the failure came from a backend response.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        backend_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.backend_message = backend_message


class AccountAlreadyExistsError(IdentityBackendError):
    """Raised when signup targets an email that is already registered."""


class PasswordRejectedError(IdentityBackendError):
    """Raised when the backend refuses a password on its own policy."""


class InvalidCredentialsError(IdentityBackendError):
    """Raised when email/password sign-in does not match an account."""


class SessionExpiredError(IdentityBackendError):
    """Raised when a session token is missing, revoked or expired."""


class IdentityBackendUnavailableError(IdentityBackendError):
    """Raised for transport failures and unusable backend responses."""


class IdentityBackendPort(Protocol):
    """Credential creation, verification and update contract."""

    async def create_account(self, *, email: str, password: str) -> IdentityAccount:
        """Register a new email/password account."""

    async def sign_in(self, *, email: str, password: str) -> IdentitySession:
        """Exchange email/password credentials for a session."""

    async def update_password(self, *, access_token: str, new_password: str) -> None:
        """Replace the password of the account owning the session."""

    async def sign_out(self, *, access_token: str) -> None:
        """Revoke the session identified by the access token."""

    async def get_account(self, *, access_token: str) -> IdentityAccount:
        """Resolve the account owning the session token."""

"""Concrete adapter for a GoTrue-compatible hosted auth REST API."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Callable, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen
from uuid import UUID

from velo_storefront.application.ports.identity_backend_port import (
    AccountAlreadyExistsError,
    IdentityAccount,
    IdentityBackendError,
    IdentityBackendPort,
    IdentityBackendUnavailableError,
    IdentitySession,
    InvalidCredentialsError,
    PasswordRejectedError,
    SessionExpiredError,
)

logger = logging.getLogger(__name__)

_ACCOUNT_EXISTS_CODES = frozenset({"user_already_exists", "email_exists"})
_PASSWORD_REJECTED_CODES = frozenset({"weak_password", "same_password"})
_INVALID_CREDENTIALS_CODES = frozenset({"invalid_grant", "invalid_credentials"})
_SESSION_CODES = frozenset({"session_not_found", "session_expired", "bad_jwt", "no_authorization"})


@dataclass(frozen=True)
class IdentityHttpResponse:
    """Normalized HTTP response data returned by transport implementations."""

    status_code: int
    body_bytes: bytes


class IdentityHttpTransportPort(Protocol):
    """Transport protocol used by the identity HTTP adapter."""

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> IdentityHttpResponse:
        """Execute one HTTP request and return normalized response data."""


class UrllibIdentityHttpTransport:
    """urllib-based async transport running each request in a worker thread."""

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> IdentityHttpResponse:
        return await asyncio.to_thread(
            self._request_sync,
            method=method,
            url=url,
            headers=headers,
            body=body,
            timeout_seconds=timeout_seconds,
        )

    def _request_sync(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> IdentityHttpResponse:
        request = Request(url=url, data=body, headers=headers, method=method)
        try:
            with urlopen(request, timeout=timeout_seconds) as response:
                return IdentityHttpResponse(
                    status_code=int(response.getcode()),
                    body_bytes=response.read(),
                )
        except HTTPError as error:
            return IdentityHttpResponse(status_code=int(error.code), body_bytes=error.read())
        except URLError as error:
            raise IdentityBackendUnavailableError(
                f"transport connection failure: {error}"
            ) from error


class IdentityHttpClient(IdentityBackendPort):
    """Hosted auth REST adapter implementing the identity backend port."""

    def __init__(
        self,
        *,
        base_url: str,
        anon_key: str,
        transport: IdentityHttpTransportPort | None = None,
        timeout_seconds: float = 20.0,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._transport = transport or UrllibIdentityHttpTransport()
        self._timeout_seconds = timeout_seconds
        self._now = now or (lambda: datetime.now(tz=UTC))

    async def create_account(self, *, email: str, password: str) -> IdentityAccount:
        """Register an account; the response is either a user or a session."""

        response = await self._request_json(
            operation="create_account",
            method="POST",
            path="/auth/v1/signup",
            payload={"email": email, "password": password},
        )
        user = response.get("user")
        return _parse_account(
            user if isinstance(user, dict) else response,
            operation="create_account",
        )

    async def sign_in(self, *, email: str, password: str) -> IdentitySession:
        """Exchange credentials for a session with the password grant."""

        response = await self._request_json(
            operation="sign_in",
            method="POST",
            path=f"/auth/v1/token?{urlencode({'grant_type': 'password'})}",
            payload={"email": email, "password": password},
        )
        return self._parse_session(response)

    async def update_password(self, *, access_token: str, new_password: str) -> None:
        """Update the password of the user owning ``access_token``."""

        await self._request_json(
            operation="update_password",
            method="PUT",
            path="/auth/v1/user",
            payload={"password": new_password},
            access_token=access_token,
        )

    async def sign_out(self, *, access_token: str) -> None:
        """Revoke the session owning ``access_token``."""

        await self._request_bytes(
            operation="sign_out",
            method="POST",
            path="/auth/v1/logout",
            body=None,
            access_token=access_token,
        )

    async def get_account(self, *, access_token: str) -> IdentityAccount:
        """Fetch the account owning ``access_token``."""

        response = await self._request_bytes(
            operation="get_account",
            method="GET",
            path="/auth/v1/user",
            body=None,
            access_token=access_token,
        )
        decoded = _decode_json(response.body_bytes)
        if decoded is None:
            raise IdentityBackendUnavailableError("get_account returned invalid JSON payload")
        return _parse_account(decoded, operation="get_account")

    def _parse_session(self, response: dict[str, object]) -> IdentitySession:
        access_token = response.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise IdentityBackendUnavailableError("sign_in response missing access_token")
        user = response.get("user")
        if not isinstance(user, dict):
            raise IdentityBackendUnavailableError("sign_in response missing user")

        refresh_token = response.get("refresh_token")
        expires_in = response.get("expires_in")
        expires_at = (
            self._now() + timedelta(seconds=expires_in)
            if isinstance(expires_in, int) and not isinstance(expires_in, bool)
            else None
        )
        return IdentitySession(
            access_token=access_token,
            refresh_token=refresh_token if isinstance(refresh_token, str) else None,
            expires_at=expires_at,
            account=_parse_account(user, operation="sign_in"),
        )

    async def _request_json(
        self,
        *,
        operation: str,
        method: str,
        path: str,
        payload: dict[str, object],
        access_token: str | None = None,
    ) -> dict[str, object]:
        response = await self._request_bytes(
            operation=operation,
            method=method,
            path=path,
            body=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            access_token=access_token,
        )
        decoded = _decode_json(response.body_bytes)
        if decoded is None:
            raise IdentityBackendUnavailableError(f"{operation} returned invalid JSON payload")
        return decoded

    async def _request_bytes(
        self,
        *,
        operation: str,
        method: str,
        path: str,
        body: bytes | None,
        access_token: str | None = None,
    ) -> IdentityHttpResponse:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {access_token or self._anon_key}",
        }
        if body is not None:
            headers["Content-Type"] = "application/json"

        url = f"{self._base_url}{path}"
        try:
            response = await self._transport.request(
                method=method,
                url=url,
                headers=headers,
                body=body,
                timeout_seconds=self._timeout_seconds,
            )
        except IdentityBackendUnavailableError:
            raise
        except Exception as error:  # noqa: BLE001
            raise IdentityBackendUnavailableError(f"{operation} transport failure") from error

        if response.status_code < 200 or response.status_code >= 300:
            logger.warning(
                "identity_request_failed operation=%s status=%s",
                operation,
                response.status_code,
            )
            raise _map_error(
                operation=operation,
                status_code=response.status_code,
                payload=response.body_bytes,
                authenticated=access_token is not None,
            )

        return response


def _map_error(
    *,
    operation: str,
    status_code: int,
    payload: bytes,
    authenticated: bool,
) -> IdentityBackendError:
    """Translate one non-2xx response into a typed identity error."""

    decoded = _decode_json(payload) or {}
    code = _error_code(decoded)
    message = _error_message(decoded) or _decode_error_payload(payload)
    details = f"{operation} failed with status {status_code}: {message}"

    if status_code >= 500:
        error_type: type[IdentityBackendError] = IdentityBackendUnavailableError
    elif code in _ACCOUNT_EXISTS_CODES or "already registered" in message.lower():
        error_type = AccountAlreadyExistsError
    elif code in _PASSWORD_REJECTED_CODES:
        error_type = PasswordRejectedError
    elif code in _INVALID_CREDENTIALS_CODES:
        error_type = InvalidCredentialsError
    elif code in _SESSION_CODES or (authenticated and status_code in {401, 403}):
        error_type = SessionExpiredError
    else:
        error_type = IdentityBackendError
    return error_type(details, status_code=status_code, backend_message=message)


def _error_code(decoded: dict[str, object]) -> str | None:
    for key in ("error_code", "error"):
        value = decoded.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _error_message(decoded: dict[str, object]) -> str | None:
    for key in ("msg", "message", "error_description"):
        value = decoded.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _parse_account(user: dict[str, object], *, operation: str) -> IdentityAccount:
    raw_id = user.get("id")
    email = user.get("email")
    if not isinstance(raw_id, str) or not isinstance(email, str):
        raise IdentityBackendUnavailableError(f"{operation} response missing user id or email")
    try:
        user_id = UUID(raw_id)
    except ValueError as error:
        raise IdentityBackendUnavailableError(
            f"{operation} response has invalid user id"
        ) from error
    return IdentityAccount(
        user_id=user_id,
        email=email,
        email_confirmed=bool(user.get("email_confirmed_at") or user.get("confirmed_at")),
    )


def _decode_json(payload: bytes) -> dict[str, object] | None:
    if not payload:
        return None
    try:
        decoded = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(decoded, dict):
        return None
    return decoded


def _decode_error_payload(payload: bytes) -> str:
    if not payload:
        return "empty response body"
    try:
        decoded = payload.decode("utf-8")
    except UnicodeDecodeError:
        return "<binary>"
    return decoded[:200]

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from velo_storefront.application.ports.identity_backend_port import (
    AccountAlreadyExistsError,
    IdentityBackendError,
    IdentityBackendUnavailableError,
    InvalidCredentialsError,
    PasswordRejectedError,
    SessionExpiredError,
)
from velo_storefront.infrastructure.identity.http_client import (
    IdentityHttpClient,
    IdentityHttpResponse,
)

USER_ID = "6f1c2b0e-2d7a-4c59-9f2d-0c8f3b1e7a11"
FIXED_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


@dataclass
class _QueuedTransport:
    responses: list[IdentityHttpResponse]
    error: Exception | None = None

    def __post_init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> IdentityHttpResponse:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "body": body,
                "timeout_seconds": timeout_seconds,
            }
        )
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


def _json_response(status_code: int, payload: dict[str, object]) -> IdentityHttpResponse:
    return IdentityHttpResponse(
        status_code=status_code,
        body_bytes=json.dumps(payload).encode("utf-8"),
    )


def _client(transport: _QueuedTransport) -> IdentityHttpClient:
    return IdentityHttpClient(
        base_url="https://auth.example.org/",
        anon_key="anon-key",
        transport=transport,
        timeout_seconds=5.0,
        now=lambda: FIXED_NOW,
    )


@pytest.mark.asyncio
async def test_create_account_posts_credentials_and_parses_user() -> None:
    transport = _QueuedTransport(
        responses=[
            _json_response(
                200,
                {"id": USER_ID, "email": "rider@example.org", "confirmed_at": None},
            )
        ]
    )

    account = await _client(transport).create_account(
        email="rider@example.org",
        password="Aa1!aaaa",
    )

    assert account.user_id == UUID(USER_ID)
    assert account.email == "rider@example.org"
    assert account.email_confirmed is False
    call = transport.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://auth.example.org/auth/v1/signup"
    assert call["timeout_seconds"] == 5.0
    headers = call["headers"]
    assert isinstance(headers, dict)
    assert headers["apikey"] == "anon-key"
    assert headers["Authorization"] == "Bearer anon-key"
    assert headers["Content-Type"] == "application/json"
    assert json.loads((call["body"] or b"").decode("utf-8")) == {
        "email": "rider@example.org",
        "password": "Aa1!aaaa",
    }


@pytest.mark.asyncio
async def test_create_account_reads_user_from_session_payload() -> None:
    transport = _QueuedTransport(
        responses=[
            _json_response(
                200,
                {
                    "access_token": "token",
                    "user": {
                        "id": USER_ID,
                        "email": "rider@example.org",
                        "email_confirmed_at": "2026-10-19T12:00:00Z",
                    },
                },
            )
        ]
    )

    account = await _client(transport).create_account(email="rider@example.org", password="x")

    assert account.email_confirmed is True


@pytest.mark.asyncio
async def test_sign_in_uses_password_grant_and_builds_session() -> None:
    transport = _QueuedTransport(
        responses=[
            _json_response(
                200,
                {
                    "access_token": "access-token",
                    "refresh_token": "refresh-token",
                    "expires_in": 3600,
                    "user": {"id": USER_ID, "email": "rider@example.org"},
                },
            )
        ]
    )

    session = await _client(transport).sign_in(email="rider@example.org", password="pw")

    assert transport.calls[0]["url"] == (
        "https://auth.example.org/auth/v1/token?grant_type=password"
    )
    assert session.access_token == "access-token"
    assert session.refresh_token == "refresh-token"
    assert session.expires_at == FIXED_NOW + timedelta(hours=1)
    assert session.account.user_id == UUID(USER_ID)


@pytest.mark.asyncio
async def test_sign_in_missing_access_token_is_unavailable() -> None:
    transport = _QueuedTransport(
        responses=[_json_response(200, {"user": {"id": USER_ID, "email": "a@b.c"}})]
    )

    with pytest.raises(IdentityBackendUnavailableError, match="missing access_token"):
        await _client(transport).sign_in(email="a@b.c", password="pw")


@pytest.mark.asyncio
async def test_update_password_sends_user_bearer_token() -> None:
    transport = _QueuedTransport(
        responses=[_json_response(200, {"id": USER_ID, "email": "rider@example.org"})]
    )

    await _client(transport).update_password(access_token="user-token", new_password="N3w!pass")

    call = transport.calls[0]
    assert call["method"] == "PUT"
    assert call["url"] == "https://auth.example.org/auth/v1/user"
    headers = call["headers"]
    assert isinstance(headers, dict)
    assert headers["Authorization"] == "Bearer user-token"
    assert headers["apikey"] == "anon-key"
    assert json.loads((call["body"] or b"").decode("utf-8")) == {"password": "N3w!pass"}


@pytest.mark.asyncio
async def test_sign_out_posts_without_body() -> None:
    transport = _QueuedTransport(responses=[IdentityHttpResponse(status_code=204, body_bytes=b"")])

    await _client(transport).sign_out(access_token="user-token")

    call = transport.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://auth.example.org/auth/v1/logout"
    assert call["body"] is None
    headers = call["headers"]
    assert isinstance(headers, dict)
    assert "Content-Type" not in headers


@pytest.mark.asyncio
async def test_get_account_reads_user_with_session_token() -> None:
    transport = _QueuedTransport(
        responses=[
            _json_response(
                200,
                {
                    "id": USER_ID,
                    "email": "rider@example.org",
                    "email_confirmed_at": "2026-10-19T10:00:00Z",
                },
            )
        ]
    )

    account = await _client(transport).get_account(access_token="user-token")

    assert account.user_id == UUID(USER_ID)
    assert account.email_confirmed is True
    call = transport.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://auth.example.org/auth/v1/user"
    assert call["body"] is None
    headers = call["headers"]
    assert isinstance(headers, dict)
    assert headers["Authorization"] == "Bearer user-token"


@pytest.mark.asyncio
async def test_get_account_with_revoked_token_is_session_expired() -> None:
    transport = _QueuedTransport(responses=[_json_response(401, {"msg": "invalid JWT"})])

    with pytest.raises(SessionExpiredError) as exc_info:
        await _client(transport).get_account(access_token="stale")

    assert exc_info.value.status_code == 401
    assert exc_info.value.backend_message == "invalid JWT"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "payload", "expected"),
    [
        (422, {"error_code": "user_already_exists", "msg": "User already registered"},
         AccountAlreadyExistsError),
        (400, {"msg": "User already registered"}, AccountAlreadyExistsError),
        (422, {"error_code": "weak_password", "msg": "Password is too weak"},
         PasswordRejectedError),
        (400, {"error": "invalid_grant", "error_description": "Invalid login credentials"},
         InvalidCredentialsError),
        (400, {"error_code": "invalid_credentials"}, InvalidCredentialsError),
        (503, {"msg": "upstream unavailable"}, IdentityBackendUnavailableError),
        (429, {"msg": "rate limited"}, IdentityBackendError),
    ],
)
async def test_anonymous_error_responses_map_to_typed_errors(
    status_code: int,
    payload: dict[str, object],
    expected: type[Exception],
) -> None:
    transport = _QueuedTransport(responses=[_json_response(status_code, payload)])

    with pytest.raises(expected) as exc_info:
        await _client(transport).create_account(email="rider@example.org", password="pw")

    assert type(exc_info.value) is expected
    assert str(status_code) in str(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "payload"),
    [
        (401, {"msg": "invalid JWT"}),
        (403, {"error_code": "bad_jwt"}),
        (404, {"error_code": "session_not_found"}),
    ],
)
async def test_authenticated_failures_map_to_session_expired(
    status_code: int,
    payload: dict[str, object],
) -> None:
    transport = _QueuedTransport(responses=[_json_response(status_code, payload)])

    with pytest.raises(SessionExpiredError):
        await _client(transport).update_password(access_token="stale", new_password="N3w!pass")


@pytest.mark.asyncio
async def test_weak_password_on_update_maps_to_rejected() -> None:
    transport = _QueuedTransport(
        responses=[_json_response(422, {"error_code": "weak_password", "msg": "too weak"})]
    )

    with pytest.raises(PasswordRejectedError):
        await _client(transport).update_password(access_token="token", new_password="N3w!pass")


@pytest.mark.asyncio
async def test_same_password_on_update_keeps_backend_message() -> None:
    message = "New password should be different from the old password."
    transport = _QueuedTransport(
        responses=[_json_response(422, {"error_code": "same_password", "msg": message})]
    )

    with pytest.raises(PasswordRejectedError) as exc_info:
        await _client(transport).update_password(access_token="token", new_password="N3w!pass")

    assert exc_info.value.status_code == 422
    assert exc_info.value.backend_message == message


@pytest.mark.asyncio
async def test_unclassified_error_keeps_backend_status_and_message() -> None:
    transport = _QueuedTransport(
        responses=[
            _json_response(400, {"error_code": "email_not_confirmed", "msg": "Email not confirmed"})
        ]
    )

    with pytest.raises(IdentityBackendError) as exc_info:
        await _client(transport).sign_in(email="rider@example.org", password="pw")

    assert type(exc_info.value) is IdentityBackendError
    assert exc_info.value.status_code == 400
    assert exc_info.value.backend_message == "Email not confirmed"


@pytest.mark.asyncio
async def test_transport_exception_maps_to_unavailable() -> None:
    transport = _QueuedTransport(responses=[], error=TimeoutError("timed out"))

    with pytest.raises(IdentityBackendUnavailableError, match="sign_in transport failure"):
        await _client(transport).sign_in(email="rider@example.org", password="pw")


@pytest.mark.asyncio
async def test_non_json_success_payload_maps_to_unavailable() -> None:
    transport = _QueuedTransport(
        responses=[IdentityHttpResponse(status_code=200, body_bytes=b"<html>oops</html>")]
    )

    with pytest.raises(IdentityBackendUnavailableError, match="invalid JSON payload"):
        await _client(transport).create_account(email="rider@example.org", password="pw")


@pytest.mark.asyncio
async def test_invalid_user_id_maps_to_unavailable() -> None:
    transport = _QueuedTransport(
        responses=[_json_response(200, {"id": "not-a-uuid", "email": "rider@example.org"})]
    )

    with pytest.raises(IdentityBackendUnavailableError, match="invalid user id"):
        await _client(transport).create_account(email="rider@example.org", password="pw")

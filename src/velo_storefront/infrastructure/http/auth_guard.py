"""Bearer header parsing for session-bound account endpoints."""

from __future__ import annotations


class MissingAuthTokenError(PermissionError):
    """Raised when a bearer token is required but not provided."""


class InvalidAuthTokenError(PermissionError):
    """Raised when the Authorization header is malformed."""


def extract_bearer_token(authorization_header: str | None) -> str:
    """Extract the session token from `Authorization: Bearer <token>`."""

    if authorization_header is None or not authorization_header.strip():
        raise MissingAuthTokenError("missing bearer token")

    parts = authorization_header.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise InvalidAuthTokenError("invalid bearer token header")

    return parts[1]

"""Shared helpers for account credential form inputs."""

from __future__ import annotations


def normalize_user_email(*, email: str) -> str:
    """Normalize one account email and reject blank values."""

    normalized = email.strip().lower()
    if not normalized:
        raise ValueError("email cannot be blank")
    return normalized


def passwords_match(*, password: str, confirmation: str) -> bool:
    """Return whether a password confirmation repeats the candidate exactly."""

    return password == confirmation

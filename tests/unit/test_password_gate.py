from __future__ import annotations

import pytest

from velo_storefront.application.services.password_gate import (
    SETTINGS_MISMATCH_MESSAGE,
    SIGNUP_MISMATCH_MESSAGE,
    PasswordMismatchError,
    PasswordRequirementsNotMetError,
    require_acceptable_password,
)
from velo_storefront.domain.auth.credentials import normalize_user_email, passwords_match
from velo_storefront.domain.auth.password_policy import PasswordRule


def test_gate_returns_requirements_for_acceptable_password() -> None:
    requirements = require_acceptable_password(password="Aa1!aaaa", confirmation="Aa1!aaaa")

    assert requirements.min_length is True
    assert requirements.has_symbol is True


def test_gate_rejects_mismatch_with_signup_message_by_default() -> None:
    with pytest.raises(PasswordMismatchError, match="^Passwords do not match$"):
        require_acceptable_password(password="Aa1!aaaa", confirmation="Aa1!aaab")

    assert SIGNUP_MISMATCH_MESSAGE == "Passwords do not match"


def test_gate_uses_settings_mismatch_message_when_given() -> None:
    with pytest.raises(PasswordMismatchError, match="^New passwords do not match$"):
        require_acceptable_password(
            password="Aa1!aaaa",
            confirmation="other",
            mismatch_message=SETTINGS_MISMATCH_MESSAGE,
        )


def test_gate_checks_confirmation_before_policy() -> None:
    with pytest.raises(PasswordMismatchError):
        require_acceptable_password(password="weak", confirmation="weaker")


def test_gate_rejects_policy_failure_with_unmet_rules() -> None:
    with pytest.raises(PasswordRequirementsNotMetError) as exc_info:
        require_acceptable_password(password="Password_1", confirmation="Password_1")

    error = exc_info.value
    assert str(error) == "Password does not meet requirements"
    assert error.unmet == (PasswordRule.HAS_SYMBOL,)
    assert error.requirements.has_symbol is False


def test_passwords_match_is_exact_without_trimming() -> None:
    assert passwords_match(password="Aa1!aaaa", confirmation="Aa1!aaaa") is True
    assert passwords_match(password="Aa1!aaaa", confirmation="Aa1!aaaa ") is False
    assert passwords_match(password="Aa1!aaaa", confirmation="aa1!aaaa") is False


def test_normalize_user_email_trims_and_lowercases() -> None:
    assert normalize_user_email(email="  Rider@Example.ORG ") == "rider@example.org"


def test_normalize_user_email_rejects_blank() -> None:
    with pytest.raises(ValueError, match="email cannot be blank"):
        normalize_user_email(email="   ")

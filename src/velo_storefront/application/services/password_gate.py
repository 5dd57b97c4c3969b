"""Pre-submission gate for any operation that sets a password."""

from __future__ import annotations

from velo_storefront.domain.auth.credentials import passwords_match
from velo_storefront.domain.auth.password_policy import (
    PasswordRequirements,
    PasswordRule,
    evaluate_password,
    is_password_valid,
    unmet_requirements,
)

SIGNUP_MISMATCH_MESSAGE = "Passwords do not match"
SETTINGS_MISMATCH_MESSAGE = "New passwords do not match"
REQUIREMENTS_NOT_MET_MESSAGE = "Password does not meet requirements"


class PasswordMismatchError(ValueError):
    """Raised when the confirmation field differs from the candidate."""


class PasswordRequirementsNotMetError(ValueError):
    """Raised when a candidate fails one or more policy rules."""

    def __init__(self, *, requirements: PasswordRequirements) -> None:
        super().__init__(REQUIREMENTS_NOT_MET_MESSAGE)
        self.requirements = requirements

    @property
    def unmet(self) -> tuple[PasswordRule, ...]:
        return unmet_requirements(self.requirements)


def require_acceptable_password(
    *,
    password: str,
    confirmation: str,
    mismatch_message: str = SIGNUP_MISMATCH_MESSAGE,
) -> PasswordRequirements:
    """Check confirmation first, then policy, and return the evaluated record."""

    if not passwords_match(password=password, confirmation=confirmation):
        raise PasswordMismatchError(mismatch_message)

    requirements = evaluate_password(password)
    if not is_password_valid(requirements):
        raise PasswordRequirementsNotMetError(requirements=requirements)
    return requirements

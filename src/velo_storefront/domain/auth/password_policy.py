"""Structural password policy shared by signup and account-settings flows."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import StrEnum

MIN_PASSWORD_LENGTH = 8
PASSWORD_SYMBOLS = frozenset('!@#$%^&*(),.?":{}|<>')

_UPPERCASE = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ")
_LOWERCASE = frozenset("abcdefghijklmnopqrstuvwxyz")
_DIGITS = frozenset("0123456789")


class PasswordRule(StrEnum):
    """Password rules in checklist order."""

    MIN_LENGTH = "min_length"
    HAS_UPPERCASE = "has_uppercase"
    HAS_LOWERCASE = "has_lowercase"
    HAS_NUMBER = "has_number"
    HAS_SYMBOL = "has_symbol"


REQUIREMENT_LABELS: dict[PasswordRule, str] = {
    PasswordRule.MIN_LENGTH: f"At least {MIN_PASSWORD_LENGTH} characters",
    PasswordRule.HAS_UPPERCASE: "One uppercase letter",
    PasswordRule.HAS_LOWERCASE: "One lowercase letter",
    PasswordRule.HAS_NUMBER: "One number",
    PasswordRule.HAS_SYMBOL: "One special character",
}


@dataclass(frozen=True)
class PasswordRequirements:
    """Which password rules one candidate satisfies.

    The record never holds the candidate itself; it is recomputed on every
    change and is never persisted.
    """

    min_length: bool
    has_uppercase: bool
    has_lowercase: bool
    has_number: bool
    has_symbol: bool

    def is_satisfied(self, rule: PasswordRule) -> bool:
        """Return the flag for one rule."""

        return bool(getattr(self, rule.value))


def evaluate_password(candidate: str) -> PasswordRequirements:
    """Report every rule for one candidate password.

    Character classes only look for presence of one qualifying character
    anywhere in the candidate. Letters and digits are ASCII only, and the
    symbol class is the fixed ``PASSWORD_SYMBOLS`` set, so ``_``, ``-``,
    backtick and whitespace never count as symbols.
    """

    characters = set(candidate)
    return PasswordRequirements(
        min_length=len(candidate) >= MIN_PASSWORD_LENGTH,
        has_uppercase=not characters.isdisjoint(_UPPERCASE),
        has_lowercase=not characters.isdisjoint(_LOWERCASE),
        has_number=not characters.isdisjoint(_DIGITS),
        has_symbol=not characters.isdisjoint(PASSWORD_SYMBOLS),
    )


def is_password_valid(requirements: PasswordRequirements) -> bool:
    """Return whether every rule in the record is satisfied."""

    return all(getattr(requirements, field.name) for field in fields(requirements))


def unmet_requirements(requirements: PasswordRequirements) -> tuple[PasswordRule, ...]:
    """Return failing rules in checklist order."""

    return tuple(rule for rule in PasswordRule if not requirements.is_satisfied(rule))


def requirement_checklist(
    requirements: PasswordRequirements,
) -> list[tuple[PasswordRule, str, bool]]:
    """Return one ``(rule, label, satisfied)`` line per rule for checklist rendering."""

    return [
        (rule, REQUIREMENT_LABELS[rule], requirements.is_satisfied(rule))
        for rule in PasswordRule
    ]

"""Pydantic models for account signup, login and password endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from velo_storefront.application.ports.profile_repository_port import ProfileRecord
from velo_storefront.domain.auth.password_policy import (
    PasswordRequirements,
    PasswordRule,
    is_password_valid,
    requirement_checklist,
)


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class PasswordCheckRequest(StrictModel):
    """Live checklist request for one candidate password."""

    password: str


class PasswordRequirementItem(StrictModel):
    """One checklist line."""

    rule: PasswordRule
    label: str
    satisfied: bool


class PasswordCheckResponse(StrictModel):
    """Checklist lines plus the aggregate gate verdict."""

    requirements: list[PasswordRequirementItem]
    is_valid: bool

    @classmethod
    def from_requirements(cls, requirements: PasswordRequirements) -> PasswordCheckResponse:
        return cls(
            requirements=[
                PasswordRequirementItem(rule=rule, label=label, satisfied=satisfied)
                for rule, label, satisfied in requirement_checklist(requirements)
            ],
            is_valid=is_password_valid(requirements),
        )


class SignupRequest(StrictModel):
    """Signup form payload."""

    email: str = Field(min_length=1)
    password: str
    confirm_password: str


class SignupResponse(StrictModel):
    """Signup result payload."""

    user_id: UUID
    email: str
    confirmation_required: bool


class LoginRequest(StrictModel):
    """Email/password login payload."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(StrictModel):
    """Session issued after a successful login."""

    user_id: UUID
    email: str
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None


class PasswordChangeRequest(StrictModel):
    """Account-settings password change payload."""

    new_password: str
    confirm_password: str


class PasswordChangeResponse(StrictModel):
    """Password change acknowledgement."""

    ok: bool


class ProfileUpdateRequest(StrictModel):
    """Account page profile edit payload; null or blank clears the name."""

    full_name: str | None = None


class ProfileResponse(StrictModel):
    """Profile row of the signed-in customer."""

    user_id: UUID
    email: str
    full_name: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: ProfileRecord) -> ProfileResponse:
        return cls(
            user_id=record.user_id,
            email=record.email,
            full_name=record.full_name,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class ErrorResponse(StrictModel):
    """Error body for gate failures that list unmet rules."""

    detail: str
    unmet_requirements: list[PasswordRule] = Field(default_factory=list)

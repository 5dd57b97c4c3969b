"""FastAPI router for signup, login, password and profile endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, status
from fastapi.responses import JSONResponse

from velo_storefront.application.dto.account_models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    PasswordChangeResponse,
    PasswordCheckRequest,
    PasswordCheckResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    SignupRequest,
    SignupResponse,
)
from velo_storefront.application.ports.identity_backend_port import (
    AccountAlreadyExistsError,
    IdentityBackendError,
    IdentityBackendUnavailableError,
    PasswordRejectedError,
    SessionExpiredError,
)
from velo_storefront.application.services.auth_service import AuthOutcome, AuthService
from velo_storefront.application.services.password_change_service import PasswordChangeService
from velo_storefront.application.services.password_gate import (
    PasswordMismatchError,
    PasswordRequirementsNotMetError,
)
from velo_storefront.application.services.profile_service import ProfileService
from velo_storefront.application.services.signup_service import SignupService
from velo_storefront.domain.auth.password_policy import evaluate_password
from velo_storefront.infrastructure.http.auth_guard import (
    InvalidAuthTokenError,
    MissingAuthTokenError,
    extract_bearer_token,
)


def build_account_router(
    *,
    signup_service: SignupService,
    auth_service: AuthService,
    password_change_service: PasswordChangeService,
    profile_service: ProfileService,
) -> APIRouter:
    """Build router exposing account credential and profile endpoints."""

    router = APIRouter(tags=["account"])

    @router.post("/auth/password-requirements", response_model=PasswordCheckResponse)
    async def password_requirements(payload: PasswordCheckRequest) -> PasswordCheckResponse:
        return PasswordCheckResponse.from_requirements(evaluate_password(payload.password))

    @router.post(
        "/auth/signup",
        response_model=SignupResponse,
        status_code=status.HTTP_201_CREATED,
        responses={422: {"model": ErrorResponse}},
    )
    async def signup(payload: SignupRequest) -> SignupResponse | JSONResponse:
        try:
            result = await signup_service.sign_up(
                email=payload.email,
                password=payload.password,
                confirm_password=payload.confirm_password,
            )
        except (PasswordMismatchError, PasswordRequirementsNotMetError) as exc:
            return _gate_error_response(exc)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except IdentityBackendError as exc:
            raise _http_error_for_backend(exc) from exc

        return SignupResponse(
            user_id=result.account.user_id,
            email=result.account.email,
            confirmation_required=result.confirmation_required,
        )

    @router.post("/auth/login", response_model=LoginResponse)
    async def login(payload: LoginRequest) -> LoginResponse:
        try:
            result = await auth_service.sign_in(email=payload.email, password=payload.password)
        except IdentityBackendError as exc:
            raise _http_error_for_backend(exc) from exc

        if result.outcome is AuthOutcome.INVALID_CREDENTIALS or result.session is None:
            raise HTTPException(status_code=401, detail="invalid credentials")

        session = result.session
        return LoginResponse(
            user_id=session.account.user_id,
            email=session.account.email,
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_at=session.expires_at,
        )

    @router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
    async def logout(authorization: Annotated[str | None, Header()] = None) -> None:
        token = _require_bearer_token(authorization)
        await auth_service.sign_out(access_token=token)

    @router.post(
        "/account/password",
        response_model=PasswordChangeResponse,
        responses={422: {"model": ErrorResponse}},
    )
    async def change_password(
        payload: PasswordChangeRequest,
        authorization: Annotated[str | None, Header()] = None,
    ) -> PasswordChangeResponse | JSONResponse:
        token = _require_bearer_token(authorization)
        try:
            await password_change_service.change_password(
                session_token=token,
                new_password=payload.new_password,
                confirm_password=payload.confirm_password,
            )
        except (PasswordMismatchError, PasswordRequirementsNotMetError) as exc:
            return _gate_error_response(exc)
        except IdentityBackendError as exc:
            raise _http_error_for_backend(exc) from exc

        return PasswordChangeResponse(ok=True)

    @router.get("/account/profile", response_model=ProfileResponse)
    async def get_profile(
        authorization: Annotated[str | None, Header()] = None,
    ) -> ProfileResponse:
        token = _require_bearer_token(authorization)
        try:
            record = await profile_service.get_profile(session_token=token)
        except IdentityBackendError as exc:
            raise _http_error_for_backend(exc) from exc
        return ProfileResponse.from_record(record)

    @router.patch("/account/profile", response_model=ProfileResponse)
    async def update_profile(
        payload: ProfileUpdateRequest,
        authorization: Annotated[str | None, Header()] = None,
    ) -> ProfileResponse:
        token = _require_bearer_token(authorization)
        try:
            record = await profile_service.update_full_name(
                session_token=token,
                full_name=payload.full_name,
            )
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except IdentityBackendError as exc:
            raise _http_error_for_backend(exc) from exc
        return ProfileResponse.from_record(record)

    return router


def _require_bearer_token(authorization_header: str | None) -> str:
    try:
        return extract_bearer_token(authorization_header)
    except (MissingAuthTokenError, InvalidAuthTokenError) as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def _gate_error_response(
    exc: PasswordMismatchError | PasswordRequirementsNotMetError,
) -> JSONResponse:
    """Render local gate failures with the unmet rules, if any."""

    unmet = list(exc.unmet) if isinstance(exc, PasswordRequirementsNotMetError) else []
    body = ErrorResponse(detail=str(exc), unmet_requirements=unmet)
    return JSONResponse(status_code=422, content=body.model_dump(mode="json"))


def _http_error_for_backend(exc: IdentityBackendError) -> HTTPException:
    """Map typed identity backend failures into HTTP response semantics.

    The backend's own message is surfaced as ``detail`` when it sent one.
    """

    if isinstance(exc, SessionExpiredError):
        return HTTPException(status_code=401, detail=exc.backend_message or "session expired")
    if isinstance(exc, PasswordRejectedError):
        return HTTPException(
            status_code=422,
            detail=exc.backend_message or "password rejected by identity backend",
        )
    if isinstance(exc, AccountAlreadyExistsError):
        return HTTPException(
            status_code=409,
            detail=exc.backend_message or "account already exists",
        )
    if isinstance(exc, IdentityBackendUnavailableError):
        return HTTPException(
            status_code=503,
            detail=exc.backend_message or "identity backend unavailable",
        )
    status_code = exc.status_code if exc.status_code and 400 <= exc.status_code < 500 else 400
    return HTTPException(status_code=status_code, detail=exc.backend_message or str(exc))

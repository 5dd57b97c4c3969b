"""storefront-api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

from velo_storefront.application.ports.identity_backend_port import IdentityBackendPort
from velo_storefront.application.ports.profile_repository_port import ProfileRepositoryPort
from velo_storefront.application.services.auth_service import AuthService
from velo_storefront.application.services.password_change_service import PasswordChangeService
from velo_storefront.application.services.profile_service import ProfileService
from velo_storefront.application.services.signup_service import SignupService
from velo_storefront.config.settings import load_settings
from velo_storefront.infrastructure.db.profile_repository import SqlAlchemyProfileRepository
from velo_storefront.infrastructure.db.session import create_session_factory
from velo_storefront.infrastructure.http.account_router import build_account_router
from velo_storefront.infrastructure.identity.http_client import IdentityHttpClient
from velo_storefront.infrastructure.logging import configure_logging

STOREFRONT_API_HOST = "0.0.0.0"
STOREFRONT_API_PORT = 8000
logger = logging.getLogger(__name__)


def build_profile_repository(database_url: str) -> ProfileRepositoryPort:
    """Build profile repository with SQLAlchemy session factory."""

    return SqlAlchemyProfileRepository(create_session_factory(database_url))


def create_app(
    *,
    identity: IdentityBackendPort | None = None,
    profiles: ProfileRepositoryPort | None = None,
    database_url: str | None = None,
) -> FastAPI:
    """Create FastAPI app for account credential and profile routes."""

    if identity is None or (profiles is None and database_url is None):
        settings = load_settings()
        configure_logging(level=settings.log_level)
        if database_url is None:
            database_url = settings.database_url
        if identity is None:
            identity = IdentityHttpClient(
                base_url=str(settings.identity_backend_url),
                anon_key=settings.identity_anon_key,
                timeout_seconds=settings.identity_timeout_seconds,
            )

    if profiles is None:
        assert database_url is not None
        profiles = build_profile_repository(database_url)

    app = FastAPI(title="velo-storefront")
    app.include_router(
        build_account_router(
            signup_service=SignupService(identity=identity, profiles=profiles),
            auth_service=AuthService(identity=identity, profiles=profiles),
            password_change_service=PasswordChangeService(identity=identity),
            profile_service=ProfileService(identity=identity, profiles=profiles),
        )
    )
    logger.info("storefront_api_app_created")
    return app


def run_asgi_server(
    *,
    host: str = STOREFRONT_API_HOST,
    port: int = STOREFRONT_API_PORT,
) -> None:
    """Run storefront-api as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.storefront_api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run storefront-api runtime process."""

    run_asgi_server()


if __name__ == "__main__":
    main()

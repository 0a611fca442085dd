from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.auth_service import AuthService
from ..infrastructure.repositories.user_repository import SQLiteUserRepository
from ..presentation.api.errors import register_exception_handlers
from ..presentation.api.routers import admin as admin_router
from ..presentation.api.routers import auth as auth_router
from ..services.email_service import EmailService
from ..services.one_time_tokens import OneTimeTokenGenerator
from ..services.password_hasher import PasswordHasher
from ..services.password_policy import PasswordPolicy
from ..services.token_codec import TokenCodec

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="CRM Portal Auth", lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(auth_router.router)
    app.include_router(admin_router.router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True}

    return app


def build_container(settings: Settings, user_repository, email_dispatcher) -> ApplicationContainer:
    """Wire the auth service from settings and the given collaborators."""
    token_codec = TokenCodec(
        access_secret=settings.jwt_access_secret,
        refresh_secret=settings.jwt_refresh_secret,
        access_ttl=timedelta(minutes=settings.access_token_exp_minutes),
        refresh_ttl=timedelta(days=settings.refresh_token_exp_days),
        algorithm=settings.jwt_algorithm,
    )
    auth_service = AuthService(
        user_repository=user_repository,
        email_dispatcher=email_dispatcher,
        token_codec=token_codec,
        password_hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        password_policy=PasswordPolicy(
            min_length=settings.password_min_length,
            require_complexity=settings.password_require_complexity,
        ),
        verification_tokens=OneTimeTokenGenerator(timedelta(hours=settings.verification_token_exp_hours)),
        reset_tokens=OneTimeTokenGenerator(timedelta(minutes=settings.reset_token_exp_minutes)),
        frontend_base_url=settings.frontend_base_url,
        skip_verification=settings.skip_email_verification,
        rotate_refresh_tokens=settings.refresh_token_rotation,
    )
    return ApplicationContainer(
        settings=settings,
        user_repository=user_repository,
        email_dispatcher=email_dispatcher,
        auth_service=auth_service,
    )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        if settings.uses_default_secrets:
            logger.warning("JWT secrets are using default values. Configure secure secrets in production.")
        if not settings.admin_secret:
            logger.info("ADMIN_SECRET not configured; admin operations are disabled")

        user_repository = SQLiteUserRepository(settings.database_path)
        email_service = EmailService(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_username=settings.smtp_username,
            smtp_password=settings.smtp_password,
            from_email=settings.smtp_from_email,
            from_name=settings.smtp_from_name,
        )
        app.state.container = build_container(settings, user_repository, email_service)  # type: ignore[attr-defined]

        try:
            yield
        finally:
            user_repository.close()

    return lifespan

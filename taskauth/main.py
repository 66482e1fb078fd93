"""
FastAPI application for the task tracker's authentication service.

Build with ``create_app()``; uvicorn runs it in factory mode (see the
root ``main.py``). Configuration is read once here, so a missing
JWT_SECRET stops startup before any traffic is accepted.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskauth.config import APP_VERSION, Settings
from taskauth.db import UserRepository
from taskauth.errors import AuthError
from taskauth.log_config import configure_logging
from taskauth.rate_limit import RateLimitGate
from taskauth.routers import auth, health
from taskauth.services.auth import AuthService
from taskauth.services.email import OtpMailer
from taskauth.services.otp import Mailer, OtpService
from taskauth.services.passwords import PasswordHasher
from taskauth.services.sessions import SessionIssuer

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, mailer: Mailer | None = None) -> FastAPI:
    if settings is None:
        settings = Settings.from_env()
    settings.validate()
    configure_logging(settings.log_level)

    # Built eagerly so configuration problems surface here, not per request.
    sessions = SessionIssuer(settings)
    rate_gate = RateLimitGate(
        settings.rate_limit_storage_uri,
        settings.rate_limit,
        enabled=settings.rate_limit_enabled,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        users = UserRepository(settings.db_path)
        await users.connect()
        otp = OtpService(users, mailer or OtpMailer(settings), settings.otp_ttl_seconds)
        app.state.users = users
        app.state.auth_service = AuthService(
            settings,
            users,
            PasswordHasher(settings.bcrypt_rounds),
            otp,
            sessions,
        )
        logger.info(
            "Auth service ready (env=%s, bcrypt rounds=%d, rate limit=%s)",
            settings.environment,
            settings.bcrypt_rounds,
            rate_gate.quota,
        )
        try:
            yield
        finally:
            await users.close()

    app = FastAPI(
        title="Task Tracker Auth API",
        description="Registration, login, email verification and session cookies",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.sessions = sessions
    app.state.rate_gate = rate_gate

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
            headers=exc.headers,
        )

    app.include_router(health.router)
    app.include_router(auth.router)
    return app

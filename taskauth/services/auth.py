"""
Auth orchestrator: register, login, verify-email and OTP resend.

Handlers in ``taskauth.routers.auth`` call into this service and attach
the returned session token to the response. All failures are raised as
``AuthError`` subclasses; nothing here knows about HTTP.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from taskauth.config import Settings
from taskauth.db import UserRepository
from taskauth.errors import (
    AlreadyExists,
    AlreadyVerified,
    DeliveryFailure,
    InvalidCredentials,
    MissingFields,
    NotFound,
    VerificationTimeout,
)
from taskauth.models import User
from taskauth.services.otp import OtpService
from taskauth.services.passwords import PasswordHasher
from taskauth.services.sessions import SessionIssuer

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


@dataclass
class AuthResult:
    user: User
    token: str
    verification_sent: bool = False


class AuthService:
    def __init__(
        self,
        settings: Settings,
        users: UserRepository,
        hasher: PasswordHasher,
        otp: OtpService,
        sessions: SessionIssuer,
    ) -> None:
        self._settings = settings
        self._users = users
        self._hasher = hasher
        self._otp = otp
        self._sessions = sessions

    async def register(
        self, name: str | None, email: str | None, password: str | None
    ) -> AuthResult:
        name = (name or "").strip()
        email = normalize_email(email)
        if not name or not email or not password:
            raise MissingFields()

        started = time.perf_counter()
        logger.info("Register request for %s", email)

        if await self._users.get_by_email(email) is not None:
            raise AlreadyExists()

        password_hash = await self._hasher.hash_async(password)
        verification_required = self._settings.require_email_verification
        user = await self._users.create(
            name,
            email,
            password_hash,
            is_account_verified=not verification_required,
        )
        verification_sent = False
        if verification_required:
            # The account exists either way; a lost email is recoverable
            # through send-verify-otp.
            try:
                await self._otp.issue(user)
                verification_sent = True
            except DeliveryFailure:
                logger.warning("Verification email for user %s not delivered", user.id)

        token = self._sessions.issue(user.id)
        logger.info("Registered user %s in %.1f ms", user.id, _elapsed_ms(started))
        return AuthResult(user=user, token=token, verification_sent=verification_sent)

    async def login(self, email: str | None, password: str | None) -> AuthResult:
        email = normalize_email(email)
        if not email or not password:
            raise MissingFields("Email and password are required")

        started = time.perf_counter()
        logger.info("Login request for %s", email)

        user = await self._users.get_by_email(email)
        if user is None:
            logger.info("Login failed for %s: no such user", email)
            raise NotFound()

        timeout = self._settings.password_verify_timeout
        try:
            # On timeout only the wait is abandoned; the worker thread runs
            # bcrypt to completion and its result is dropped.
            matched = await asyncio.wait_for(
                self._hasher.verify_async(password, user.password_hash),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "Password verification for %s exceeded %.1fs", email, timeout
            )
            raise VerificationTimeout() from exc

        if not matched:
            logger.info(
                "Login failed for %s: password mismatch (%.1f ms)",
                email,
                _elapsed_ms(started),
            )
            raise InvalidCredentials()

        token = self._sessions.issue(user.id)
        logger.info("Login success for %s in %.1f ms", email, _elapsed_ms(started))
        return AuthResult(user=user, token=token)

    async def verify_email(self, email: str | None, otp: str | int | None) -> AuthResult:
        user = await self._otp.verify(normalize_email(email), otp)
        return AuthResult(user=user, token=self._sessions.issue(user.id))

    async def send_verify_otp(self, user: User) -> None:
        if user.is_account_verified:
            raise AlreadyVerified()
        await self._otp.issue(user)

    async def get_user(self, user_id: str | None) -> User | None:
        if not user_id:
            return None
        return await self._users.get_by_id(user_id)

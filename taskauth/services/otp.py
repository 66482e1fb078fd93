"""
One-time verification codes for proving control of an email address.

Codes are 6 digits, stored in plaintext on the user record next to an
expiry timestamp (ms since epoch). Both fields are set together on issue
and cleared together on successful verification.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import Callable, Protocol

from taskauth.errors import CodeMismatch, DeliveryFailure, Expired, NotFound
from taskauth.models import User

logger = logging.getLogger(__name__)

OTP_MIN = 100_000
OTP_MAX = 999_999


def generate_otp() -> str:
    """Uniform 6-digit code in [100000, 999999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def now_ms() -> int:
    return int(time.time() * 1000)


class Mailer(Protocol):
    async def send_verification_otp(self, to_email: str, otp: str) -> None: ...


class UserStore(Protocol):
    async def get_by_email(self, email: str) -> User | None: ...

    async def save(self, user: User) -> User: ...


class OtpService:
    def __init__(
        self,
        users: UserStore,
        mailer: Mailer,
        ttl_seconds: int,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._users = users
        self._mailer = mailer
        self._ttl_ms = ttl_seconds * 1000
        self._clock = clock

    async def issue(self, user: User) -> str:
        """Store a fresh code on ``user`` and email it."""
        otp = generate_otp()
        user.verify_otp = otp
        user.verify_otp_expire_at = self._clock() + self._ttl_ms
        await self._users.save(user)

        try:
            await self._mailer.send_verification_otp(user.email, otp)
        except Exception as exc:
            raise DeliveryFailure() from exc
        logger.info("Verification code issued for user %s", user.id)
        return otp

    async def verify(self, email: str, submitted_otp: str | int | None) -> User:
        """Check ``submitted_otp`` and mark the account verified.

        Existence is checked before the code, and the code before expiry,
        so the caller always gets the most specific error.
        """
        user = await self._users.get_by_email(email)
        if user is None:
            raise NotFound("User not found.")

        # A cleared record has no code to match, so "" never verifies and is
        # reported as a mismatch rather than an expiry.
        if not user.verify_otp or user.verify_otp != str(submitted_otp):
            raise CodeMismatch()

        if not user.verify_otp_expire_at or self._clock() > user.verify_otp_expire_at:
            raise Expired()

        user.is_account_verified = True
        user.clear_otp()
        await self._users.save(user)
        logger.info("Email verified for user %s", user.id)
        return user

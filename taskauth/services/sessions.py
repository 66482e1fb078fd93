"""
Session tokens: signed JWTs carried in the ``token`` cookie.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Response

from taskauth.config import SESSION_COOKIE, Settings
from taskauth.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SessionIssuer:
    """Mints, decodes, attaches and clears session tokens."""

    def __init__(self, settings: Settings) -> None:
        if not settings.jwt_secret:
            raise ConfigurationError("JWT_SECRET is not configured; refusing to issue sessions")
        self._settings = settings
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm

    # ── Tokens ────────────────────────────────────────────────────────

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "id": user_id,
            "iat": now,
            "exp": now + timedelta(days=self._settings.jwt_expiry_days),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str | None) -> str | None:
        """Return the user id carried by a valid token, else None."""
        if not token:
            return None
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            logger.debug("Session token expired")
            return None
        except jwt.PyJWTError:
            logger.debug("Session token rejected")
            return None
        user_id = payload.get("id")
        return str(user_id) if user_id else None

    # ── Cookie contract ───────────────────────────────────────────────

    def default_same_site(self) -> str:
        return "none" if self._settings.is_production else "lax"

    def verify_email_same_site(self) -> str:
        """SameSite used by the verify-email path.

        Differs from register/login outside production ("strict" rather
        than "lax"); VERIFY_EMAIL_COOKIE_SAMESITE overrides it.
        """
        if self._settings.verify_email_same_site:
            return self._settings.verify_email_same_site
        return "none" if self._settings.is_production else "strict"

    def attach(self, response: Response, token: str, *, same_site: str | None = None) -> None:
        response.set_cookie(
            key=SESSION_COOKIE,
            value=token,
            httponly=True,
            secure=self._settings.is_production,
            samesite=same_site or self.default_same_site(),
            max_age=self._settings.session_max_age,
        )

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            key=SESSION_COOKIE,
            httponly=True,
            secure=self._settings.is_production,
            samesite=self.default_same_site(),
        )

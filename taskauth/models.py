"""Pydantic models for the authentication API and the stored user record."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# ── Stored user ───────────────────────────────────────────────────────────


class User(BaseModel):
    """Full user record as kept by the storage layer.

    ``password_hash`` and the OTP fields never leave the service; use
    ``UserInfo.from_user`` to build the outward-facing view.
    """

    id: str
    name: str
    email: str
    password_hash: str
    is_account_verified: bool = False
    verify_otp: str = ""
    verify_otp_expire_at: int = 0  # ms since epoch, 0 when inactive
    created_at: datetime
    updated_at: datetime

    def clear_otp(self) -> None:
        self.verify_otp = ""
        self.verify_otp_expire_at = 0


class UserInfo(BaseModel):
    """Sanitised user returned by ``GET /api/auth/me``."""

    id: str
    name: str
    email: str
    is_account_verified: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            is_account_verified=user.is_account_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


# ── Requests ──────────────────────────────────────────────────────────────
# Every field is optional so that a missing value is reported by the
# service as "Missing details" rather than rejected with a 422.


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class VerifyEmailRequest(BaseModel):
    email: str | None = None
    otp: str | int | None = Field(None, description="6-digit code, as string or number")


# ── Responses ─────────────────────────────────────────────────────────────


class AuthResponse(BaseModel):
    success: bool
    message: str | None = None


class MeResponse(BaseModel):
    success: bool = True
    user: UserInfo


class HealthResponse(BaseModel):
    status: str  # "ok" or "degraded"
    version: str
    user_store: bool
    rate_limit: str
    timestamp: datetime

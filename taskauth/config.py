"""
Application configuration from environment variables.

Settings are read once at startup into an immutable ``Settings`` object
which is then handed to every service that needs it. A .env file in the
project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from taskauth.errors import ConfigurationError

APP_VERSION = "0.1.0"

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# bcrypt accepts 4..31; anything above 12 makes login noticeably slow.
MIN_BCRYPT_ROUNDS = 4
MAX_BCRYPT_ROUNDS = 12
DEFAULT_BCRYPT_ROUNDS = 10

SESSION_COOKIE = "token"


def clamp_rounds(rounds: int | None) -> int:
    """Clamp a configured bcrypt cost into the supported range."""
    if not rounds:
        rounds = DEFAULT_BCRYPT_ROUNDS
    return max(MIN_BCRYPT_ROUNDS, min(rounds, MAX_BCRYPT_ROUNDS))


def _get_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {key} must be an integer") from exc


def _get_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {key} must be a number") from exc


def _get_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # ── Environment ───────────────────────────────────────────────────
    environment: str = "development"
    log_level: str = "INFO"

    # ── Storage ───────────────────────────────────────────────────────
    db_path: str = str(DATA_DIR / "taskauth.db")

    # ── JWT ───────────────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expiry_days: int = 7

    # ── Passwords ─────────────────────────────────────────────────────
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    password_verify_timeout: float = 10.0

    # ── Email verification ────────────────────────────────────────────
    require_email_verification: bool = False
    otp_ttl_seconds: int = 24 * 60 * 60
    verify_email_same_site: str | None = None

    # ── Rate limiting ─────────────────────────────────────────────────
    rate_limit: str = "20/60 seconds"
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"

    # ── SMTP ──────────────────────────────────────────────────────────
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_from_email: str = "noreply@taskauth.local"
    smtp_use_tls: bool = True
    smtp_mode: str = "auto"

    def __post_init__(self) -> None:
        # Frozen dataclass: route the clamped value through object.__setattr__.
        object.__setattr__(self, "bcrypt_rounds", clamp_rounds(self.bcrypt_rounds))
        if self.verify_email_same_site is not None:
            value = self.verify_email_same_site.lower()
            if value not in ("lax", "strict", "none"):
                raise ConfigurationError(
                    f"VERIFY_EMAIL_COOKIE_SAMESITE must be lax, strict or none, got {value!r}"
                )
            object.__setattr__(self, "verify_email_same_site", value)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def session_max_age(self) -> int:
        """Cookie lifetime in seconds (604,800 for the default 7 days)."""
        return self.jwt_expiry_days * 24 * 60 * 60

    def smtp_enabled(self) -> bool:
        """True when SMTP should actually send emails.

        Controlled by SMTP_ENABLED env var:
          • "auto" (default) — send if credentials are configured
          • "true"  — always send (will fail if credentials are missing)
          • "false" — never send, log to console instead
        """
        mode = self.smtp_mode.lower()
        if mode == "false":
            return False
        if mode == "true":
            return True
        return bool(self.smtp_host and self.smtp_username and self.smtp_password)

    def validate(self) -> "Settings":
        if not self.jwt_secret:
            raise ConfigurationError("JWT_SECRET is not configured; refusing to issue sessions")
        return self

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(PROJECT_ROOT / ".env")
        settings = cls(
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            db_path=os.getenv("DB_PATH", str(DATA_DIR / "taskauth.db")),
            jwt_secret=os.getenv("JWT_SECRET", ""),
            jwt_expiry_days=_get_int("JWT_EXPIRY_DAYS", 7),
            bcrypt_rounds=_get_int("BCRYPT_SALT_ROUNDS", DEFAULT_BCRYPT_ROUNDS),
            password_verify_timeout=_get_float("PASSWORD_VERIFY_TIMEOUT", 10.0),
            require_email_verification=_get_bool("REQUIRE_EMAIL_VERIFICATION", False),
            otp_ttl_seconds=_get_int("OTP_TTL_SECONDS", 24 * 60 * 60),
            verify_email_same_site=os.getenv("VERIFY_EMAIL_COOKIE_SAMESITE") or None,
            rate_limit=os.getenv("RATE_LIMIT", "20/60 seconds"),
            rate_limit_enabled=_get_bool("RATE_LIMIT_ENABLED", True),
            rate_limit_storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
            smtp_host=os.getenv("SMTP_HOST", ""),
            smtp_port=_get_int("SMTP_PORT", 587),
            smtp_username=os.getenv("SMTP_USERNAME", ""),
            smtp_password=os.getenv("SMTP_PASSWORD", ""),
            smtp_from_email=os.getenv("SMTP_FROM_EMAIL", "noreply@taskauth.local"),
            smtp_use_tls=_get_bool("SMTP_USE_TLS", True),
            smtp_mode=os.getenv("SMTP_ENABLED", "auto"),
        )
        return settings.validate()

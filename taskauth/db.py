"""
SQLite user store using aiosqlite.

Holds the ``users`` table. The table is created automatically on first
connect. ``email`` carries a UNIQUE constraint: it is the actual guard
against two concurrent registrations for the same address.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import aiosqlite

from taskauth.errors import AlreadyExists, StorageFailure
from taskauth.models import User

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id                   TEXT PRIMARY KEY,
    name                 TEXT NOT NULL,
    email                TEXT NOT NULL UNIQUE,
    password_hash        TEXT NOT NULL,
    is_account_verified  INTEGER NOT NULL DEFAULT 0,
    verify_otp           TEXT NOT NULL DEFAULT '',
    verify_otp_expire_at INTEGER NOT NULL DEFAULT 0,
    created_at           TEXT NOT NULL,
    updated_at           TEXT NOT NULL
);
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_user(row: aiosqlite.Row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        is_account_verified=bool(row["is_account_verified"]),
        verify_otp=row["verify_otp"],
        verify_otp_expire_at=row["verify_otp_expire_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class UserRepository:
    """Lookup-by-email / read-modify-write access to user records."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    # ── Lifecycle ─────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Open the database and create tables if they don't exist."""
        path = Path(self._db_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        self._db = await aiosqlite.connect(str(path))
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        logger.info("User store initialized at %s", path)

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.info("User store connection closed")

    async def ping(self) -> bool:
        """True when the store answers a trivial query."""
        if self._db is None:
            return False
        try:
            async with self._db.execute("SELECT 1") as cur:
                await cur.fetchone()
        except aiosqlite.Error:
            logger.exception("User store ping failed")
            return False
        return True

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageFailure()
        return self._db

    # ── Queries ───────────────────────────────────────────────────────

    async def get_by_email(self, email: str) -> User | None:
        try:
            async with self._conn().execute(
                "SELECT * FROM users WHERE email = ?", (email,)
            ) as cur:
                row = await cur.fetchone()
        except aiosqlite.Error as exc:
            logger.exception("User lookup by email failed")
            raise StorageFailure() from exc
        return _row_to_user(row) if row else None

    async def get_by_id(self, user_id: str) -> User | None:
        try:
            async with self._conn().execute(
                "SELECT * FROM users WHERE id = ?", (user_id,)
            ) as cur:
                row = await cur.fetchone()
        except aiosqlite.Error as exc:
            logger.exception("User lookup by id failed")
            raise StorageFailure() from exc
        return _row_to_user(row) if row else None

    # ── Writes ────────────────────────────────────────────────────────

    async def create(
        self,
        name: str,
        email: str,
        password_hash: str,
        *,
        is_account_verified: bool = False,
    ) -> User:
        """Insert a new user and return it.

        Raises ``AlreadyExists`` when the email is taken, even if the
        caller's earlier existence check passed.
        """
        db = self._conn()
        now = _now()
        user = User(
            id=str(uuid4()),
            name=name,
            email=email,
            password_hash=password_hash,
            is_account_verified=is_account_verified,
            created_at=now,
            updated_at=now,
        )
        try:
            await db.execute(
                """
                INSERT INTO users (
                    id, name, email, password_hash, is_account_verified,
                    verify_otp, verify_otp_expire_at, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user.id, user.name, user.email, user.password_hash,
                    int(user.is_account_verified),
                    user.verify_otp, user.verify_otp_expire_at,
                    now.isoformat(), now.isoformat(),
                ),
            )
            await db.commit()
        except aiosqlite.IntegrityError as exc:
            await db.rollback()
            logger.info("Duplicate registration rejected by unique constraint")
            raise AlreadyExists() from exc
        except aiosqlite.Error as exc:
            logger.exception("Failed to insert user")
            raise StorageFailure() from exc
        return user

    async def save(self, user: User) -> User:
        """Persist the mutable fields of an existing user."""
        db = self._conn()
        user.updated_at = _now()
        try:
            await db.execute(
                """
                UPDATE users SET
                    name = ?, is_account_verified = ?,
                    verify_otp = ?, verify_otp_expire_at = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    user.name,
                    int(user.is_account_verified),
                    user.verify_otp,
                    user.verify_otp_expire_at,
                    user.updated_at.isoformat(),
                    user.id,
                ),
            )
            await db.commit()
        except aiosqlite.Error as exc:
            logger.exception("Failed to update user %s", user.id)
            raise StorageFailure() from exc
        return user

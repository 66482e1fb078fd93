"""
Password hashing with bcrypt.

The cost factor is clamped (see ``taskauth.config.clamp_rounds``) so a
misconfigured environment cannot make every login arbitrarily slow.
Comparison is delegated to ``bcrypt.checkpw``, which is constant-time.
"""

from __future__ import annotations

import asyncio
import logging

import bcrypt

from taskauth.config import clamp_rounds

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes; newer releases raise instead
# of truncating, so cut explicitly.
_BCRYPT_MAX_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    def __init__(self, rounds: int | None = None) -> None:
        self.rounds = clamp_rounds(rounds)

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode(plaintext), salt).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(_encode(plaintext), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    # ── Async wrappers ────────────────────────────────────────────────
    # bcrypt holds the CPU for tens of milliseconds; keep it off the loop.

    async def hash_async(self, plaintext: str) -> str:
        return await asyncio.to_thread(self.hash, plaintext)

    async def verify_async(self, plaintext: str, hashed: str) -> bool:
        return await asyncio.to_thread(self.verify, plaintext, hashed)

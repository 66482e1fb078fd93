"""
Sliding-window rate limiting for the auth endpoints.

The gate itself keeps no counters: it hands each hit to a ``limits``
moving-window limiter backed by the configured storage (``memory://`` for
a single process, ``redis://`` / ``rediss://`` for a shared counter
service such as Upstash). The storage performs the atomic
increment-and-check.

Default quota: 20 requests per 60 seconds per client key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from limits import parse
from limits.storage import storage_from_string
from limits.strategies import MovingWindowRateLimiter

logger = logging.getLogger(__name__)

DEFAULT_QUOTA = "20/60 seconds"


@dataclass(frozen=True)
class RateLimitDecision:
    permitted: bool
    limit: int
    remaining: int
    reset_at: float  # epoch seconds

    def headers(self, now: float) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }
        if not self.permitted:
            headers["Retry-After"] = str(max(1, int(self.reset_at - now) + 1))
        return headers


class RateLimitGate:
    """Decides whether one more request from ``key`` fits the quota."""

    def __init__(
        self,
        storage_uri: str = "memory://",
        quota: str = DEFAULT_QUOTA,
        *,
        namespace: str = "auth",
        enabled: bool = True,
    ) -> None:
        self._storage = storage_from_string(storage_uri)
        self._limiter = MovingWindowRateLimiter(self._storage)
        self._item = parse(quota)
        self.namespace = namespace
        self.enabled = enabled

    @property
    def quota(self) -> str:
        return str(self._item)

    def allow(self, key: str) -> RateLimitDecision:
        permitted = self._limiter.hit(self._item, self.namespace, key)
        reset_at, remaining = self._limiter.get_window_stats(self._item, self.namespace, key)
        if not permitted:
            logger.warning("Rate limit exceeded for %s (%s)", key, self.quota)
        return RateLimitDecision(
            permitted=permitted,
            limit=self._item.amount,
            remaining=remaining,
            reset_at=reset_at,
        )

    def reset(self) -> None:
        """Drop all counters (memory storage only; used by tests)."""
        self._storage.reset()

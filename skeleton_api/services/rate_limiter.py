"""
Rate Limiting Service

Fixed-window request counting per client key, backed by the ``limits``
library (the engine underneath slowapi).

Semantics:
==========
- Each key owns a window of ``period`` seconds and a budget of ``limit``
- The first request after a window has expired starts a new window at now
- Every request increments the counter; allowed = count <= limit
- Bursts straddling a window boundary can admit up to 2 x limit requests;
  that is the accepted cost of fixed windows

Concurrency:
============
MemoryStorage guards each key's counter with its own lock, so concurrent
requests from the same client serialize on the increment while different
clients never contend.
"""

import logging
import math
import time
from dataclasses import dataclass

from fastapi import Request
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
DEFAULT_PERIOD = 60


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: int

    @property
    def headers(self) -> dict[str, str]:
        """Standard rate limit response headers."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }


class RateLimiter:
    """
    In-process fixed-window rate limiter.

    Args:
        limit: Requests allowed per window
        period: Window length in seconds
        storage: limits storage backend (defaults to a fresh MemoryStorage)

    Example:
        limiter = RateLimiter(limit=100, period=60)
        result = limiter.check("203.0.113.7")
        if not result.allowed:
            ...
    """

    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        period: int = DEFAULT_PERIOD,
        storage: Storage | None = None,
    ) -> None:
        if limit < 1 or period < 1:
            raise ValueError("limit and period must both be positive")
        self.limit = limit
        self.period = period
        self._item = RateLimitItemPerSecond(limit, period)
        self._storage = storage or MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self._storage)

    def check(self, key: str) -> RateLimitResult:
        """
        Count one request for ``key`` and report whether it is allowed.

        Returns:
            RateLimitResult with the remaining budget and the epoch second
            at which the current window resets
        """
        allowed = self._strategy.hit(self._item, key)
        reset_time, remaining = self._strategy.get_window_stats(self._item, key)

        result = RateLimitResult(
            allowed=allowed,
            limit=self.limit,
            remaining=max(0, int(remaining)),
            reset_at=math.ceil(reset_time) if reset_time else int(time.time()) + self.period,
        )

        if not allowed:
            logger.warning(f"Rate limit exceeded for {key}: {self.limit} per {self.period}s")

        return result

    def reset(self, key: str) -> None:
        """Forget the current window for ``key``."""
        self._storage.clear(self._item.key_for(key))


def get_client_ip(request: Request) -> str:
    """
    Get client IP address for rate limiting.

    Handles common proxy headers to get the real client IP.
    Falls back to direct connection IP if no proxy headers.
    """
    # X-Forwarded-For can contain multiple IPs; first is the client
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    # nginx
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)

"""Admission control — request counting per key over a time window.

The limiter itself is storage-agnostic. Concrete stores implement the
counting strategy:

- ``RedisRateLimitStore``: sliding window over a shared sorted set
- ``MemoryRateLimitStore``: fixed window held in process memory

The store is chosen once at startup (see ``storefront.admission``) and
injected into ``AdmissionLimiter``.
"""

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single admission check."""

    allowed: bool
    remaining: int
    reset_at: int  # epoch milliseconds
    limit: int

    def retry_after_seconds(self, now: int | None = None) -> int:
        now = now if now is not None else now_ms()
        return max(0, math.ceil((self.reset_at - now) / 1000))


@dataclass(frozen=True)
class RateLimitStatus:
    """Current usage of a key, read without consuming a request."""

    count: int
    remaining: int
    reset_at: int


class RateLimitStore(ABC):
    """Abstract interface for rate limit counters."""

    @abstractmethod
    def check(self, key: str, max_requests: int, window_ms: int) -> RateLimitDecision:
        """Count one request against ``key`` and decide whether it is admitted."""
        ...

    @abstractmethod
    def status(self, key: str, max_requests: int, window_ms: int) -> RateLimitStatus:
        """Report usage of ``key`` without counting a request."""
        ...

    @abstractmethod
    def reset(self, key: str) -> None:
        """Forget all requests counted against ``key``."""
        ...


class AdmissionLimiter:
    """Front door for rate limiting, delegating counting to an injected store."""

    def __init__(self, store: RateLimitStore):
        self.store = store

    def check(self, key: str, max_requests: int = 5, window_ms: int = 60_000) -> RateLimitDecision:
        decision = self.store.check(key, max_requests, window_ms)
        if not decision.allowed:
            logger.info(
                "Rate limit exceeded",
                key=key,
                limit=max_requests,
                window_ms=window_ms,
                reset_at=decision.reset_at,
            )
        return decision

    def status(self, key: str, max_requests: int, window_ms: int) -> RateLimitStatus:
        return self.store.status(key, max_requests, window_ms)

    def reset(self, key: str) -> None:
        self.store.reset(key)


def rate_limit_headers(decision: RateLimitDecision, now: int | None = None) -> dict[str, str]:
    """Standard rate limit headers for an HTTP response."""
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(math.ceil(decision.reset_at / 1000)),
        "Retry-After": str(decision.retry_after_seconds(now)),
    }

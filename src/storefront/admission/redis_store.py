"""Redis-backed sliding-window rate limit store.

Every admitted request adds its timestamp to a sorted set under
``ratelimit:<key>``. A check trims entries older than the window, counts the
rest and admits the request while the count is below the limit. The key
expires after one window of inactivity. A check costs two round trips: one
pipeline trims and reads the window, a second records an admitted request.

Redis errors never fail the caller: the check is answered by the
process-local fallback store instead and a warning is logged.
"""

import uuid
from collections.abc import Callable

import structlog
from redis.exceptions import RedisError

from storefront.admission.limiter import (
    RateLimitDecision,
    RateLimitStatus,
    RateLimitStore,
    now_ms,
)
from storefront.admission.memory_store import MemoryRateLimitStore

logger = structlog.get_logger(__name__)

KEY_PREFIX = "ratelimit:"


class RedisRateLimitStore(RateLimitStore):
    def __init__(
        self,
        client,
        fallback: MemoryRateLimitStore | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.client = client
        self.clock = clock
        self.fallback = fallback or MemoryRateLimitStore(clock=clock)

    @staticmethod
    def _redis_key(key: str) -> str:
        return f"{KEY_PREFIX}{key}"

    def _window(self, redis_key: str, now: int, window_ms: int) -> tuple[int, int]:
        """Trim the window and return ``(count, reset_at)`` in one pipeline."""
        pipe = self.client.pipeline()
        pipe.zremrangebyscore(redis_key, 0, now - window_ms)
        pipe.zcard(redis_key)
        pipe.zrange(redis_key, 0, 0, withscores=True)
        _, count, oldest = pipe.execute()
        reset_at = int(oldest[0][1]) + window_ms if oldest else now + window_ms
        return count, reset_at

    def check(self, key: str, max_requests: int, window_ms: int) -> RateLimitDecision:
        try:
            return self._check(key, max_requests, window_ms)
        except RedisError as exc:
            logger.warning(
                "Redis rate limit check failed, using in-memory fallback",
                key=key,
                error=str(exc),
            )
            return self.fallback.check(key, max_requests, window_ms)

    def _check(self, key: str, max_requests: int, window_ms: int) -> RateLimitDecision:
        now = self.clock()
        redis_key = self._redis_key(key)

        count, reset_at = self._window(redis_key, now, window_ms)

        if count >= max_requests:
            return RateLimitDecision(allowed=False, remaining=0, reset_at=reset_at, limit=max_requests)

        # Unique member so concurrent requests in the same millisecond all count
        pipe = self.client.pipeline()
        pipe.zadd(redis_key, {f"{now}:{uuid.uuid4().hex[:8]}": now})
        pipe.pexpire(redis_key, window_ms)
        pipe.execute()

        return RateLimitDecision(
            allowed=True,
            remaining=max_requests - (count + 1),
            reset_at=now + window_ms,
            limit=max_requests,
        )

    def status(self, key: str, max_requests: int, window_ms: int) -> RateLimitStatus:
        now = self.clock()
        redis_key = self._redis_key(key)
        try:
            count, reset_at = self._window(redis_key, now, window_ms)
        except RedisError as exc:
            logger.warning("Redis rate limit status failed, using in-memory fallback", key=key, error=str(exc))
            return self.fallback.status(key, max_requests, window_ms)

        return RateLimitStatus(count=count, remaining=max(0, max_requests - count), reset_at=reset_at)

    def reset(self, key: str) -> None:
        try:
            self.client.delete(self._redis_key(key))
        except RedisError as exc:
            logger.error("Failed to reset rate limit in Redis", key=key, error=str(exc))
        self.fallback.reset(key)

"""Process-local fixed-window rate limit store.

Each key holds a ``{count, reset_at}`` pair that starts over once ``now``
passes ``reset_at``. Counters live in this process only: when the
application runs as N instances, each instance admits ``max_requests`` on
its own, so the aggregate limit is ``max_requests * N``. The
read-modify-write on a record is not atomic either, which can under-count
at the edge of a window under heavy concurrency. Both are acceptable for an
anti-abuse limiter.

Stale records are swept from inside ``check`` at most once per window, so
the map stays bounded by the keys seen in roughly the last two windows.
"""

from collections.abc import Callable
from dataclasses import dataclass

from storefront.admission.limiter import (
    RateLimitDecision,
    RateLimitStatus,
    RateLimitStore,
    now_ms,
)


@dataclass
class WindowRecord:
    count: int
    reset_at: int


class MemoryRateLimitStore(RateLimitStore):
    def __init__(self, clock: Callable[[], int] = now_ms):
        self.clock = clock
        self.records: dict[str, WindowRecord] = {}
        self._next_purge_at = 0

    def check(self, key: str, max_requests: int, window_ms: int) -> RateLimitDecision:
        now = self.clock()
        if now >= self._next_purge_at:
            self.purge_expired()
            self._next_purge_at = now + window_ms

        record = self.records.get(key)

        if record is None or now > record.reset_at:
            record = WindowRecord(count=1, reset_at=now + window_ms)
            self.records[key] = record
            return RateLimitDecision(
                allowed=True,
                remaining=max_requests - 1,
                reset_at=record.reset_at,
                limit=max_requests,
            )

        if record.count >= max_requests:
            return RateLimitDecision(allowed=False, remaining=0, reset_at=record.reset_at, limit=max_requests)

        record.count += 1
        return RateLimitDecision(
            allowed=True,
            remaining=max_requests - record.count,
            reset_at=record.reset_at,
            limit=max_requests,
        )

    def status(self, key: str, max_requests: int, window_ms: int) -> RateLimitStatus:
        now = self.clock()
        record = self.records.get(key)
        if record is None or now > record.reset_at:
            return RateLimitStatus(count=0, remaining=max_requests, reset_at=now + window_ms)

        return RateLimitStatus(
            count=record.count,
            remaining=max(0, max_requests - record.count),
            reset_at=record.reset_at,
        )

    def reset(self, key: str) -> None:
        self.records.pop(key, None)

    def purge_expired(self) -> int:
        """Drop records whose window has passed. Returns the number removed."""
        now = self.clock()
        expired = [key for key, record in self.records.items() if now > record.reset_at]
        for key in expired:
            del self.records[key]
        return len(expired)

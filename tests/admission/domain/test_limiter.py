"""Tests for the limiter front door, decisions and response headers."""

from dataclasses import FrozenInstanceError
from unittest.mock import MagicMock

import pytest

from storefront.admission.limiter import (
    AdmissionLimiter,
    RateLimitDecision,
    rate_limit_headers,
)
from storefront.admission.memory_store import MemoryRateLimitStore


class TestRateLimitDecision:
    def test_retry_after_rounds_up(self):
        decision = RateLimitDecision(allowed=False, remaining=0, reset_at=10_500, limit=5)
        assert decision.retry_after_seconds(now=9_000) == 2

    def test_retry_after_never_negative(self):
        decision = RateLimitDecision(allowed=True, remaining=3, reset_at=10_000, limit=5)
        assert decision.retry_after_seconds(now=20_000) == 0

    def test_decision_is_immutable(self):
        decision = RateLimitDecision(allowed=True, remaining=3, reset_at=10_000, limit=5)
        with pytest.raises(FrozenInstanceError):
            decision.allowed = False


class TestRateLimitHeaders:
    def test_headers_from_decision(self):
        decision = RateLimitDecision(allowed=False, remaining=0, reset_at=1_700_000_000_500, limit=5)
        headers = rate_limit_headers(decision, now=1_700_000_000_000)

        assert headers == {
            "X-RateLimit-Limit": "5",
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": "1700000001",
            "Retry-After": "1",
        }


class TestAdmissionLimiter:
    def test_delegates_to_store(self):
        store = MagicMock()
        store.check.return_value = RateLimitDecision(allowed=True, remaining=4, reset_at=1, limit=5)
        limiter = AdmissionLimiter(store)

        decision = limiter.check("checkout:ip", max_requests=5, window_ms=300_000)

        store.check.assert_called_once_with("checkout:ip", 5, 300_000)
        assert decision.allowed is True

    def test_defaults(self):
        limiter = AdmissionLimiter(MemoryRateLimitStore())
        decisions = [limiter.check("k") for _ in range(6)]
        assert decisions[-1].allowed is False
        assert decisions[0].limit == 5

    def test_status_and_reset(self):
        limiter = AdmissionLimiter(MemoryRateLimitStore())
        limiter.check("k", 2, 60_000)
        assert limiter.status("k", 2, 60_000).remaining == 1
        limiter.reset("k")
        assert limiter.status("k", 2, 60_000).count == 0

    def test_one_off_keys_do_not_accumulate(self):
        clock = {"now": 1_000_000}
        store = MemoryRateLimitStore(clock=lambda: clock["now"])
        limiter = AdmissionLimiter(store)

        for i in range(1000):
            limiter.check(f"checkout:10.0.{i // 256}.{i % 256}", 5, 60_000)
        assert len(store.records) == 1000

        clock["now"] += 10 * 60_000
        limiter.check("checkout:192.168.1.1", 5, 60_000)

        assert list(store.records) == ["checkout:192.168.1.1"]

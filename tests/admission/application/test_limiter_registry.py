"""Tests for choosing the rate limit store at startup."""

from unittest.mock import MagicMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.admission import build_store, configure_limiter, get_limiter, reset_limiter
from storefront.admission.memory_store import MemoryRateLimitStore
from storefront.admission.redis_store import RedisRateLimitStore


class TestBuildStore:
    def test_no_redis_url_uses_memory(self):
        assert isinstance(build_store(None), MemoryRateLimitStore)

    def test_reachable_redis_uses_redis_store(self):
        client = MagicMock()
        with patch("storefront.admission.redis.from_url", return_value=client) as from_url:
            store = build_store("redis://localhost:6379/0")

        from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True, socket_connect_timeout=1)
        client.ping.assert_called_once()
        assert isinstance(store, RedisRateLimitStore)
        assert store.client is client

    def test_unreachable_redis_falls_back_to_memory(self):
        client = MagicMock()
        client.ping.side_effect = RedisConnectionError("refused")
        with patch("storefront.admission.redis.from_url", return_value=client):
            store = build_store("redis://localhost:6379/0")

        assert isinstance(store, MemoryRateLimitStore)


class TestLimiterRegistry:
    def teardown_method(self):
        reset_limiter()

    def test_get_limiter_is_a_singleton(self):
        assert get_limiter() is get_limiter()

    def test_configure_limiter_replaces_store(self):
        store = MemoryRateLimitStore()
        limiter = configure_limiter(store)
        assert get_limiter() is limiter
        assert limiter.store is store

    def test_reset_limiter_builds_a_new_one(self):
        first = get_limiter()
        reset_limiter()
        assert get_limiter() is not first

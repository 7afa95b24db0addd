"""Admission limiter registry — one limiter per process, chosen at startup.

Uses Redis when ``REDIS_URL`` is configured and reachable, otherwise the
process-local store. Tests install their own limiter with
``configure_limiter`` and drop it with ``reset_limiter``.
"""

import redis
import structlog

from storefront.admission.limiter import AdmissionLimiter, RateLimitStore
from storefront.admission.memory_store import MemoryRateLimitStore
from storefront.admission.redis_store import RedisRateLimitStore
from storefront.config import get_settings

logger = structlog.get_logger(__name__)

_limiter: AdmissionLimiter | None = None


def build_store(redis_url: str | None) -> RateLimitStore:
    """Select the rate limit store for this process."""
    if not redis_url:
        logger.info("Redis not configured, using in-memory rate limiting")
        return MemoryRateLimitStore()

    try:
        client = redis.from_url(redis_url, decode_responses=True, socket_connect_timeout=1)
        client.ping()
    except redis.RedisError as exc:
        logger.warning("Redis unreachable, falling back to in-memory rate limiting", error=str(exc))
        return MemoryRateLimitStore()

    logger.info("Redis rate limiting configured")
    return RedisRateLimitStore(client)


def get_limiter() -> AdmissionLimiter:
    global _limiter
    if _limiter is None:
        _limiter = AdmissionLimiter(build_store(get_settings().REDIS_URL))
    return _limiter


def configure_limiter(store: RateLimitStore) -> AdmissionLimiter:
    """Install a limiter backed by ``store`` (useful for testing)."""
    global _limiter
    _limiter = AdmissionLimiter(store)
    return _limiter


def reset_limiter():
    global _limiter
    _limiter = None

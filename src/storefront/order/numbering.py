"""Order number allocation — ``<PREFIX>-0001``, ``<PREFIX>-0002``, ...

Numbers come from an atomic fetch-and-increment, never from counting
existing orders. Two sequences are available:

- ``RedisOrderSequence``: ``INCR`` on a dedicated counter key, shared by
  every application instance
- ``LocalOrderSequence``: a lock-guarded counter inside this process, for
  single-instance deployments and tests

Both start from the highest number already persisted. ``Order.order_number``
is unique, so the store still rejects a duplicate if two independently
seeded processes ever collide.
"""

import re
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable

import redis
import structlog
from protean.utils.globals import current_domain
from redis.exceptions import RedisError

from storefront.config import get_settings
from storefront.errors import PersistenceError
from storefront.order.order import Order

logger = structlog.get_logger(__name__)

COUNTER_KEY = "sequence:order_number"


def format_order_number(prefix: str, number: int) -> str:
    return f"{prefix}-{number:04d}"


def parse_order_number(order_number: str | None, prefix: str) -> int | None:
    if not order_number:
        return None
    match = re.fullmatch(rf"{re.escape(prefix)}-(\d+)", order_number)
    return int(match.group(1)) if match else None


def highest_persisted_number(prefix: str) -> int:
    """Sequence number of the newest stored order with ``prefix``, or 0 when there is none.

    Numbers are handed out in placement order, so the newest order carries the
    highest number and a single row is enough.
    """
    newest = (
        current_domain.repository_for(Order)
        ._dao.query.filter(order_number__startswith=f"{prefix}-")
        .order_by("-created_at")
        .limit(1)
        .all()
        .first
    )
    if newest is None:
        return 0
    return parse_order_number(newest.order_number, prefix) or 0


class OrderSequence(ABC):
    @abstractmethod
    def next_value(self) -> int:
        """Atomically reserve and return the next sequence value."""
        ...


class LocalOrderSequence(OrderSequence):
    def __init__(self, seed: Callable[[], int]):
        self._seed = seed
        self._lock = threading.Lock()
        self._current: int | None = None

    def next_value(self) -> int:
        with self._lock:
            if self._current is None:
                self._current = self._seed()
            self._current += 1
            return self._current


class RedisOrderSequence(OrderSequence):
    def __init__(self, client, seed: Callable[[], int], key: str = COUNTER_KEY):
        self.client = client
        self.key = key
        self._seed = seed
        self._seeded = False

    def next_value(self) -> int:
        try:
            if not self._seeded:
                # NX keeps whichever instance seeded first
                self.client.set(self.key, self._seed(), nx=True)
                self._seeded = True
            return int(self.client.incr(self.key))
        except RedisError as exc:
            logger.error("Order number allocation failed", key=self.key, error=str(exc))
            raise PersistenceError("Could not allocate an order number") from exc


class OrderNumberAllocator:
    def __init__(self, sequence: OrderSequence, prefix: str):
        self.sequence = sequence
        self.prefix = prefix

    def next_order_number(self) -> str:
        return format_order_number(self.prefix, self.sequence.next_value())


_allocator: OrderNumberAllocator | None = None


def build_allocator(redis_url: str | None, prefix: str) -> OrderNumberAllocator:
    def seed():
        return highest_persisted_number(prefix)

    if redis_url:
        client = redis.from_url(redis_url, decode_responses=True, socket_connect_timeout=1)
        logger.info("Order numbers allocated from Redis", key=COUNTER_KEY)
        return OrderNumberAllocator(RedisOrderSequence(client, seed), prefix)

    logger.info("Order numbers allocated in-process")
    return OrderNumberAllocator(LocalOrderSequence(seed), prefix)


def get_allocator() -> OrderNumberAllocator:
    global _allocator
    if _allocator is None:
        settings = get_settings()
        _allocator = build_allocator(settings.REDIS_URL, settings.ORDER_NUMBER_PREFIX)
    return _allocator


def configure_allocator(allocator: OrderNumberAllocator) -> OrderNumberAllocator:
    global _allocator
    _allocator = allocator
    return _allocator


def reset_allocator():
    """Forget the current allocator (useful for testing)."""
    global _allocator
    _allocator = None


def next_order_number() -> str:
    return get_allocator().next_order_number()

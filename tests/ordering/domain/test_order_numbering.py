"""Tests for order number allocation."""

import threading
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.errors import PersistenceError
from storefront.order.numbering import (
    COUNTER_KEY,
    LocalOrderSequence,
    OrderNumberAllocator,
    RedisOrderSequence,
    format_order_number,
    parse_order_number,
)


class TestFormatting:
    def test_zero_padded_to_four_digits(self):
        assert format_order_number("WEZZA", 7) == "WEZZA-0007"

    def test_wider_numbers_are_not_truncated(self):
        assert format_order_number("WEZZA", 12345) == "WEZZA-12345"

    def test_parse_round_trip(self):
        assert parse_order_number("WEZZA-0042", "WEZZA") == 42

    @pytest.mark.parametrize("value", [None, "", "ORDER-0001", "WEZZA-12a", "WEZZA0001"])
    def test_parse_rejects_foreign_numbers(self, value):
        assert parse_order_number(value, "WEZZA") is None


class TestLocalOrderSequence:
    def test_continues_from_seed(self):
        sequence = LocalOrderSequence(seed=lambda: 41)
        assert sequence.next_value() == 42
        assert sequence.next_value() == 43

    def test_seed_read_once(self):
        seed = MagicMock(return_value=0)
        sequence = LocalOrderSequence(seed=seed)
        sequence.next_value()
        sequence.next_value()
        seed.assert_called_once()

    def test_concurrent_callers_get_distinct_values(self):
        sequence = LocalOrderSequence(seed=lambda: 0)
        values = []
        lock = threading.Lock()

        def allocate():
            for _ in range(50):
                value = sequence.next_value()
                with lock:
                    values.append(value)

        threads = [threading.Thread(target=allocate) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(values) == 400
        assert len(set(values)) == 400
        assert max(values) == 400


class TestRedisOrderSequence:
    def test_seeds_with_set_nx_then_increments(self):
        client = MagicMock()
        client.incr.side_effect = [11, 12]
        sequence = RedisOrderSequence(client, seed=lambda: 10)

        assert sequence.next_value() == 11
        assert sequence.next_value() == 12

        client.set.assert_called_once_with(COUNTER_KEY, 10, nx=True)
        assert client.incr.call_count == 2

    def test_redis_failure_is_surfaced(self):
        client = MagicMock()
        client.incr.side_effect = RedisConnectionError("down")
        sequence = RedisOrderSequence(client, seed=lambda: 0)

        with pytest.raises(PersistenceError):
            sequence.next_value()


class TestAllocator:
    def test_formats_sequence_values(self):
        allocator = OrderNumberAllocator(LocalOrderSequence(seed=lambda: 99), "WEZZA")
        assert allocator.next_order_number() == "WEZZA-0100"

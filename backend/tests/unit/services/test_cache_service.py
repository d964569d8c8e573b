# backend/tests/unit/services/test_cache_service.py
"""
Tests for CacheService (in-memory and Redis paths) and its circuit breaker.
"""

from datetime import date
import json
from unittest.mock import Mock

import pytest
from redis.exceptions import RedisError

from barbershop.services.cache_service import (
    CacheKeyBuilder,
    CacheService,
    CircuitBreaker,
    CircuitState,
)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def memory_cache(fake_clock):
    return CacheService(use_redis=False, clock=fake_clock)


class TestKeyBuilder:
    def test_dates_and_missing_parts(self):
        assert CacheKeyBuilder.build("slots", "b1", date(2024, 6, 10)) == "slots:b1:2024-06-10"
        assert CacheKeyBuilder.build("catalog", "barbers", None, "active") == "catalog:barbers:all:active"


class TestMemoryCache:
    def test_get_set_delete(self, memory_cache):
        assert memory_cache.backend == "memory"
        assert memory_cache.get("k") is None

        assert memory_cache.set("k", [1, 2], ttl=30) is True
        assert memory_cache.get("k") == [1, 2]

        assert memory_cache.delete("k") is True
        assert memory_cache.get("k") is None
        assert memory_cache.delete("k") is False

    def test_entries_expire(self, memory_cache, fake_clock):
        memory_cache.set("slots:b1:2024-06-10", [14], ttl=30)

        fake_clock.advance(29)
        assert memory_cache.get("slots:b1:2024-06-10") == [14]

        fake_clock.advance(1)
        assert memory_cache.get("slots:b1:2024-06-10") is None

    def test_zero_ttl_disables_caching(self, memory_cache):
        assert memory_cache.set("k", "v", ttl=0) is False
        assert memory_cache.get("k") is None

    def test_empty_list_is_a_hit(self, memory_cache):
        memory_cache.set("slots:b1:2024-06-10", [], ttl=30)

        assert memory_cache.get("slots:b1:2024-06-10") == []

    def test_delete_pattern(self, memory_cache):
        memory_cache.set("catalog:branches", [], ttl=300)
        memory_cache.set("catalog:barbers:all:active", [], ttl=300)
        memory_cache.set("slots:b1:2024-06-10", [], ttl=30)

        assert memory_cache.delete_pattern("catalog:*") == 2
        assert memory_cache.get("slots:b1:2024-06-10") == []

    def test_clear(self, memory_cache):
        memory_cache.set("a", 1, ttl=10)
        memory_cache.clear()

        assert memory_cache.get("a") is None

    def test_stats(self, memory_cache):
        memory_cache.set("a", 1, ttl=10)
        memory_cache.get("a")
        memory_cache.get("b")

        stats = memory_cache.get_stats()

        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["sets"] == 1
        assert stats["hit_rate"] == "50.00%"
        assert stats["circuit_breaker"]["state"] == "closed"

        memory_cache.reset_stats()
        assert memory_cache.get_stats()["total_requests"] == 0


class TestRedisCache:
    def test_values_round_trip_through_json(self):
        client = Mock()
        client.get.return_value = json.dumps([9, 10])
        cache = CacheService(redis_client=client)

        assert cache.backend == "redis"
        assert cache.get("slots:b1:2024-06-10") == [9, 10]
        assert cache.set("slots:b1:2024-06-10", [9], ttl=30) is True
        client.setex.assert_called_once_with("slots:b1:2024-06-10", 30, "[9]")

    def test_redis_errors_are_misses(self):
        client = Mock()
        client.get.side_effect = RedisError("down")
        cache = CacheService(redis_client=client)

        assert cache.get("k") is None
        assert cache.get_stats()["errors"] == 1

    def test_delete_pattern_scans(self):
        client = Mock()
        client.scan_iter.return_value = iter(["catalog:branches", "catalog:services"])
        client.delete.return_value = 1
        cache = CacheService(redis_client=client)

        assert cache.delete_pattern("catalog:*") == 2
        client.scan_iter.assert_called_once_with(match="catalog:*")


class TestCircuitBreaker:
    def test_opens_after_threshold(self):
        breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        failing = Mock(side_effect=RedisError("down"), __name__="failing")

        for _ in range(2):
            with pytest.raises(RedisError):
                breaker.call(failing)

        assert breaker.call(failing) is None
        assert breaker.state is CircuitState.OPEN
        # Open circuit short-circuits without calling through
        assert breaker.call(failing) is None
        assert failing.call_count == 3

    def test_success_resets_failures(self):
        breaker = CircuitBreaker(failure_threshold=3)
        failing = Mock(side_effect=RedisError("down"), __name__="failing")

        with pytest.raises(RedisError):
            breaker.call(failing)
        assert breaker.call(lambda: "ok") == "ok"

        assert breaker.failure_count == 0

    def test_half_open_after_recovery_timeout(self):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        failing = Mock(side_effect=RedisError("down"), __name__="failing")

        breaker.call(failing)

        assert breaker.state is CircuitState.HALF_OPEN
        assert breaker.call(lambda: "ok") == "ok"
        assert breaker.state is CircuitState.CLOSED

# backend/barbershop/services/cache_service.py
"""
Cache Service for the barbershop booking engine.

Centralizes caching with key management, TTLs, and a circuit breaker
around Redis. When no Redis URL is configured (or Redis is unreachable at
startup) an in-memory TTL store is used instead; the memory store lives on
the process-wide instance so every request sees the same entries.

Two consumers today:
- catalog reads (branches, barbers, services), long TTL
- taken-slot sets per (barber, date), short TTL, invalidated on every write
"""

from datetime import date, datetime
from enum import Enum
import fnmatch
import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, TypeVar, Union, cast

import redis
from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from ..core.config import settings
from .base import BaseService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject calls
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreaker:
    """
    Circuit breaker around cache calls.

    After ``failure_threshold`` consecutive failures the circuit opens and
    calls are skipped until ``recovery_timeout`` seconds have passed.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        expected_exception: type[BaseException] = RedisError,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception

        self._failure_count: int = 0
        self._last_failure_time: Optional[datetime] = None
        self._state: CircuitState = CircuitState.CLOSED
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        with self._lock:
            if self._state == CircuitState.OPEN and self._last_failure_time:
                elapsed = (datetime.now() - self._last_failure_time).total_seconds()
                if elapsed >= self.recovery_timeout:
                    self._state = CircuitState.HALF_OPEN
            return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> Optional[T]:
        """
        Execute ``func`` with circuit breaker protection.

        Returns None when the circuit is open. Failures below the threshold
        propagate to the caller.
        """
        if self.state == CircuitState.OPEN:
            logger.warning(f"Circuit breaker is OPEN, skipping {func.__name__}")
            return None

        try:
            result = func(*args, **kwargs)
            self._on_success()
            return result
        except self.expected_exception:
            self._on_failure()
            if self.state == CircuitState.CLOSED:
                raise
            return None

    def _on_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.CLOSED
                logger.info("Circuit breaker recovered, closing circuit")

    def _on_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = datetime.now()
            if self._failure_count >= self.failure_threshold:
                self._state = CircuitState.OPEN
                logger.warning(f"Circuit breaker opened after {self._failure_count} failures")


class CacheKeyBuilder:
    """Standardized cache key generation."""

    @staticmethod
    def build(*parts: Union[str, int, date, None]) -> str:
        """
        Build a cache key from parts.

        Examples:
            build('slots', 'b1', date(2024, 6, 10)) -> 'slots:b1:2024-06-10'
        """
        formatted = []
        for part in parts:
            if isinstance(part, (date, datetime)):
                formatted.append(part.isoformat())
            elif part is None:
                formatted.append("all")
            else:
                formatted.append(str(part))
        return ":".join(formatted)


class CacheService(BaseService):
    """
    Key/value cache with TTLs.

    Values must be JSON-serializable; they round-trip through JSON on Redis
    and are stored as-is in memory.
    """

    DEFAULT_TTL = 300

    def __init__(
        self,
        db: Optional[Session] = None,
        redis_client: Optional[Redis] = None,
        *,
        use_redis: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(cast(Session, db))
        self.logger = logging.getLogger(__name__)

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=5, recovery_timeout=60, expected_exception=RedisError
        )
        self.key_builder = CacheKeyBuilder()
        self._clock = clock

        # In-memory fallback
        self._memory_cache: Dict[str, Any] = {}
        self._memory_expiry: Dict[str, float] = {}
        self._memory_lock = threading.Lock()

        self.redis: Optional[Redis] = redis_client
        if self.redis is None and (use_redis if use_redis is not None else bool(settings.redis_url)):
            self._setup_redis_connection()

        self._stats: Dict[str, int] = self._initialize_stats()

    def _setup_redis_connection(self) -> None:
        """Connect to Redis, falling back to the in-memory store."""
        try:
            client = redis.from_url(
                settings.redis_url or "redis://localhost:6379",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            client.ping()
            self.redis = client
            logger.info("Connected to Redis cache")
        except (RedisError, ConnectionError) as e:
            logger.warning(f"Redis not available: {e}. Using in-memory fallback.")
            self.redis = None

    def _initialize_stats(self) -> Dict[str, int]:
        return {"hits": 0, "misses": 0, "sets": 0, "deletes": 0, "errors": 0}

    @property
    def backend(self) -> str:
        return "redis" if self.redis is not None else "memory"

    # Core operations

    @BaseService.measure_operation("cache_get")
    def get(self, key: str) -> Optional[Any]:
        """Get a value, or None on miss, expiry or cache failure."""
        redis_client = self.redis

        def _get_from_redis() -> Optional[Any]:
            assert redis_client is not None
            raw = redis_client.get(key)
            return json.loads(raw) if raw is not None else None

        try:
            value: Optional[Any] = None
            if redis_client is not None:
                if self.circuit_breaker.state != CircuitState.OPEN:
                    value = self.circuit_breaker.call(_get_from_redis)
            else:
                value = self._memory_get(key)

            if value is None:
                self._stats["misses"] += 1
                return None
            self._stats["hits"] += 1
            return value
        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            self._stats["errors"] += 1
            return None

    @BaseService.measure_operation("cache_set")
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a value for ``ttl`` seconds. A TTL of 0 disables caching."""
        ttl = self.DEFAULT_TTL if ttl is None else ttl
        if ttl <= 0:
            return False

        redis_client = self.redis

        def _set_in_redis() -> bool:
            assert redis_client is not None
            redis_client.setex(key, ttl, json.dumps(value, default=str))
            return True

        try:
            if redis_client is not None:
                if self.circuit_breaker.state == CircuitState.OPEN:
                    return False
                if not self.circuit_breaker.call(_set_in_redis):
                    return False
            else:
                with self._memory_lock:
                    self._memory_cache[key] = value
                    self._memory_expiry[key] = self._clock() + ttl
            self._stats["sets"] += 1
            return True
        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")
            self._stats["errors"] += 1
            return False

    @BaseService.measure_operation("cache_delete")
    def delete(self, key: str) -> bool:
        redis_client = self.redis

        def _delete_from_redis() -> bool:
            assert redis_client is not None
            return bool(redis_client.delete(key))

        try:
            if redis_client is not None:
                removed = bool(self.circuit_breaker.call(_delete_from_redis))
            else:
                with self._memory_lock:
                    removed = key in self._memory_cache
                    self._memory_cache.pop(key, None)
                    self._memory_expiry.pop(key, None)
            if removed:
                self._stats["deletes"] += 1
            return removed
        except Exception as e:
            logger.error(f"Cache delete error for key {key}: {e}")
            self._stats["errors"] += 1
            return False

    @BaseService.measure_operation("cache_delete_pattern")
    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern."""
        try:
            if self.redis is not None:
                count = self._delete_pattern_redis(pattern)
            else:
                count = self._delete_pattern_memory(pattern)
            self._stats["deletes"] += count
            logger.debug(f"Deleted {count} keys matching pattern: {pattern}")
            return count
        except Exception as e:
            logger.error(f"Cache delete pattern error: {e}")
            self._stats["errors"] += 1
            return 0

    def clear(self) -> None:
        """Drop every in-memory entry (Redis is left alone)."""
        with self._memory_lock:
            self._memory_cache.clear()
            self._memory_expiry.clear()

    def _memory_get(self, key: str) -> Optional[Any]:
        with self._memory_lock:
            if key not in self._memory_cache:
                return None
            if self._clock() >= self._memory_expiry.get(key, 0.0):
                del self._memory_cache[key]
                self._memory_expiry.pop(key, None)
                return None
            return self._memory_cache[key]

    def _delete_pattern_redis(self, pattern: str) -> int:
        redis_client = self.redis
        if redis_client is None:
            return 0
        count = 0
        for key in redis_client.scan_iter(match=pattern):
            if redis_client.delete(key):
                count += 1
        return count

    def _delete_pattern_memory(self, pattern: str) -> int:
        with self._memory_lock:
            doomed = [k for k in self._memory_cache if fnmatch.fnmatch(k, pattern)]
            for key in doomed:
                self._memory_cache.pop(key, None)
                self._memory_expiry.pop(key, None)
        return len(doomed)

    # Monitoring

    def get_stats(self) -> Dict[str, Any]:
        total_requests = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total_requests * 100) if total_requests > 0 else 0
        return {
            **self._stats,
            "backend": self.backend,
            "hit_rate": f"{hit_rate:.2f}%",
            "total_requests": total_requests,
            "circuit_breaker": {
                "state": self.circuit_breaker.state.value,
                "failure_count": self.circuit_breaker.failure_count,
                "threshold": self.circuit_breaker.failure_threshold,
            },
        }

    def reset_stats(self) -> None:
        self._stats = self._initialize_stats()


_shared_cache: Optional[CacheService] = None
_shared_cache_lock = threading.Lock()


def get_cache_service() -> CacheService:
    """
    Process-wide cache instance.

    The in-memory fallback only works if every request shares one store, so
    unlike repositories and services the cache is not rebuilt per request.
    """
    global _shared_cache
    with _shared_cache_lock:
        if _shared_cache is None:
            _shared_cache = CacheService()
        return _shared_cache

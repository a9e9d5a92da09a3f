import asyncio
import logging
import socket
import time
from collections.abc import AsyncIterator
from enum import Enum
from typing import Any, Optional

import redis
import redis.asyncio
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff

from db.config import settings
from db.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

# Build socket keepalive options safely
socket_keepalive_options = {}
if hasattr(socket, "TCP_KEEPIDLE"):
    socket_keepalive_options[socket.TCP_KEEPIDLE] = 60
if hasattr(socket, "TCP_KEEPINTVL"):
    socket_keepalive_options[socket.TCP_KEEPINTVL] = 30
if hasattr(socket, "TCP_KEEPCNT"):
    socket_keepalive_options[socket.TCP_KEEPCNT] = 3

pool_settings = {
    "max_connections": settings.redis_max_connections,
    "socket_timeout": 10.0,
    "socket_connect_timeout": 5.0,
    "socket_keepalive": True,
    "health_check_interval": 30,
    # RedisWrapper owns retries; the connection never re-sends a command itself.
    "retry": Retry(NoBackoff(), 0),
    "decode_responses": False,
}

# Only add socket_keepalive_options if we have any options available
if socket_keepalive_options:
    pool_settings["socket_keepalive_options"] = socket_keepalive_options

RETRYABLE_ERRORS = (
    redis.exceptions.ConnectionError,
    redis.exceptions.TimeoutError,
    redis.exceptions.BusyLoadingError,
)


class CircuitBreakerState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class RedisCircuitBreaker:
    """
    Circuit breaker for Redis operations.

    After ``failure_threshold`` consecutive connectivity failures the breaker
    opens and every call fails fast with ``StoreUnavailable`` until
    ``recovery_timeout`` seconds have passed; the next call is then let
    through as a probe (half-open).
    """

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.last_failure_time = None
        self.state = CircuitBreakerState.CLOSED

    def before_call(self):
        if self.state == CircuitBreakerState.OPEN:
            if self._should_attempt_reset():
                self.state = CircuitBreakerState.HALF_OPEN
            else:
                raise StoreUnavailable("redis", "circuit breaker is open")

    def _should_attempt_reset(self) -> bool:
        """Check if enough time has passed to attempt reset."""
        return (
            time.time() - self.last_failure_time > self.recovery_timeout
            if self.last_failure_time
            else True
        )

    def on_success(self):
        """Reset circuit breaker on successful operation."""
        self.failure_count = 0
        self.state = CircuitBreakerState.CLOSED

    def on_failure(self):
        """Handle failure and potentially open circuit breaker."""
        self.failure_count += 1
        self.last_failure_time = time.time()

        if (
            self.state == CircuitBreakerState.HALF_OPEN
            or self.failure_count >= self.failure_threshold
        ):
            self.state = CircuitBreakerState.OPEN
            logger.warning(
                f"Circuit breaker opened after {self.failure_count} failures"
            )


class RedisWrapper:
    """
    Async Redis client wrapper with retry logic and a circuit breaker.

    Unlike a cache, the stats buffer must not pretend a write succeeded, so
    connectivity failures surface as ``StoreUnavailable`` once the retries
    are exhausted.
    """

    def __init__(
        self,
        client: redis.asyncio.Redis,
        circuit_breaker: RedisCircuitBreaker | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
    ):
        self.client = client
        self.circuit_breaker = circuit_breaker or RedisCircuitBreaker()
        self.retry_attempts = max(1, retry_attempts or settings.redis_retry_attempts)
        self.retry_delay = (
            settings.redis_retry_delay if retry_delay is None else retry_delay
        )

    async def _execute_with_retry(self, operation, attempts: int, *args, **kwargs):
        """Execute async Redis operation with retry logic."""
        last_exception = None

        for attempt in range(attempts):
            try:
                return await operation(*args, **kwargs)
            except RETRYABLE_ERRORS as e:
                last_exception = e
                if attempt < attempts - 1:
                    logger.warning(
                        f"Redis operation failed (attempt {attempt + 1}/{attempts}): {e}"
                    )
                    await asyncio.sleep(self.retry_delay * (2**attempt))
                else:
                    logger.error(f"Redis operation failed after all retries: {e}")

        raise last_exception

    async def _run(self, operation, *args, idempotent: bool = True, **kwargs):
        """Run ``operation`` behind the circuit breaker.

        Non-idempotent writes are sent exactly once: after a timeout or a
        dropped connection the server may already have applied them.
        """
        self.circuit_breaker.before_call()
        attempts = self.retry_attempts if idempotent else 1
        try:
            result = await self._execute_with_retry(operation, attempts, *args, **kwargs)
        except RETRYABLE_ERRORS as e:
            self.circuit_breaker.on_failure()
            raise StoreUnavailable("redis", str(e)) from e
        self.circuit_breaker.on_success()
        return result

    async def _call(self, method_name: str, *args, idempotent: bool = True, **kwargs):
        operation = getattr(self.client, method_name)
        return await self._run(operation, *args, idempotent=idempotent, **kwargs)

    async def aclose(self):
        await self.client.aclose()

    async def get(self, key: str):
        return await self._call("get", key)

    async def set(self, key: str, value: Any, ex: Optional[int] = None):
        return await self._call("set", key, value, ex=ex)

    async def delete(self, *keys):
        if not keys:
            return 0
        return await self._call("delete", *keys)

    async def hgetall(self, name: str) -> dict:
        return await self._call("hgetall", name) or {}

    async def hincrby_with_expire(self, name: str, key: str, amount: int, ex: int) -> int:
        """HINCRBY and EXPIRE in one MULTI/EXEC transaction, sent once.

        Returns the field value after the increment.
        """

        async def operation():
            results = await (
                self.client.pipeline(transaction=True)
                .hincrby(name, key, amount)
                .expire(name, ex)
                .execute()
            )
            return results[0]

        return await self._run(operation, idempotent=False)

    async def scan(self, cursor: int = 0, match: str | None = None, count: int | None = None):
        return await self._call("scan", cursor=cursor, match=match, count=count)

    async def scan_iter(
        self, match: str | None = None, count: int | None = None
    ) -> AsyncIterator[str]:
        """Cursor-paginated SCAN; every page goes through retry and the breaker."""
        cursor = 0
        while True:
            cursor, keys = await self.scan(cursor=cursor, match=match, count=count)
            for key in keys:
                yield key.decode() if isinstance(key, bytes) else key
            if not cursor:
                break

    @property
    def connection_pool(self):
        """Access to the underlying connection pool."""
        return self.client.connection_pool

    async def ping(self) -> bool:
        try:
            return await self._call("ping") is True
        except StoreUnavailable:
            return False

    async def health_check(self) -> dict:
        """Comprehensive health check for Redis connection."""
        start_time = time.time()
        ping_result = await self.ping()
        response_time = time.time() - start_time

        return {
            "status": "healthy" if ping_result else "unhealthy",
            "response_time_ms": round(response_time * 1000, 2),
            "circuit_breaker_state": self.circuit_breaker.state.value,
            "failure_count": self.circuit_breaker.failure_count,
        }


# Create async client with connection pooling
REDIS_ASYNC_CLIENT = RedisWrapper(
    redis.asyncio.Redis(
        connection_pool=redis.asyncio.ConnectionPool.from_url(
            settings.redis_url, **pool_settings
        )
    )
)

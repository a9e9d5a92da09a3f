"""
Tests for RedisWrapper retries and circuit breaker in db/redis_database.py
"""

import time

import pytest
import redis

from db.exceptions import StoreUnavailable
from db.redis_database import CircuitBreakerState, RedisCircuitBreaker, RedisWrapper


class FlakyClient:
    """Fails ``failures`` times with a connection error, then answers."""

    def __init__(self, failures: int, error: Exception | None = None):
        self.failures = failures
        self.error = error or redis.exceptions.ConnectionError("Connection reset by peer")
        self.attempts = 0

    async def hgetall(self, name):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise self.error
        return {b"read_count": b"4"}

    async def ping(self):
        return await self.hgetall("ping") != {}


class LostReplyPipeline:
    """Applies the queued increment on the server, then loses the reply."""

    def __init__(self, client: "LostReplyClient"):
        self.client = client
        self.amount = 0

    def hincrby(self, name, key, amount=1):
        self.amount = amount
        return self

    def expire(self, name, ex):
        return self

    async def execute(self):
        self.client.sent += 1
        self.client.value += self.amount
        if self.client.sent <= self.client.lost_replies:
            raise self.client.error
        return [self.client.value, True]


class LostReplyClient:
    def __init__(self, lost_replies: int, error: Exception | None = None):
        self.lost_replies = lost_replies
        self.error = error or redis.exceptions.TimeoutError("Timeout reading from socket")
        self.sent = 0
        self.value = 0

    def pipeline(self, transaction=True):
        return LostReplyPipeline(self)


# ---------------------------------------------------------------------------
# Retries
# ---------------------------------------------------------------------------


class TestRetries:
    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self):
        client = FlakyClient(failures=2)
        wrapper = RedisWrapper(client, retry_attempts=3, retry_delay=0)

        assert await wrapper.hgetall("key") == {b"read_count": b"4"}
        assert client.attempts == 3
        assert wrapper.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_store_unavailable(self):
        client = FlakyClient(failures=10)
        wrapper = RedisWrapper(client, retry_attempts=3, retry_delay=0)

        with pytest.raises(StoreUnavailable) as exc_info:
            await wrapper.hgetall("key")
        assert exc_info.value.store == "redis"
        assert client.attempts == 3

    @pytest.mark.asyncio
    async def test_non_connectivity_errors_propagate(self):
        client = FlakyClient(failures=1, error=redis.exceptions.ResponseError("WRONGTYPE"))
        wrapper = RedisWrapper(client, retry_attempts=3, retry_delay=0)

        with pytest.raises(redis.exceptions.ResponseError):
            await wrapper.hgetall("key")
        assert client.attempts == 1


class TestIncrementIsSentOnce:
    @pytest.mark.asyncio
    async def test_timeout_after_apply_is_not_resent(self):
        client = LostReplyClient(lost_replies=1)
        wrapper = RedisWrapper(client, retry_attempts=3, retry_delay=0)

        with pytest.raises(StoreUnavailable):
            await wrapper.hincrby_with_expire("k", "read_count", 3, 60)

        assert client.sent == 1
        assert client.value == 3

    @pytest.mark.asyncio
    async def test_dropped_connection_is_not_resent(self):
        client = LostReplyClient(
            lost_replies=1, error=redis.exceptions.ConnectionError("Connection reset by peer")
        )
        wrapper = RedisWrapper(client, retry_attempts=3, retry_delay=0)

        with pytest.raises(StoreUnavailable):
            await wrapper.hincrby_with_expire("k", "read_count", 3, 60)
        assert client.value == 3

        assert await wrapper.hincrby_with_expire("k", "read_count", 2, 60) == 5
        assert client.sent == 2

    @pytest.mark.asyncio
    async def test_failure_counts_towards_the_breaker(self):
        client = LostReplyClient(lost_replies=1)
        wrapper = RedisWrapper(client, retry_attempts=3, retry_delay=0)

        with pytest.raises(StoreUnavailable):
            await wrapper.hincrby_with_expire("k", "read_count", 1, 60)
        assert wrapper.circuit_breaker.failure_count == 1


# ---------------------------------------------------------------------------
# Circuit breaker
# ---------------------------------------------------------------------------


class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_opens_after_threshold_and_fails_fast(self):
        client = FlakyClient(failures=100)
        breaker = RedisCircuitBreaker(failure_threshold=2, recovery_timeout=60)
        wrapper = RedisWrapper(client, circuit_breaker=breaker, retry_attempts=1, retry_delay=0)

        for _ in range(2):
            with pytest.raises(StoreUnavailable):
                await wrapper.hgetall("key")
        assert breaker.state == CircuitBreakerState.OPEN

        attempts = client.attempts
        with pytest.raises(StoreUnavailable, match="circuit breaker is open"):
            await wrapper.hgetall("key")
        assert client.attempts == attempts

    @pytest.mark.asyncio
    async def test_half_open_probe_closes_on_success(self):
        client = FlakyClient(failures=1)
        breaker = RedisCircuitBreaker(failure_threshold=1, recovery_timeout=30)
        wrapper = RedisWrapper(client, circuit_breaker=breaker, retry_attempts=1, retry_delay=0)

        with pytest.raises(StoreUnavailable):
            await wrapper.hgetall("key")
        assert breaker.state == CircuitBreakerState.OPEN

        breaker.last_failure_time = time.time() - 31
        assert await wrapper.hgetall("key") == {b"read_count": b"4"}
        assert breaker.state == CircuitBreakerState.CLOSED

    def test_half_open_failure_reopens(self):
        breaker = RedisCircuitBreaker(failure_threshold=5, recovery_timeout=0)
        breaker.state = CircuitBreakerState.OPEN
        breaker.last_failure_time = time.time() - 1

        breaker.before_call()
        assert breaker.state == CircuitBreakerState.HALF_OPEN
        breaker.on_failure()
        assert breaker.state == CircuitBreakerState.OPEN


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    @pytest.mark.asyncio
    async def test_ping_false_instead_of_raising(self):
        wrapper = RedisWrapper(FlakyClient(failures=100), retry_attempts=1, retry_delay=0)
        assert await wrapper.ping() is False

        status = await wrapper.health_check()
        assert status["status"] == "unhealthy"
        assert status["failure_count"] == 2

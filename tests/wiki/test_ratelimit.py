# ABOUTME: Tests for the token-bucket limiter: throughput bound, no rejections, cancellation
# ABOUTME: The throughput test takes about two seconds of real time

import asyncio
import time

import pytest

from wiki_navigator.wiki.ratelimit import TokenBucket


class TestTokenBucket:
    def test_rejects_invalid_configuration(self):
        """Test validation of rate and capacity."""
        with pytest.raises(ValueError):
            TokenBucket(rate=0)
        with pytest.raises(ValueError):
            TokenBucket(rate=1, capacity=0)

    @pytest.mark.asyncio
    async def test_first_token_is_immediate(self):
        """Test that a fresh bucket grants its first token at once."""
        bucket = TokenBucket(rate=1)
        start = time.monotonic()
        await bucket.acquire()
        assert time.monotonic() - start < 0.5

    @pytest.mark.asyncio
    async def test_twenty_requests_at_ten_per_second_take_about_two_seconds(self):
        """Test that 20 acquires at 10/s are spaced over about two seconds."""
        bucket = TokenBucket(rate=10, capacity=1)

        start = time.monotonic()
        results = await asyncio.gather(*(bucket.acquire() for _ in range(20)))
        elapsed = time.monotonic() - start

        # Every request is admitted, none is rejected
        assert len(results) == 20
        assert elapsed >= 1.85

    @pytest.mark.asyncio
    async def test_refill_uses_injected_clock(self, clock):
        """Test token refill driven by the injected clock."""
        bucket = TokenBucket(rate=2, capacity=1, clock=clock)
        await bucket.acquire()
        assert bucket.available_tokens == pytest.approx(0.0)

        clock.advance(0.25)
        assert bucket.available_tokens == pytest.approx(0.5)

        clock.advance(10)
        assert bucket.available_tokens == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_cancelled_wait_does_not_consume_a_token(self):
        """Test that cancelling a waiter leaves tokens and the lock untouched."""
        bucket = TokenBucket(rate=0.5, capacity=1)
        await bucket.acquire()

        waiter = asyncio.create_task(bucket.acquire())
        await asyncio.sleep(0.05)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert 0 <= bucket.available_tokens < 1
        assert not bucket._lock.locked()

    @pytest.mark.asyncio
    async def test_wait_honours_timeout(self):
        """Test that a waiting acquire respects an enclosing timeout."""
        bucket = TokenBucket(rate=0.1, capacity=1)
        await bucket.acquire()

        start = time.monotonic()
        with pytest.raises(TimeoutError):
            async with asyncio.timeout(0.1):
                await bucket.acquire()
        assert time.monotonic() - start < 1.0

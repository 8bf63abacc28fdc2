"""Unit tests for fixed-count retries with exponential backoff."""

from unittest.mock import AsyncMock

import httpx
import pytest

from core.cloudflare import CloudflareError
from core.retry import RetryPolicy, calculate_delay, is_transient_error, retry_async


class TestCalculateDelay:
    def test_powers_of_two(self):
        policy = RetryPolicy()
        assert [calculate_delay(n, policy) for n in (1, 2, 3)] == [2.0, 4.0, 8.0]

    def test_first_attempt_has_no_delay(self):
        assert calculate_delay(0, RetryPolicy()) == 0.0


class TestRetryAsync:
    @pytest.mark.asyncio
    async def test_success_without_retry(self):
        func = AsyncMock(return_value="ok")
        sleep = AsyncMock()
        assert await retry_async(func, sleep=sleep) == "ok"
        assert func.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        func = AsyncMock(side_effect=[RuntimeError("boom"), RuntimeError("boom"), "ok"])
        sleep = AsyncMock()
        assert await retry_async(func, policy=RetryPolicy(retries=2), sleep=sleep) == "ok"
        assert [c.args[0] for c in sleep.await_args_list] == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self):
        func = AsyncMock(side_effect=RuntimeError("still failing"))
        sleep = AsyncMock()
        with pytest.raises(RuntimeError, match="still failing"):
            await retry_async(func, policy=RetryPolicy(retries=2), sleep=sleep)
        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates_immediately(self):
        func = AsyncMock(side_effect=ValueError("bad input"))
        sleep = AsyncMock()
        with pytest.raises(ValueError):
            await retry_async(func, should_retry=lambda exc: not isinstance(exc, ValueError), sleep=sleep)
        assert func.await_count == 1


def _status_error(status_code):
    request = httpx.Request("GET", "https://api.example.com/")
    return httpx.HTTPStatusError("failed", request=request, response=httpx.Response(status_code, request=request))


class TestIsTransientError:
    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("connection refused"),
            httpx.ReadTimeout("read timed out"),
            httpx.RemoteProtocolError("server disconnected"),
            _status_error(503),
            _status_error(429),
            CloudflareError("Cloudflare error", status_code=502),
            CloudflareError("Request timeout", status_code=408),
        ],
    )
    def test_transient(self, exc):
        assert is_transient_error(exc)

    @pytest.mark.parametrize(
        "exc",
        [
            _status_error(404),
            CloudflareError("bad image 500x500", status_code=400),
            CloudflareError("no status 503 in the text counts"),
            RuntimeError("HTTP 503"),
            ValueError("bad input"),
        ],
    )
    def test_permanent(self, exc):
        assert not is_transient_error(exc)

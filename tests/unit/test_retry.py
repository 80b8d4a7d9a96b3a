"""Unit tests — RetryPolicy, is_transient, retry_async / retry_sync."""

from __future__ import annotations

import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from coffeeblack_bridge.exceptions import (
    MalformedResponseError,
    MissingFieldError,
    ReasoningTimeoutError,
    TransportError,
    UpstreamError,
)
from coffeeblack_bridge.logging import _inject_context_vars
from coffeeblack_bridge.retry import RetryPolicy, is_transient, retry_async, retry_sync


@pytest.mark.unit
class TestIsTransient:
    @pytest.mark.parametrize(
        "error",
        [
            ReasoningTimeoutError(30_000),
            TransportError(httpx.ConnectError("refused")),
            UpstreamError(500, "boom"),
            UpstreamError(503, "unavailable"),
        ],
    )
    def test_transient(self, error: Exception) -> None:
        assert is_transient(error)

    @pytest.mark.parametrize(
        "error",
        [
            UpstreamError(400, "bad request"),
            UpstreamError(404, "not found"),
            UpstreamError(429, "slow down"),
            MalformedResponseError("query"),
            MissingFieldError("input_text"),
            ValueError("nope"),
        ],
    )
    def test_not_transient(self, error: Exception) -> None:
        assert not is_transient(error)


@pytest.mark.unit
class TestRetryPolicy:
    def test_delays_double_then_cap(self) -> None:
        policy = RetryPolicy(max_retries=5, initial_delay_ms=1000, max_delay_ms=10_000)
        assert [policy.delay_for_retry(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 8.0, 10.0]

    def test_cap_below_initial(self) -> None:
        policy = RetryPolicy(initial_delay_ms=500, max_delay_ms=200)
        assert policy.delay_for_retry(1) == 0.2


@pytest.mark.unit
class TestRetryAsync:
    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self) -> None:
        fn = AsyncMock(side_effect=[UpstreamError(500, "a"), UpstreamError(502, "b"), "ok"])
        with patch("coffeeblack_bridge.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            result = await retry_async(fn, RetryPolicy())
        assert result == "ok"
        assert fn.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_fatal_error_not_retried(self) -> None:
        error = UpstreamError(400, "bad")
        fn = AsyncMock(side_effect=error)
        with patch("coffeeblack_bridge.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(UpstreamError) as exc_info:
                await retry_async(fn, RetryPolicy())
        assert exc_info.value is error
        assert fn.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exhaustion_reraises_last_error(self) -> None:
        errors = [ReasoningTimeoutError(10) for _ in range(4)]
        fn = AsyncMock(side_effect=errors)
        with patch("coffeeblack_bridge.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(ReasoningTimeoutError) as exc_info:
                await retry_async(fn, RetryPolicy(max_retries=3))
        assert exc_info.value is errors[-1]
        assert fn.await_count == 4
        assert sleep.await_count == 3

    @pytest.mark.asyncio
    async def test_zero_retries_means_single_attempt(self) -> None:
        fn = AsyncMock(side_effect=UpstreamError(500, "x"))
        with pytest.raises(UpstreamError):
            await retry_async(fn, RetryPolicy(max_retries=0))
        assert fn.await_count == 1

    @pytest.mark.asyncio
    async def test_custom_predicate(self) -> None:
        fn = AsyncMock(side_effect=[UpstreamError(429, "slow down"), "ok"])
        with patch("coffeeblack_bridge.retry.asyncio.sleep", new_callable=AsyncMock):
            result = await retry_async(
                fn,
                RetryPolicy(),
                should_retry=lambda e: isinstance(e, UpstreamError) and e.status_code == 429,
            )
        assert result == "ok"

    @pytest.mark.asyncio
    async def test_real_waits_accumulate(self) -> None:
        fn = AsyncMock(side_effect=[UpstreamError(500, "a"), UpstreamError(500, "b"), "ok"])
        policy = RetryPolicy(max_retries=3, initial_delay_ms=20, max_delay_ms=30)
        t0 = time.monotonic()
        assert await retry_async(fn, policy) == "ok"
        # initial + min(initial * 2, max)
        assert time.monotonic() - t0 >= 0.020 + 0.030 - 0.005


@pytest.mark.unit
class TestRetrySync:
    def test_succeeds_after_transient_failure(self) -> None:
        fn = MagicMock(side_effect=[TransportError(httpx.ConnectError("x")), "ok"])
        with patch("coffeeblack_bridge.retry.time.sleep") as sleep:
            assert retry_sync(fn, RetryPolicy(initial_delay_ms=250)) == "ok"
        sleep.assert_called_once_with(0.25)

    def test_malformed_not_retried(self) -> None:
        fn = MagicMock(side_effect=MalformedResponseError("explanation"))
        with patch("coffeeblack_bridge.retry.time.sleep") as sleep:
            with pytest.raises(MalformedResponseError):
                retry_sync(fn, RetryPolicy())
        assert fn.call_count == 1
        sleep.assert_not_called()

    def test_each_attempt_tagged_in_logs(self) -> None:
        seen: list[int | None] = []

        def fn() -> str:
            seen.append(_inject_context_vars(None, "info", {}).get("attempt"))
            if len(seen) < 3:
                raise ReasoningTimeoutError(10)
            return "ok"

        with patch("coffeeblack_bridge.retry.time.sleep"):
            assert retry_sync(fn, RetryPolicy()) == "ok"
        assert seen == [1, 2, 3]
        assert "attempt" not in _inject_context_vars(None, "info", {})

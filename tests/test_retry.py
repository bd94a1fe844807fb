"""
tests/test_retry.py — Bounded Retry Tests
==========================================
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from sideline.sync.errors import RetryExhaustedError, SyncDataError
from sideline.sync.retry import RetryPolicy, with_retry


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _forbidden() -> discord.Forbidden:
    return discord.Forbidden(MagicMock(status=403, reason="Forbidden"), "Missing Permissions")


class TestRetryPolicy:

    def test_default_schedule(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 4
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


class TestWithRetry:

    def test_success_first_try_does_not_sleep(self, no_sleep):
        call = AsyncMock(return_value=42)

        assert run_async(with_retry(call, RetryPolicy(), sleep=no_sleep)) == 42
        assert call.await_count == 1
        assert no_sleep.delays == []

    def test_recovers_after_transient_failures(self, no_sleep):
        call = AsyncMock(side_effect=[ConnectionError("a"), ConnectionError("b"), "ok"])

        assert run_async(with_retry(call, RetryPolicy(), sleep=no_sleep)) == "ok"
        assert call.await_count == 3
        assert no_sleep.delays == [1.0, 2.0]

    def test_gives_up_after_four_attempts(self, no_sleep):
        call = AsyncMock(side_effect=ConnectionError("down"))

        with pytest.raises(RetryExhaustedError) as info:
            run_async(with_retry(call, RetryPolicy(), operation="create_role", sleep=no_sleep))

        assert call.await_count == 4
        assert no_sleep.delays == [1.0, 2.0, 4.0]
        assert info.value.attempts == 4
        assert isinstance(info.value.last_error, ConnectionError)
        assert "create_role" in str(info.value)

    def test_zero_retries_means_single_attempt(self, no_sleep):
        call = AsyncMock(side_effect=ConnectionError("down"))

        with pytest.raises(RetryExhaustedError):
            run_async(with_retry(call, RetryPolicy(max_retries=0), sleep=no_sleep))
        assert call.await_count == 1

    @pytest.mark.parametrize("error_factory", [_forbidden, lambda: SyncDataError("bad")])
    def test_non_retryable_errors_raise_immediately(self, no_sleep, error_factory):
        error = error_factory()
        call = AsyncMock(side_effect=error)

        with pytest.raises(type(error)):
            run_async(with_retry(call, RetryPolicy(), sleep=no_sleep))
        assert call.await_count == 1
        assert no_sleep.delays == []

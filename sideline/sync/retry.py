"""
sideline.sync.retry — Bounded Exponential Retry
================================================

Every Discord call made by the processors goes through :func:`with_retry`.
Default schedule: attempt, wait 1 s, attempt, wait 2 s, attempt, wait 4 s,
attempt, give up.  No jitter; the processors are strictly sequential so
there is no herd to spread out.

Errors that cannot succeed on a second try are raised immediately:
``discord.Forbidden`` (missing permission) and :class:`SyncDataError`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import discord

from sideline.constants import DEFAULT_RETRY_BASE_DELAY, DEFAULT_RETRY_MAX_RETRIES
from sideline.sync.errors import RetryExhaustedError, SyncDataError

logger = logging.getLogger(__name__)

T = TypeVar("T")

NON_RETRYABLE: tuple[type[BaseException], ...] = (discord.Forbidden, SyncDataError)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    base_delay: float = DEFAULT_RETRY_BASE_DELAY
    max_retries: int = DEFAULT_RETRY_MAX_RETRIES

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry: int) -> float:
        """Delay before retry number *retry* (1-based)."""
        return self.base_delay * (2 ** (retry - 1))


async def with_retry(
    call: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    operation: str = "discord call",
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Await ``call()`` until it succeeds or *policy* is exhausted.

    Raises
    ------
    RetryExhaustedError
        After ``policy.max_attempts`` failures, wrapping the last error.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await call()
        except NON_RETRYABLE:
            raise
        except Exception as exc:
            if attempt >= policy.max_attempts:
                raise RetryExhaustedError(operation, attempt, exc) from exc
            wait = policy.delay_for(attempt)
            logger.debug(
                "%s failed (attempt %d/%d): %s — retrying in %.1fs",
                operation, attempt, policy.max_attempts, exc, wait,
            )
            await sleep(wait)

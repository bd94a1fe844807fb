"""
sideline.sync.processor — Outbox Polling Processor
===================================================

One tick:

    1. ``find_pending(batch_size)`` — oldest first.
    2. For each event, one at a time and in order:
         dispatch(event)  → ok        → mark_processed
                          → SyncDataError → ERROR log,   mark_failed
                          → any other     → WARNING log, mark_failed
    3. Return a :class:`TickResult`.

Every event is attempted once.  A failed event is terminal and is never
picked up again; retrying happens inside the dispatch (see
:mod:`sideline.sync.retry`), not across ticks.

One event's failure never aborts the batch.  Storage errors while polling
or marking do propagate: the scheduling loop logs them and polls again on
its next tick.

Subclasses supply :meth:`SyncProcessor.dispatch` for their event flavor.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import ClassVar, TypeVar

from sideline.config import SyncSettings
from sideline.database.engine import run_db
from sideline.services.outbox_service import SyncEvent, SyncOutbox
from sideline.sync.errors import SyncDataError
from sideline.sync.gateway import SyncGateway
from sideline.sync.resolver import MappingResolver
from sideline.sync.retry import RetryPolicy, with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class TickResult:
    polled: int = 0
    processed: int = 0
    failed: int = 0
    skipped: int = 0


def describe_error(exc: BaseException) -> str:
    """Text stored in the event's ``error`` column."""
    message = str(exc)
    if isinstance(exc, SyncDataError):
        return message
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


class SyncProcessor:
    """Drains one outbox flavor against Discord."""

    flavor: ClassVar[str] = "sync"

    def __init__(
        self,
        outbox: SyncOutbox,
        resolver: MappingResolver,
        gateway: SyncGateway,
        settings: SyncSettings | None = None,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self.outbox = outbox
        self.resolver = resolver
        self.gateway = gateway
        self.settings = settings or SyncSettings()
        self.policy = RetryPolicy(
            base_delay=self.settings.retry_base_delay,
            max_retries=self.settings.retry_max_retries,
        )
        self.sleep = sleep

    # -----------------------------------------------------------------------
    # Hooks
    # -----------------------------------------------------------------------
    async def dispatch(self, event: SyncEvent) -> None:
        raise NotImplementedError

    async def call(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run one Discord call under the retry policy."""
        return await with_retry(call, self.policy, operation=operation, sleep=self.sleep)

    @staticmethod
    def require_user(event: SyncEvent) -> int:
        if event.discord_user_id is None:
            raise SyncDataError(
                f"{event.event_type} event {event.id} has no discord_user_id"
            )
        return event.discord_user_id

    # -----------------------------------------------------------------------
    # Tick
    # -----------------------------------------------------------------------
    async def process_tick(self) -> TickResult:
        events = await run_db(self.outbox.find_pending, self.settings.batch_size)
        logger.debug("%s processor: polled %d pending events", self.flavor, len(events))
        if not events:
            return TickResult()

        processed = failed = skipped = 0
        for event in events:
            if self.settings.claim_events:
                owned = await run_db(
                    self.outbox.claim,
                    event.id,
                    self.settings.worker_id,
                    self.settings.claim_lease_seconds,
                )
                if not owned:
                    logger.debug(
                        "%s event %d claimed by another worker; skipping",
                        self.flavor, event.id,
                    )
                    skipped += 1
                    continue

            try:
                await self.dispatch(event)
            except SyncDataError as exc:
                logger.error(
                    "%s event %d (%s) is malformed: %s",
                    self.flavor, event.id, event.event_type, exc,
                )
                await run_db(self.outbox.mark_failed, event.id, describe_error(exc))
                failed += 1
                continue
            except Exception as exc:
                logger.warning(
                    "%s event %d (%s) failed: %s",
                    self.flavor, event.id, event.event_type, exc,
                )
                await run_db(self.outbox.mark_failed, event.id, describe_error(exc))
                failed += 1
                continue

            await run_db(self.outbox.mark_processed, event.id)
            processed += 1

        logger.info(
            "%s processor: %d processed, %d failed, %d skipped",
            self.flavor, processed, failed, skipped,
        )
        return TickResult(
            polled=len(events), processed=processed, failed=failed, skipped=skipped,
        )

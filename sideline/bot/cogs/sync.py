"""
sideline.bot.cogs.sync — Outbox Polling Loops
==============================================

Two independent ``discord.ext.tasks`` loops, one per processor flavor.
``tasks.loop`` awaits each iteration before sleeping, so a slow tick
delays the next one instead of overlapping it.

A tick that raises (e.g. the database is down) is logged and the loop
keeps going; the same events are polled again next time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

from sideline.constants import DEFAULT_POLL_INTERVAL_SECONDS

if TYPE_CHECKING:
    from sideline.bot.core import SidelineBot

logger = logging.getLogger(__name__)


class SyncTasks(commands.Cog):
    """Drains the role and channel sync outboxes."""

    def __init__(self, bot: SidelineBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        interval = self.bot.cfg.sync.poll_interval_seconds
        self.role_sync_loop.change_interval(seconds=interval)
        self.channel_sync_loop.change_interval(seconds=interval)
        self.role_sync_loop.start()
        self.channel_sync_loop.start()
        logger.info("Sync loops started (every %.1fs)", interval)

    async def cog_unload(self) -> None:
        self.role_sync_loop.cancel()
        self.channel_sync_loop.cancel()

    # -------------------------------------------------------------------
    # Role sync
    # -------------------------------------------------------------------
    @tasks.loop(seconds=DEFAULT_POLL_INTERVAL_SECONDS)
    async def role_sync_loop(self):
        try:
            await self.bot.role_processor.process_tick()
        except Exception:
            logger.exception("Role sync tick failed", extra={"task": "role_sync"})

    @role_sync_loop.before_loop
    async def _wait_role_sync(self):
        await self.bot.wait_until_ready()

    # -------------------------------------------------------------------
    # Channel sync
    # -------------------------------------------------------------------
    @tasks.loop(seconds=DEFAULT_POLL_INTERVAL_SECONDS)
    async def channel_sync_loop(self):
        try:
            await self.bot.channel_processor.process_tick()
        except Exception:
            logger.exception("Channel sync tick failed", extra={"task": "channel_sync"})

    @channel_sync_loop.before_loop
    async def _wait_channel_sync(self):
        await self.bot.wait_until_ready()


async def setup(bot: SidelineBot) -> None:
    await bot.add_cog(SyncTasks(bot))

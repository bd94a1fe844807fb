"""
sideline.bot.cogs.tasks — Periodic Background Tasks
====================================================

- **Age check** — daily at ``age_check.hour_utc`` (default 02:00 UTC),
  re-evaluates age-threshold roles for every team that has rules.

Runs via ``run_db()`` so the DB work stays off the event loop.
"""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

from sideline.constants import DEFAULT_AGE_CHECK_HOUR_UTC
from sideline.database.engine import run_db
from sideline.services.age_check_service import evaluate_all_teams

if TYPE_CHECKING:
    from sideline.bot.core import SidelineBot

logger = logging.getLogger(__name__)


def _run_time(hour: int) -> datetime.time:
    return datetime.time(hour=hour, tzinfo=datetime.UTC)


class PeriodicTasks(commands.Cog):
    """Cog for scheduled background maintenance tasks."""

    def __init__(self, bot: SidelineBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        settings = self.bot.cfg.age_check
        if not settings.enabled:
            logger.info("Age check disabled in config")
            return
        self.age_check_loop.change_interval(time=_run_time(settings.hour_utc))
        self.age_check_loop.start()

    async def cog_unload(self) -> None:
        self.age_check_loop.cancel()

    # -------------------------------------------------------------------
    # Age check — once a day
    # -------------------------------------------------------------------
    @tasks.loop(time=_run_time(DEFAULT_AGE_CHECK_HOUR_UTC))
    async def age_check_loop(self):
        """Re-evaluate age-threshold roles for every team."""
        reference_year = datetime.datetime.now(datetime.UTC).year
        try:
            results = await run_db(evaluate_all_teams, self.bot.engine, reference_year)
            logger.info(
                "Age check task complete: %d teams, %d changes",
                len(results), sum(len(c) for c in results.values()),
            )
        except Exception:
            logger.exception("Age check task failed", extra={"task": "age_check"})

    @age_check_loop.before_loop
    async def _wait_age_check(self):
        await self.bot.wait_until_ready()


async def setup(bot: SidelineBot) -> None:
    await bot.add_cog(PeriodicTasks(bot))

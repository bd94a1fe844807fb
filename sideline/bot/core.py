"""
sideline.bot.core — Bot Instance & Cog Loader
==============================================

:class:`SidelineBot` is a ``commands.Bot`` that carries the shared state
every cog needs:

* ``bot.cfg``       — parsed :class:`SidelineConfig`
* ``bot.engine``    — SQLAlchemy engine
* ``bot.gateway``   — :class:`DiscordGateway` over ``bot.http``
* ``bot.role_processor`` / ``bot.channel_processor`` — the two outbox
  drainers, polled by :mod:`sideline.bot.cogs.sync`

All Discord writes go through the REST client, so the gateway connection
only needs the ``guilds`` intent.
"""

from __future__ import annotations

import logging

import discord
from discord.ext import commands
from sqlalchemy import Engine

from sideline.config import SidelineConfig
from sideline.services.mapping_service import ChannelMappingStore, RoleMappingStore
from sideline.services.outbox_service import ChannelSyncOutbox, RoleSyncOutbox
from sideline.sync.channel_sync import ChannelSyncProcessor
from sideline.sync.gateway import DiscordGateway
from sideline.sync.resolver import MappingResolver
from sideline.sync.retry import RetryPolicy
from sideline.sync.role_sync import RoleSyncProcessor

logger = logging.getLogger(__name__)

# Cog modules to load on startup
EXTENSIONS: list[str] = [
    "sideline.bot.cogs.sync",
    "sideline.bot.cogs.tasks",
]


class SidelineBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`SidelineConfig` from ``config.yaml``.
    engine:
        A SQLAlchemy :class:`Engine` connected to PostgreSQL.
    """

    def __init__(self, cfg: SidelineConfig, engine: Engine) -> None:
        intents = discord.Intents.none()
        intents.guilds = True

        super().__init__(command_prefix=cfg.bot_prefix, intents=intents)

        self.cfg = cfg
        self.engine = engine
        self.gateway = DiscordGateway(self.http)

        resolver = MappingResolver(
            self.gateway,
            RoleMappingStore(engine),
            ChannelMappingStore(engine),
            RetryPolicy(
                base_delay=cfg.sync.retry_base_delay,
                max_retries=cfg.sync.retry_max_retries,
            ),
        )
        self.role_processor = RoleSyncProcessor(
            RoleSyncOutbox(engine), resolver, self.gateway, cfg.sync,
        )
        self.channel_processor = ChannelSyncProcessor(
            ChannelSyncOutbox(engine), resolver, self.gateway, cfg.sync,
        )

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all cog extensions.  One broken cog does not stop the rest."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        assert self.user is not None  # guaranteed after on_ready
        logger.info(
            "Logged in as %s (ID: %s) — %d guilds",
            self.user.name, self.user.id, len(self.guilds),
        )

"""
sideline.sync.resolver — Get-or-Create Discord Counterparts
============================================================

``ensure_role`` / ``ensure_channel`` return the Discord id(s) mapped to a
team role or subgroup, creating the Discord resource and persisting the
mapping on first use.  A mapped entity never triggers a Discord call.

Not guarded against two resolvers racing on the same key: both may create
a Discord resource, and the later upsert simply repoints the mapping.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sideline.constants import PLACEHOLDER_ROLE_NAME, PLACEHOLDER_SUBGROUP_NAME, READ_WRITE
from sideline.database.engine import run_db
from sideline.services.mapping_service import (
    ChannelLink,
    ChannelMappingStore,
    RoleMappingStore,
)
from sideline.sync.gateway import SyncGateway
from sideline.sync.retry import RetryPolicy, with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MappingResolver:

    def __init__(
        self,
        gateway: SyncGateway,
        role_mappings: RoleMappingStore,
        channel_mappings: ChannelMappingStore,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self.gateway = gateway
        self.role_mappings = role_mappings
        self.channel_mappings = channel_mappings
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    async def _retry(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        return await with_retry(call, self.policy, operation=operation, sleep=self.sleep)

    # -----------------------------------------------------------------------
    # Roles
    # -----------------------------------------------------------------------
    async def ensure_role(
        self, team_id: int, role_id: int, guild_id: int, name: str | None
    ) -> int:
        """Discord role id for team role *role_id*, created if unmapped."""
        existing = await run_db(self.role_mappings.find, team_id, role_id)
        if existing is not None:
            return existing.discord_role_id

        role_name = name or PLACEHOLDER_ROLE_NAME
        discord_role_id = await self._retry(
            "create_role",
            lambda: self.gateway.create_role(guild_id, role_name),
        )
        await run_db(self.role_mappings.upsert, team_id, role_id, discord_role_id)
        logger.info(
            "Mapped role %d (team %d) → Discord role %d",
            role_id, team_id, discord_role_id,
        )
        return discord_role_id

    # -----------------------------------------------------------------------
    # Subgroup channels
    # -----------------------------------------------------------------------
    async def ensure_channel(
        self, team_id: int, subgroup_id: int, guild_id: int, name: str | None
    ) -> ChannelLink:
        """Private channel + access role for *subgroup_id*, created if unmapped.

        A mapping with a channel but no role gets its role created and
        granted in place.
        """
        existing = await run_db(self.channel_mappings.find, team_id, subgroup_id)
        if existing is not None and existing.discord_role_id is not None:
            return existing

        display = name or PLACEHOLDER_SUBGROUP_NAME

        if existing is not None:
            channel_id = existing.discord_channel_id
        else:
            channel_id = await self._retry(
                "create_channel",
                lambda: self.gateway.create_private_channel(guild_id, display),
            )
            # Persist the channel now so a failure below does not orphan it
            await run_db(
                self.channel_mappings.upsert, team_id, subgroup_id, channel_id, None,
            )

        discord_role_id = await self._retry(
            "create_role",
            lambda: self.gateway.create_role(guild_id, display),
        )
        await self._retry(
            "grant_channel_access",
            lambda: self.gateway.grant_channel_access(
                channel_id, discord_role_id, READ_WRITE,
            ),
        )
        await run_db(
            self.channel_mappings.upsert,
            team_id, subgroup_id, channel_id, discord_role_id,
        )
        logger.info(
            "Mapped subgroup %d (team %d) → channel %d, role %d",
            subgroup_id, team_id, channel_id, discord_role_id,
        )
        return ChannelLink(team_id, subgroup_id, channel_id, discord_role_id)

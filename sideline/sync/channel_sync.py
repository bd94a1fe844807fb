"""
sideline.sync.channel_sync — Subgroup Channel Sync Processor
=============================================================

Each subgroup is mirrored as a private text channel plus a companion role
that can see it.  Membership is granted by giving the member that role.

=================  =====================================================
channel_created    ensure the channel + access role exist
channel_deleted    delete the access role, the channel, then the mapping
member_added       ensure the channel, give the member the access role
member_removed     take the access role away from the member
=================  =====================================================
"""

from __future__ import annotations

import logging
from typing import assert_never

from sideline.database.engine import run_db
from sideline.database.models import ChannelSyncEvent, ChannelSyncEventType
from sideline.services.mapping_service import ChannelMappingStore
from sideline.sync.errors import SyncDataError
from sideline.sync.processor import SyncProcessor

logger = logging.getLogger(__name__)


class ChannelSyncProcessor(SyncProcessor):
    flavor = "channel"

    @property
    def mappings(self) -> ChannelMappingStore:
        return self.resolver.channel_mappings

    async def dispatch(self, event: ChannelSyncEvent) -> None:
        try:
            event_type = ChannelSyncEventType(event.event_type)
        except ValueError:
            raise SyncDataError(
                f"unknown channel sync event type {event.event_type!r}"
            ) from None

        match event_type:
            case ChannelSyncEventType.CHANNEL_CREATED:
                await self.resolver.ensure_channel(
                    event.team_id, event.subgroup_id, event.guild_id, event.subgroup_name,
                )
            case ChannelSyncEventType.CHANNEL_DELETED:
                await self._handle_deleted(event)
            case ChannelSyncEventType.MEMBER_ADDED:
                await self._handle_member_added(event)
            case ChannelSyncEventType.MEMBER_REMOVED:
                await self._handle_member_removed(event)
            case _:
                assert_never(event_type)

    # -----------------------------------------------------------------------
    # Handlers
    # -----------------------------------------------------------------------
    async def _handle_deleted(self, event: ChannelSyncEvent) -> None:
        mapping = await run_db(self.mappings.find, event.team_id, event.subgroup_id)
        if mapping is None:
            logger.info(
                "No mapping for subgroup %d in guild %d; skipping delete",
                event.subgroup_id, event.guild_id,
            )
            return

        role_id = mapping.discord_role_id
        if role_id is not None:
            await self.call(
                "delete_role",
                lambda: self.gateway.delete_role(event.guild_id, role_id),
            )
        await self.call(
            "delete_channel",
            lambda: self.gateway.delete_channel(mapping.discord_channel_id),
        )
        await run_db(self.mappings.delete, event.team_id, event.subgroup_id)
        logger.info(
            "Deleted channel %d for subgroup %d in guild %d",
            mapping.discord_channel_id, event.subgroup_id, event.guild_id,
        )

    async def _handle_member_added(self, event: ChannelSyncEvent) -> None:
        user_id = self.require_user(event)
        link = await self.resolver.ensure_channel(
            event.team_id, event.subgroup_id, event.guild_id, event.subgroup_name,
        )
        await self.call(
            "add_member_role",
            lambda: self.gateway.add_member_role(
                event.guild_id, user_id, link.discord_role_id,
            ),
        )
        logger.info(
            "Gave user %d access to channel %d in guild %d",
            user_id, link.discord_channel_id, event.guild_id,
        )

    async def _handle_member_removed(self, event: ChannelSyncEvent) -> None:
        user_id = self.require_user(event)
        mapping = await run_db(self.mappings.find, event.team_id, event.subgroup_id)
        if mapping is None or mapping.discord_role_id is None:
            logger.info(
                "No access role mapped for subgroup %d; skipping member_removed",
                event.subgroup_id,
            )
            return

        role_id = mapping.discord_role_id
        await self.call(
            "remove_member_role",
            lambda: self.gateway.remove_member_role(event.guild_id, user_id, role_id),
        )
        logger.info(
            "Removed user %d from channel %d in guild %d",
            user_id, mapping.discord_channel_id, event.guild_id,
        )

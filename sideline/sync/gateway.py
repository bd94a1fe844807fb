"""
sideline.sync.gateway — Discord REST Gateway
=============================================

The processors only ever talk to Discord through :class:`SyncGateway`.
:class:`DiscordGateway` implements it on top of discord.py's low-level
``HTTPClient`` (``bot.http``), so it works with raw snowflakes and never
needs the guild to be in the bot's cache.

Deletes and revokes are delete-if-exists: a 404 from Discord means the
thing is already gone, which is the outcome we wanted.
"""

from __future__ import annotations

import logging
from typing import Protocol

import discord

from sideline.constants import HIDDEN, READ_WRITE, PermissionPreset

logger = logging.getLogger(__name__)

# Permission overwrite target types (Discord API)
OVERWRITE_ROLE = 0
OVERWRITE_MEMBER = 1

AUDIT_REASON = "Sideline team sync"


class SyncGateway(Protocol):
    """Discord operations needed by the sync processors."""

    async def create_role(self, guild_id: int, name: str) -> int: ...

    async def delete_role(self, guild_id: int, role_id: int) -> None: ...

    async def add_member_role(
        self, guild_id: int, user_id: int, role_id: int
    ) -> None: ...

    async def remove_member_role(
        self, guild_id: int, user_id: int, role_id: int
    ) -> None: ...

    async def create_private_channel(self, guild_id: int, name: str) -> int: ...

    async def delete_channel(self, channel_id: int) -> None: ...

    async def grant_channel_access(
        self, channel_id: int, role_id: int, preset: PermissionPreset = READ_WRITE
    ) -> None: ...

    async def revoke_channel_access(self, channel_id: int, role_id: int) -> None: ...


class DiscordGateway:
    """:class:`SyncGateway` backed by ``discord.http.HTTPClient``."""

    def __init__(self, http: discord.http.HTTPClient):
        self.http = http

    # -- roles ---------------------------------------------------------------

    async def create_role(self, guild_id: int, name: str) -> int:
        data = await self.http.create_role(guild_id, reason=AUDIT_REASON, name=name)
        role_id = int(data["id"])
        logger.info("Created Discord role %r (%d) in guild %d", name, role_id, guild_id)
        return role_id

    async def delete_role(self, guild_id: int, role_id: int) -> None:
        try:
            await self.http.delete_role(guild_id, role_id, reason=AUDIT_REASON)
        except discord.NotFound:
            logger.info("Discord role %d already gone from guild %d", role_id, guild_id)
            return
        logger.info("Deleted Discord role %d in guild %d", role_id, guild_id)

    async def add_member_role(self, guild_id: int, user_id: int, role_id: int) -> None:
        await self.http.add_role(guild_id, user_id, role_id, reason=AUDIT_REASON)

    async def remove_member_role(
        self, guild_id: int, user_id: int, role_id: int
    ) -> None:
        try:
            await self.http.remove_role(guild_id, user_id, role_id, reason=AUDIT_REASON)
        except discord.NotFound:
            logger.info(
                "Role %d or member %d not found in guild %d; nothing to remove",
                role_id, user_id, guild_id,
            )

    # -- channels ------------------------------------------------------------

    async def create_private_channel(self, guild_id: int, name: str) -> int:
        """Create a text channel that @everyone cannot see."""
        everyone = {
            # The @everyone role shares the guild's id
            "id": str(guild_id),
            "type": OVERWRITE_ROLE,
            "allow": str(HIDDEN.allow_bits),
            "deny": str(HIDDEN.deny_bits),
        }
        data = await self.http.create_channel(
            guild_id,
            discord.ChannelType.text.value,
            reason=AUDIT_REASON,
            name=name,
            permission_overwrites=[everyone],
        )
        channel_id = int(data["id"])
        logger.info(
            "Created private channel #%s (%d) in guild %d", name, channel_id, guild_id,
        )
        return channel_id

    async def delete_channel(self, channel_id: int) -> None:
        try:
            await self.http.delete_channel(channel_id, reason=AUDIT_REASON)
        except discord.NotFound:
            logger.info("Discord channel %d already gone", channel_id)
            return
        logger.info("Deleted Discord channel %d", channel_id)

    async def grant_channel_access(
        self, channel_id: int, role_id: int, preset: PermissionPreset = READ_WRITE
    ) -> None:
        await self.http.edit_channel_permissions(
            channel_id,
            role_id,
            str(preset.allow_bits),
            str(preset.deny_bits),
            OVERWRITE_ROLE,
            reason=AUDIT_REASON,
        )

    async def revoke_channel_access(self, channel_id: int, role_id: int) -> None:
        try:
            await self.http.delete_channel_permissions(
                channel_id, role_id, reason=AUDIT_REASON,
            )
        except discord.NotFound:
            logger.info(
                "No overwrite for role %d on channel %d; nothing to revoke",
                role_id, channel_id,
            )

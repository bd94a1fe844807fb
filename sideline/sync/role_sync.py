"""
sideline.sync.role_sync — Role Sync Processor
==============================================

=================  =====================================================
role_created       ensure the team role has a Discord role
role_deleted       delete the Discord role, then the mapping
role_assigned      ensure the Discord role, add it to the member
role_unassigned    remove the mapped Discord role from the member
=================  =====================================================
"""

from __future__ import annotations

import logging
from typing import assert_never

from sideline.database.engine import run_db
from sideline.database.models import RoleSyncEvent, RoleSyncEventType
from sideline.services.mapping_service import RoleMappingStore
from sideline.sync.errors import SyncDataError
from sideline.sync.processor import SyncProcessor

logger = logging.getLogger(__name__)


class RoleSyncProcessor(SyncProcessor):
    flavor = "role"

    @property
    def mappings(self) -> RoleMappingStore:
        return self.resolver.role_mappings

    async def dispatch(self, event: RoleSyncEvent) -> None:
        try:
            event_type = RoleSyncEventType(event.event_type)
        except ValueError:
            raise SyncDataError(
                f"unknown role sync event type {event.event_type!r}"
            ) from None

        match event_type:
            case RoleSyncEventType.ROLE_CREATED:
                await self.resolver.ensure_role(
                    event.team_id, event.role_id, event.guild_id, event.role_name,
                )
            case RoleSyncEventType.ROLE_DELETED:
                await self._handle_deleted(event)
            case RoleSyncEventType.ROLE_ASSIGNED:
                await self._handle_assigned(event)
            case RoleSyncEventType.ROLE_UNASSIGNED:
                await self._handle_unassigned(event)
            case _:
                assert_never(event_type)

    # -----------------------------------------------------------------------
    # Handlers
    # -----------------------------------------------------------------------
    async def _handle_deleted(self, event: RoleSyncEvent) -> None:
        mapping = await run_db(self.mappings.find, event.team_id, event.role_id)
        if mapping is None:
            logger.info(
                "No mapping for role %d in guild %d; skipping delete",
                event.role_id, event.guild_id,
            )
            return

        await self.call(
            "delete_role",
            lambda: self.gateway.delete_role(event.guild_id, mapping.discord_role_id),
        )
        await run_db(self.mappings.delete, event.team_id, event.role_id)

    async def _handle_assigned(self, event: RoleSyncEvent) -> None:
        user_id = self.require_user(event)
        discord_role_id = await self.resolver.ensure_role(
            event.team_id, event.role_id, event.guild_id, event.role_name,
        )
        await self.call(
            "add_member_role",
            lambda: self.gateway.add_member_role(event.guild_id, user_id, discord_role_id),
        )
        logger.info(
            "Assigned role %d to user %d in guild %d",
            discord_role_id, user_id, event.guild_id,
        )

    async def _handle_unassigned(self, event: RoleSyncEvent) -> None:
        user_id = self.require_user(event)
        mapping = await run_db(self.mappings.find, event.team_id, event.role_id)
        if mapping is None:
            logger.info(
                "No mapping for role %d in guild %d; skipping unassign",
                event.role_id, event.guild_id,
            )
            return

        await self.call(
            "remove_member_role",
            lambda: self.gateway.remove_member_role(
                event.guild_id, user_id, mapping.discord_role_id,
            ),
        )
        logger.info(
            "Removed role %d from user %d in guild %d",
            mapping.discord_role_id, user_id, event.guild_id,
        )

"""
sideline.services.mapping_service — Internal ↔ Discord Id Mappings
===================================================================

Two stores, both keyed by ``(team_id, internal_id)``:

* :class:`RoleMappingStore`    — team role    → Discord role
* :class:`ChannelMappingStore` — team subgroup → Discord channel (+ the
  companion role that grants access to it)

``upsert`` is a single ``INSERT … ON CONFLICT … DO UPDATE`` so concurrent
writers for the same key never raise; the last writer wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, delete, select, text

from sideline.database.engine import get_session
from sideline.database.models import DiscordChannelMapping, DiscordRoleMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RoleLink:
    team_id: int
    role_id: int
    discord_role_id: int


@dataclass(frozen=True, slots=True)
class ChannelLink:
    team_id: int
    subgroup_id: int
    discord_channel_id: int
    discord_role_id: int | None = None


# ---------------------------------------------------------------------------
# Role mappings
# ---------------------------------------------------------------------------
class RoleMappingStore:

    def __init__(self, engine: Engine):
        self.engine = engine

    def find(self, team_id: int, role_id: int) -> RoleLink | None:
        with get_session(self.engine) as session:
            row = session.scalar(
                select(DiscordRoleMapping).where(
                    DiscordRoleMapping.team_id == team_id,
                    DiscordRoleMapping.role_id == role_id,
                )
            )
            if row is None:
                return None
            return RoleLink(row.team_id, row.role_id, row.discord_role_id)

    def upsert(self, team_id: int, role_id: int, discord_role_id: int) -> None:
        with get_session(self.engine) as session:
            session.execute(
                text("""
                    INSERT INTO discord_role_mappings
                        (team_id, role_id, discord_role_id)
                    VALUES (:tid, :rid, :drid)
                    ON CONFLICT (team_id, role_id)
                    DO UPDATE SET discord_role_id = excluded.discord_role_id
                """),
                {"tid": team_id, "rid": role_id, "drid": discord_role_id},
            )
        logger.debug(
            "Role mapping team=%d role=%d → %d", team_id, role_id, discord_role_id,
        )

    def delete(self, team_id: int, role_id: int) -> bool:
        """Remove the mapping.  Returns ``False`` when there was none."""
        with get_session(self.engine) as session:
            result = session.execute(
                delete(DiscordRoleMapping).where(
                    DiscordRoleMapping.team_id == team_id,
                    DiscordRoleMapping.role_id == role_id,
                )
            )
            return result.rowcount > 0


# ---------------------------------------------------------------------------
# Channel mappings
# ---------------------------------------------------------------------------
class ChannelMappingStore:

    def __init__(self, engine: Engine):
        self.engine = engine

    def find(self, team_id: int, subgroup_id: int) -> ChannelLink | None:
        with get_session(self.engine) as session:
            row = session.scalar(
                select(DiscordChannelMapping).where(
                    DiscordChannelMapping.team_id == team_id,
                    DiscordChannelMapping.subgroup_id == subgroup_id,
                )
            )
            if row is None:
                return None
            return ChannelLink(
                row.team_id, row.subgroup_id,
                row.discord_channel_id, row.discord_role_id,
            )

    def upsert(
        self,
        team_id: int,
        subgroup_id: int,
        discord_channel_id: int,
        discord_role_id: int | None = None,
    ) -> None:
        with get_session(self.engine) as session:
            session.execute(
                text("""
                    INSERT INTO discord_channel_mappings
                        (team_id, subgroup_id, discord_channel_id, discord_role_id)
                    VALUES (:tid, :sid, :dcid, :drid)
                    ON CONFLICT (team_id, subgroup_id)
                    DO UPDATE SET
                        discord_channel_id = excluded.discord_channel_id,
                        discord_role_id = excluded.discord_role_id
                """),
                {
                    "tid": team_id,
                    "sid": subgroup_id,
                    "dcid": discord_channel_id,
                    "drid": discord_role_id,
                },
            )
        logger.debug(
            "Channel mapping team=%d subgroup=%d → channel %d role %s",
            team_id, subgroup_id, discord_channel_id, discord_role_id,
        )

    def delete(self, team_id: int, subgroup_id: int) -> bool:
        """Remove the mapping.  Returns ``False`` when there was none."""
        with get_session(self.engine) as session:
            result = session.execute(
                delete(DiscordChannelMapping).where(
                    DiscordChannelMapping.team_id == team_id,
                    DiscordChannelMapping.subgroup_id == subgroup_id,
                )
            )
            return result.rowcount > 0

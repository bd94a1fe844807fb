"""
sideline.database.models — SQLAlchemy 2.0 Data Models
======================================================

Only the slice of the team-management schema the sync engine touches.

Tables:
- teams                     — Teams, optionally linked to a Discord guild
- users                     — People (Discord identity + birth year)
- team_members              — Membership of a user in a team
- roles                     — Team-scoped roles
- member_roles              — Role assignments (junction)
- subgroups                 — Team-scoped subgroups (one private channel each)
- age_threshold_rules       — Age bounds that grant a role
- notifications             — Per-user inbox records
- discord_role_mappings     — role ↔ Discord role
- discord_channel_mappings  — subgroup ↔ Discord channel (+ access role)
- role_sync_events          — Outbox for role effects
- channel_sync_events       — Outbox for subgroup channel effects
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Sideline ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class RoleSyncEventType(enum.StrEnum):
    """Effects the role processor knows how to apply."""
    ROLE_CREATED = "role_created"
    ROLE_DELETED = "role_deleted"
    ROLE_ASSIGNED = "role_assigned"
    ROLE_UNASSIGNED = "role_unassigned"


class ChannelSyncEventType(enum.StrEnum):
    """Effects the channel processor knows how to apply."""
    CHANNEL_CREATED = "channel_created"
    CHANNEL_DELETED = "channel_deleted"
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"


class NotificationType(enum.StrEnum):
    AGE_ROLE_ASSIGNED = "age_role_assigned"
    AGE_ROLE_REMOVED = "age_role_removed"


# ---------------------------------------------------------------------------
# Teams — a team may be linked to one Discord guild
# ---------------------------------------------------------------------------
class Team(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    guild_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_teams_guild_id", "guild_id"),
    )

    def __repr__(self) -> str:
        return f"<Team id={self.id} name={self.name!r} guild={self.guild_id}>"


# ---------------------------------------------------------------------------
# Users — one row per person
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    discord_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    discord_username: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str | None] = mapped_column(String(100), default=None)
    birth_year: Mapped[int | None] = mapped_column(Integer, default=None)

    def __repr__(self) -> str:
        return f"<User id={self.id} discord={self.discord_username!r}>"


# ---------------------------------------------------------------------------
# TeamMember — a user's membership in a team
# ---------------------------------------------------------------------------
class TeamMember(Base):
    __tablename__ = "team_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    user: Mapped[User] = relationship()
    roles: Mapped[list[MemberRole]] = relationship(
        back_populates="member", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )

    def __repr__(self) -> str:
        return f"<TeamMember id={self.id} team={self.team_id} user={self.user_id}>"


# ---------------------------------------------------------------------------
# Role — team-scoped role
# ---------------------------------------------------------------------------
class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("team_id", "name", name="uq_roles_team_name"),
    )

    def __repr__(self) -> str:
        return f"<Role id={self.id} name={self.name!r}>"


class MemberRole(Base):
    __tablename__ = "member_roles"

    team_member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("team_members.id", ondelete="CASCADE"), primary_key=True
    )
    role_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True
    )

    member: Mapped[TeamMember] = relationship(back_populates="roles")

    def __repr__(self) -> str:
        return f"<MemberRole member={self.team_member_id} role={self.role_id}>"


# ---------------------------------------------------------------------------
# Subgroup — team-scoped group mirrored as a private Discord channel
# ---------------------------------------------------------------------------
class Subgroup(Base):
    __tablename__ = "subgroups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Subgroup id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# AgeThresholdRule — inclusive [min_age, max_age]; NULL bound = unbounded
# ---------------------------------------------------------------------------
class AgeThresholdRule(Base):
    __tablename__ = "age_threshold_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    role_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
    )
    min_age: Mapped[int | None] = mapped_column(Integer, default=None)
    max_age: Mapped[int | None] = mapped_column(Integer, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    role: Mapped[Role] = relationship()

    __table_args__ = (
        UniqueConstraint("team_id", "role_id", name="uq_age_rules_team_role"),
        Index("ix_age_rules_team", "team_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<AgeThresholdRule id={self.id} role={self.role_id} "
            f"min={self.min_age} max={self.max_age}>"
        )


# ---------------------------------------------------------------------------
# Notification — per-user inbox record
# ---------------------------------------------------------------------------
class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    def __repr__(self) -> str:
        return f"<Notification id={self.id} user={self.user_id} type={self.type!r}>"


# ---------------------------------------------------------------------------
# Mappings — internal id ↔ Discord snowflake, one per (team, internal id)
# ---------------------------------------------------------------------------
class DiscordRoleMapping(Base):
    __tablename__ = "discord_role_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(Integer, nullable=False)
    # No FK: the mapping must outlive the role until the delete event runs
    role_id: Mapped[int] = mapped_column(Integer, nullable=False)
    discord_role_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("team_id", "role_id", name="uq_role_mappings_team_role"),
    )

    def __repr__(self) -> str:
        return (
            f"<DiscordRoleMapping team={self.team_id} role={self.role_id} "
            f"discord={self.discord_role_id}>"
        )


class DiscordChannelMapping(Base):
    """A subgroup's private channel plus the role that grants access to it."""
    __tablename__ = "discord_channel_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(Integer, nullable=False)
    subgroup_id: Mapped[int] = mapped_column(Integer, nullable=False)
    discord_channel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    discord_role_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "team_id", "subgroup_id", name="uq_channel_mappings_team_subgroup",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<DiscordChannelMapping team={self.team_id} subgroup={self.subgroup_id} "
            f"channel={self.discord_channel_id} role={self.discord_role_id}>"
        )


# ---------------------------------------------------------------------------
# Sync outbox — one row per intended Discord effect
# ---------------------------------------------------------------------------
class SyncEventColumns:
    """Columns shared by both outbox tables.

    ``processed_at IS NULL`` is the only "pending" predicate.  Once set, the
    row is terminal; ``error`` distinguishes failure from success.
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(Integer, nullable=False)
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    event_type: Mapped[str] = mapped_column(String(32), nullable=False)
    team_member_id: Mapped[int | None] = mapped_column(Integer, default=None)
    discord_user_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    error: Mapped[str | None] = mapped_column(Text, default=None)
    claimed_by: Mapped[str | None] = mapped_column(String(128), default=None)
    claimed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    @property
    def is_terminal(self) -> bool:
        return self.processed_at is not None


class RoleSyncEvent(SyncEventColumns, Base):
    __tablename__ = "role_sync_events"

    role_id: Mapped[int] = mapped_column(Integer, nullable=False)
    role_name: Mapped[str | None] = mapped_column(String(100), default=None)

    __table_args__ = (
        Index(
            "idx_role_sync_events_unprocessed", "created_at",
            postgresql_where=text("processed_at IS NULL"),
        ),
    )

    @property
    def subject_id(self) -> int:
        return self.role_id

    @property
    def subject_name(self) -> str | None:
        return self.role_name

    def __repr__(self) -> str:
        return (
            f"<RoleSyncEvent id={self.id} type={self.event_type!r} "
            f"role={self.role_id} processed={self.processed_at is not None}>"
        )


class ChannelSyncEvent(SyncEventColumns, Base):
    __tablename__ = "channel_sync_events"

    subgroup_id: Mapped[int] = mapped_column(Integer, nullable=False)
    subgroup_name: Mapped[str | None] = mapped_column(String(100), default=None)

    __table_args__ = (
        Index(
            "idx_channel_sync_events_unprocessed", "created_at",
            postgresql_where=text("processed_at IS NULL"),
        ),
    )

    @property
    def subject_id(self) -> int:
        return self.subgroup_id

    @property
    def subject_name(self) -> str | None:
        return self.subgroup_name

    def __repr__(self) -> str:
        return (
            f"<ChannelSyncEvent id={self.id} type={self.event_type!r} "
            f"subgroup={self.subgroup_id} processed={self.processed_at is not None}>"
        )

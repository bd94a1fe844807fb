"""
sideline.services.outbox_service — Sync Event Outbox
=====================================================

Append-only log of intended Discord effects, one table per flavor
(``role_sync_events``, ``channel_sync_events``).

Lifecycle of a row:

    append()  →  pending (processed_at IS NULL)
              →  mark_processed() / mark_failed()  →  terminal

``processed_at`` is the only gate.  A terminal row is never re-selected and
never transitioned again: both ``mark_*`` calls are conditional updates on
``processed_at IS NULL``, so the first terminal state wins and any later
call is a harmless no-op returning ``False``.

Producers (domain mutation handlers, the age check) go through
:meth:`SyncOutbox.try_emit`, which never raises; a failed append must not
fail the mutation that triggered it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import ClassVar

from sqlalchemy import Engine, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from sideline.constants import POLL_BATCH_SIZE
from sideline.database.engine import get_session
from sideline.database.models import (
    ChannelSyncEvent,
    RoleSyncEvent,
    Team,
)

logger = logging.getLogger(__name__)

SyncEvent = RoleSyncEvent | ChannelSyncEvent


@dataclass(frozen=True, slots=True)
class EmitResult:
    """Outcome of a best-effort emit.  Callers are free to ignore it."""

    emitted: bool
    event_id: int | None = None
    error: str | None = None

    def __bool__(self) -> bool:
        return self.emitted


# ---------------------------------------------------------------------------
# Shared outbox implementation
# ---------------------------------------------------------------------------
class SyncOutbox:
    """Outbox operations common to both flavors.

    Subclasses set :attr:`model` and the names of the subject columns.
    """

    model: ClassVar[type[SyncEvent]]
    subject_id_column: ClassVar[str]
    subject_name_column: ClassVar[str]
    flavor: ClassVar[str]

    def __init__(self, engine: Engine):
        self.engine = engine

    # -- producing ---------------------------------------------------------

    def append(
        self,
        *,
        team_id: int,
        guild_id: int,
        event_type: str,
        subject_id: int,
        subject_name: str | None = None,
        team_member_id: int | None = None,
        discord_user_id: int | None = None,
    ) -> int:
        """Insert a pending event and return its id.  Storage errors propagate."""
        row = self.model(
            team_id=team_id,
            guild_id=guild_id,
            event_type=str(event_type),
            team_member_id=team_member_id,
            discord_user_id=discord_user_id,
            created_at=datetime.now(UTC),
            **{
                self.subject_id_column: subject_id,
                self.subject_name_column: subject_name,
            },
        )
        with get_session(self.engine) as session:
            session.add(row)
            session.flush()
            event_id = row.id

        logger.debug(
            "Appended %s sync event %d (%s, team=%d, subject=%d)",
            self.flavor, event_id, event_type, team_id, subject_id,
        )
        return event_id

    def emit_if_guild_linked(
        self,
        team_id: int,
        event_type: str,
        subject_id: int,
        subject_name: str | None = None,
        team_member_id: int | None = None,
        discord_user_id: int | None = None,
    ) -> int | None:
        """Append an event only when the team has a Discord guild linked.

        Returns the new event id, or ``None`` when the team is not linked
        (silent no-op).
        """
        with get_session(self.engine) as session:
            guild_id = session.scalar(
                select(Team.guild_id).where(Team.id == team_id)
            )

        if guild_id is None:
            logger.debug(
                "Team %d has no guild linked; skipping %s event", team_id, event_type,
            )
            return None

        return self.append(
            team_id=team_id,
            guild_id=guild_id,
            event_type=event_type,
            subject_id=subject_id,
            subject_name=subject_name,
            team_member_id=team_member_id,
            discord_user_id=discord_user_id,
        )

    def try_emit(
        self,
        team_id: int,
        event_type: str,
        subject_id: int,
        subject_name: str | None = None,
        team_member_id: int | None = None,
        discord_user_id: int | None = None,
    ) -> EmitResult:
        """Best-effort :meth:`emit_if_guild_linked`.  Never raises."""
        try:
            event_id = self.emit_if_guild_linked(
                team_id, event_type, subject_id,
                subject_name=subject_name,
                team_member_id=team_member_id,
                discord_user_id=discord_user_id,
            )
        except SQLAlchemyError as exc:
            logger.warning(
                "Failed to emit %s sync event %s for team %d: %s",
                self.flavor, event_type, team_id, exc,
            )
            return EmitResult(emitted=False, error=str(exc))

        return EmitResult(emitted=event_id is not None, event_id=event_id)

    # -- consuming ---------------------------------------------------------

    def find_pending(self, limit: int = POLL_BATCH_SIZE) -> list[SyncEvent]:
        """Oldest-first pending events, at most *limit* of them.

        Rows are detached from their session; read-only use only.
        """
        model = self.model
        stmt = (
            select(model)
            .where(model.processed_at.is_(None))
            .order_by(model.created_at, model.id)
            .limit(limit)
        )
        with get_session(self.engine, expire_on_commit=False) as session:
            return list(session.scalars(stmt).all())

    def mark_processed(self, event_id: int) -> bool:
        """Mark *event_id* successfully processed.

        Returns ``False`` when the event was already terminal (or missing).
        """
        return self._terminate(event_id, error=None)

    def mark_failed(self, event_id: int, error: str) -> bool:
        """Mark *event_id* failed with *error*.  Same contract as
        :meth:`mark_processed`."""
        return self._terminate(event_id, error=error)

    def _terminate(self, event_id: int, error: str | None) -> bool:
        model = self.model
        stmt = (
            update(model)
            .where(model.id == event_id, model.processed_at.is_(None))
            .values(processed_at=datetime.now(UTC), error=error)
        )
        with get_session(self.engine) as session:
            changed = session.execute(stmt).rowcount == 1

        if not changed:
            logger.debug(
                "%s sync event %d already terminal; left untouched",
                self.flavor, event_id,
            )
        return changed

    def claim(
        self,
        event_id: int,
        worker_id: str,
        lease_seconds: int,
        *,
        now: datetime | None = None,
    ) -> bool:
        """Take a lease on a pending event for *worker_id*.

        Succeeds when the event is pending and either unclaimed, already held
        by this worker, or held under a lease older than *lease_seconds*.
        """
        model = self.model
        now = now or datetime.now(UTC)
        expired_before = now - timedelta(seconds=lease_seconds)
        stmt = (
            update(model)
            .where(
                model.id == event_id,
                model.processed_at.is_(None),
                or_(
                    model.claimed_by.is_(None),
                    model.claimed_by == worker_id,
                    model.claimed_at < expired_before,
                ),
            )
            .values(claimed_by=worker_id, claimed_at=now)
        )
        with get_session(self.engine) as session:
            return session.execute(stmt).rowcount == 1


# ---------------------------------------------------------------------------
# Flavors
# ---------------------------------------------------------------------------
class RoleSyncOutbox(SyncOutbox):
    model = RoleSyncEvent
    subject_id_column = "role_id"
    subject_name_column = "role_name"
    flavor = "role"


class ChannelSyncOutbox(SyncOutbox):
    model = ChannelSyncEvent
    subject_id_column = "subgroup_id"
    subject_name_column = "subgroup_name"
    flavor = "channel"

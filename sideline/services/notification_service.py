"""
sideline.services.notification_service — Notification Records
===============================================================

Creating the inbox row is all this layer does; delivery belongs to the
product front end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import Engine, insert

from sideline.database.engine import get_session
from sideline.database.models import Notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NotificationDraft:
    team_id: int
    user_id: int
    type: str
    title: str
    body: str


def insert_bulk(engine: Engine, drafts: list[NotificationDraft]) -> int:
    """Insert all *drafts* in one statement.  Returns the number written.

    An empty list writes nothing and does not touch the database.
    """
    if not drafts:
        return 0

    now = datetime.now(UTC)
    with get_session(engine) as session:
        session.execute(
            insert(Notification),
            [
                {
                    "team_id": d.team_id,
                    "user_id": d.user_id,
                    "type": str(d.type),
                    "title": d.title,
                    "body": d.body,
                    "is_read": False,
                    "created_at": now,
                }
                for d in drafts
            ],
        )

    logger.debug("Inserted %d notifications", len(drafts))
    return len(drafts)

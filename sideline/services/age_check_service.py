"""
sideline.services.age_check_service — Age-Based Role Reconciliation
====================================================================

Keeps age-gated roles (e.g. "U12") in line with each member's birth year.

How it works:
    1. Load the team's age rules and a snapshot of its active members.
    2. Diff desired vs. actual grants (:func:`compute_age_changes`).
    3. Nothing to do → return immediately, no side effects.
    4. Commit each change to ``member_roles``; one failed commit is logged
       and does not stop the rest.
    5. Notify every team admin about each committed change (one bulk
       insert).
    6. Emit a ``role_assigned`` / ``role_unassigned`` sync event per
       committed change so Discord follows.

Only step 1 can fail the run.  The return value is the full computed diff,
whatever happened in steps 4–6.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError

from sideline.database.engine import get_session
from sideline.database.models import (
    AgeThresholdRule,
    NotificationType,
    RoleSyncEventType,
)
from sideline.engine.age_rules import (
    AgeRoleChange,
    ChangeAction,
    MemberSnapshot,
    compute_age_changes,
)
from sideline.services.member_service import (
    assign_role,
    load_age_rules,
    load_member_snapshot,
    unassign_role,
)
from sideline.services.notification_service import NotificationDraft, insert_bulk
from sideline.services.outbox_service import RoleSyncOutbox

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Notification text
# ---------------------------------------------------------------------------
def build_notification(
    team_id: int, admin_user_id: int, change: AgeRoleChange
) -> NotificationDraft:
    if change.action is ChangeAction.ASSIGNED:
        return NotificationDraft(
            team_id=team_id,
            user_id=admin_user_id,
            type=NotificationType.AGE_ROLE_ASSIGNED,
            title=f'Role "{change.role_name}" assigned',
            body=(
                f'{change.member_name} was automatically assigned the '
                f'"{change.role_name}" role based on age threshold.'
            ),
        )
    return NotificationDraft(
        team_id=team_id,
        user_id=admin_user_id,
        type=NotificationType.AGE_ROLE_REMOVED,
        title=f'Role "{change.role_name}" removed',
        body=(
            f'{change.member_name} was automatically removed from the '
            f'"{change.role_name}" role based on age threshold.'
        ),
    )


# ---------------------------------------------------------------------------
# Side-effect stages
# ---------------------------------------------------------------------------
def _commit_changes(
    engine: Engine, team_id: int, changes: list[AgeRoleChange]
) -> list[AgeRoleChange]:
    committed: list[AgeRoleChange] = []
    for change in changes:
        try:
            if change.action is ChangeAction.ASSIGNED:
                assign_role(engine, change.member_id, change.role_id)
            else:
                unassign_role(engine, change.member_id, change.role_id)
        except SQLAlchemyError as exc:
            logger.warning(
                "Age check (team %d): could not %s role %d for member %d: %s",
                team_id,
                "assign" if change.action is ChangeAction.ASSIGNED else "remove",
                change.role_id, change.member_id, exc,
            )
            continue
        committed.append(change)
    return committed


def _notify_admins(
    engine: Engine,
    team_id: int,
    members: list[MemberSnapshot],
    committed: list[AgeRoleChange],
) -> None:
    admin_ids = list(dict.fromkeys(m.user_id for m in members if m.is_admin))
    drafts = [
        build_notification(team_id, admin_id, change)
        for admin_id in admin_ids
        for change in committed
    ]
    if not drafts:
        logger.debug("Age check (team %d): no admin notifications to send", team_id)
        return

    try:
        insert_bulk(engine, drafts)
    except SQLAlchemyError as exc:
        logger.warning(
            "Age check (team %d): failed to insert %d notifications: %s",
            team_id, len(drafts), exc,
        )


def _propagate(
    outbox: RoleSyncOutbox,
    team_id: int,
    members: list[MemberSnapshot],
    committed: list[AgeRoleChange],
) -> None:
    by_member = {m.member_id: m for m in members}
    for change in committed:
        member = by_member.get(change.member_id)
        event_type = (
            RoleSyncEventType.ROLE_ASSIGNED
            if change.action is ChangeAction.ASSIGNED
            else RoleSyncEventType.ROLE_UNASSIGNED
        )
        # try_emit logs its own failures
        outbox.try_emit(
            team_id,
            event_type,
            change.role_id,
            subject_name=change.role_name,
            team_member_id=change.member_id,
            discord_user_id=member.discord_user_id if member else None,
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def evaluate_team(
    engine: Engine,
    team_id: int,
    reference_year: int,
    *,
    outbox: RoleSyncOutbox | None = None,
) -> list[AgeRoleChange]:
    """Run one age reconciliation for *team_id* as of *reference_year*.

    Raises only if the rules or the member snapshot cannot be loaded.
    """
    rules = load_age_rules(engine, team_id)
    members = load_member_snapshot(engine, team_id)

    changes = compute_age_changes(rules, members, reference_year)
    if not changes:
        logger.info("Age check (team %d): no changes", team_id)
        return []

    committed = _commit_changes(engine, team_id, changes)
    _notify_admins(engine, team_id, members, committed)
    _propagate(outbox or RoleSyncOutbox(engine), team_id, members, committed)

    logger.info(
        "Age check (team %d): %d changes computed, %d committed",
        team_id, len(changes), len(committed),
    )
    return changes


def evaluate_all_teams(
    engine: Engine, reference_year: int
) -> dict[int, list[AgeRoleChange]]:
    """Run :func:`evaluate_team` for every team with at least one rule.

    A team that fails is logged and left out of the result.
    """
    with get_session(engine) as session:
        team_ids = list(session.scalars(
            select(AgeThresholdRule.team_id).distinct().order_by(AgeThresholdRule.team_id)
        ).all())

    outbox = RoleSyncOutbox(engine)
    results: dict[int, list[AgeRoleChange]] = {}
    for team_id in team_ids:
        try:
            results[team_id] = evaluate_team(
                engine, team_id, reference_year, outbox=outbox,
            )
        except Exception:
            logger.exception("Age check failed for team %d", team_id)

    logger.info(
        "Age check complete: %d teams, %d changes",
        len(results), sum(len(c) for c in results.values()),
    )
    return results

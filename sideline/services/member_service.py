"""
sideline.services.member_service — Member Snapshot & Role Assignment
=====================================================================

Read side: the age rules and active-member snapshot consumed by
:mod:`sideline.engine.age_rules`.

Write side: idempotent role assignment / removal on ``member_roles``.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy import Engine, delete, select, text

from sideline.constants import ADMIN_ROLE_NAME
from sideline.database.engine import get_session
from sideline.database.models import (
    AgeThresholdRule,
    MemberRole,
    Role,
    TeamMember,
    User,
)
from sideline.engine.age_rules import AgeRule, MemberSnapshot

logger = logging.getLogger(__name__)


def load_age_rules(engine: Engine, team_id: int) -> list[AgeRule]:
    """All age-threshold rules for *team_id*, joined with the role name."""
    stmt = (
        select(AgeThresholdRule, Role.name)
        .join(Role, Role.id == AgeThresholdRule.role_id)
        .where(AgeThresholdRule.team_id == team_id)
        .order_by(AgeThresholdRule.id)
    )
    with get_session(engine) as session:
        return [
            AgeRule(
                rule_id=rule.id,
                role_id=rule.role_id,
                role_name=role_name,
                min_age=rule.min_age,
                max_age=rule.max_age,
            )
            for rule, role_name in session.execute(stmt).all()
        ]


def load_member_snapshot(engine: Engine, team_id: int) -> list[MemberSnapshot]:
    """Active members of *team_id* with their birth year and current roles.

    ``is_admin`` is true for members holding the team's ``Admin`` role.
    """
    with get_session(engine) as session:
        member_rows = session.execute(
            select(
                TeamMember.id,
                TeamMember.user_id,
                User.name,
                User.discord_username,
                User.discord_id,
                User.birth_year,
            )
            .join(User, User.id == TeamMember.user_id)
            .where(TeamMember.team_id == team_id, TeamMember.active.is_(True))
            .order_by(TeamMember.id)
        ).all()

        role_rows = session.execute(
            select(MemberRole.team_member_id, Role.id, Role.name)
            .join(Role, Role.id == MemberRole.role_id)
            .join(TeamMember, TeamMember.id == MemberRole.team_member_id)
            .where(TeamMember.team_id == team_id)
        ).all()

    role_ids: dict[int, set[int]] = defaultdict(set)
    admins: set[int] = set()
    for member_id, role_id, role_name in role_rows:
        role_ids[member_id].add(role_id)
        if role_name == ADMIN_ROLE_NAME:
            admins.add(member_id)

    return [
        MemberSnapshot(
            member_id=row.id,
            user_id=row.user_id,
            name=row.name or row.discord_username,
            birth_year=row.birth_year,
            role_ids=frozenset(role_ids.get(row.id, ())),
            discord_user_id=row.discord_id,
            is_admin=row.id in admins,
        )
        for row in member_rows
    ]


def assign_role(engine: Engine, team_member_id: int, role_id: int) -> None:
    """Grant *role_id* to the member.  Granting a held role is a no-op."""
    with get_session(engine) as session:
        session.execute(
            text("""
                INSERT INTO member_roles (team_member_id, role_id)
                VALUES (:mid, :rid)
                ON CONFLICT (team_member_id, role_id) DO NOTHING
            """),
            {"mid": team_member_id, "rid": role_id},
        )


def unassign_role(engine: Engine, team_member_id: int, role_id: int) -> None:
    """Revoke *role_id* from the member.  Revoking an absent role is a no-op."""
    with get_session(engine) as session:
        session.execute(
            delete(MemberRole).where(
                MemberRole.team_member_id == team_member_id,
                MemberRole.role_id == role_id,
            )
        )

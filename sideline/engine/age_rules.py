"""
sideline.engine.age_rules — Age-Threshold Role Diff
====================================================

Pure computation.  No Discord I/O, no DB I/O.

Given the team's age rules, a snapshot of its active members and a
reference year, work out which role grants are missing and which are
stale::

    age            = reference_year - birth_year
    should_have    = (min_age is None or age >= min_age)
                     and (max_age is None or age <= max_age)
    has            = rule.role_id in member.role_ids
    should_have != has  →  AgeRoleChange

Ages use whole birth years only.  Members without a birth year never
produce a change.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field


class ChangeAction(enum.StrEnum):
    ASSIGNED = "assigned"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class AgeRule:
    """Inclusive ``[min_age, max_age]``; ``None`` leaves that side open."""

    rule_id: int
    role_id: int
    role_name: str
    min_age: int | None = None
    max_age: int | None = None

    def matches(self, age: int) -> bool:
        min_ok = self.min_age is None or age >= self.min_age
        max_ok = self.max_age is None or age <= self.max_age
        return min_ok and max_ok


@dataclass(frozen=True, slots=True)
class MemberSnapshot:
    member_id: int
    user_id: int
    name: str
    birth_year: int | None
    role_ids: frozenset[int] = field(default_factory=frozenset)
    discord_user_id: int | None = None
    is_admin: bool = False


@dataclass(frozen=True, slots=True)
class AgeRoleChange:
    member_id: int
    member_name: str
    role_id: int
    role_name: str
    action: ChangeAction


def compute_age_changes(
    rules: Iterable[AgeRule],
    members: Iterable[MemberSnapshot],
    reference_year: int,
) -> list[AgeRoleChange]:
    """Return every change needed to make role grants match the rules.

    Output is ordered rule-major, then by member in input order.
    """
    dated = [m for m in members if m.birth_year is not None]
    changes: list[AgeRoleChange] = []

    for rule in rules:
        for member in dated:
            age = reference_year - member.birth_year
            should_have = rule.matches(age)
            has = rule.role_id in member.role_ids
            if should_have == has:
                continue
            changes.append(AgeRoleChange(
                member_id=member.member_id,
                member_name=member.name,
                role_id=rule.role_id,
                role_name=rule.role_name,
                action=ChangeAction.ASSIGNED if should_have else ChangeAction.REMOVED,
            ))

    return changes

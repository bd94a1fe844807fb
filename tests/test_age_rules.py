"""
tests/test_age_rules.py — Age-Threshold Diff Tests
===================================================
Pure computation; no database.
"""

from __future__ import annotations

import pytest

from sideline.engine.age_rules import (
    AgeRoleChange,
    AgeRule,
    ChangeAction,
    MemberSnapshot,
    compute_age_changes,
)

ROLE_R = 10


def _member(member_id, birth_year, *roles, name=None):
    return MemberSnapshot(
        member_id=member_id,
        user_id=member_id + 100,
        name=name or f"member-{member_id}",
        birth_year=birth_year,
        role_ids=frozenset(roles),
    )


def _rule(min_age=None, max_age=None, role_id=ROLE_R, name="U12"):
    return AgeRule(rule_id=1, role_id=role_id, role_name=name, min_age=min_age, max_age=max_age)


def _summary(changes):
    return {(c.member_id, c.role_id, c.action) for c in changes}


class TestAgeRuleMatches:

    @pytest.mark.parametrize(
        "age, expected",
        [(9, False), (10, True), (11, True), (12, True), (13, False)],
    )
    def test_bounds_are_inclusive(self, age, expected):
        assert _rule(10, 12).matches(age) is expected

    def test_open_min(self):
        rule = _rule(max_age=17)
        assert rule.matches(0)
        assert not rule.matches(18)

    def test_open_max(self):
        rule = _rule(min_age=18)
        assert rule.matches(99)
        assert not rule.matches(17)


class TestComputeAgeChanges:

    def test_reference_scenario(self):
        a = _member(1, 2013)            # age 11, lacks R
        b = _member(2, 2005, ROLE_R)    # age 19, holds R
        c = _member(3, 2011, ROLE_R)    # age 13, holds R
        d = _member(4, None, ROLE_R)    # unknown birth year

        changes = compute_age_changes([_rule(10, 12)], [a, b, c, d], 2024)

        assert _summary(changes) == {
            (1, ROLE_R, ChangeAction.ASSIGNED),
            (2, ROLE_R, ChangeAction.REMOVED),
            (3, ROLE_R, ChangeAction.REMOVED),
        }
        assert all(ch.member_id != 4 for ch in changes)

    def test_correct_grants_produce_nothing(self):
        members = [_member(1, 2013, ROLE_R), _member(2, 2000)]

        assert compute_age_changes([_rule(10, 12)], members, 2024) == []

    def test_unbounded_rule_matches_every_dated_member(self):
        members = [_member(1, 1950), _member(2, 2020, ROLE_R), _member(3, None)]

        changes = compute_age_changes([_rule()], members, 2024)

        assert _summary(changes) == {(1, ROLE_R, ChangeAction.ASSIGNED)}

    def test_change_carries_display_names(self):
        member = _member(1, 2013, name="Ada")

        (change,) = compute_age_changes([_rule(10, 12, name="U12")], [member], 2024)

        assert change == AgeRoleChange(
            member_id=1, member_name="Ada", role_id=ROLE_R, role_name="U12",
            action=ChangeAction.ASSIGNED,
        )

    def test_rules_are_evaluated_independently(self):
        u12 = _rule(10, 12, role_id=10, name="U12")
        senior = _rule(min_age=18, role_id=20, name="Senior")
        member = _member(1, 2000, 10)   # age 24, holds U12, lacks Senior

        changes = compute_age_changes([u12, senior], [member], 2024)

        assert [(c.role_id, c.action) for c in changes] == [
            (10, ChangeAction.REMOVED),
            (20, ChangeAction.ASSIGNED),
        ]

    def test_no_rules_or_no_members(self):
        assert compute_age_changes([], [_member(1, 2013)], 2024) == []
        assert compute_age_changes([_rule()], [], 2024) == []

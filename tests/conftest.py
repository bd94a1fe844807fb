"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import itertools

import pytest
from sqlalchemy import BigInteger, Engine, create_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from sideline.database.models import (
    AgeThresholdRule,
    Base,
    MemberRole,
    Role,
    Subgroup,
    Team,
    TeamMember,
    User,
)


# ---------------------------------------------------------------------------
# Map BigInteger → INTEGER so snowflake columns behave the same on SQLite.
# ---------------------------------------------------------------------------
@compiles(BigInteger, "sqlite")
def _compile_bigint_as_integer(type_, compiler, **kw):
    return "INTEGER"


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Sideline tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------
class Seeder:
    """Tiny factory for the team-management rows the engine reads."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._discord_ids = itertools.count(700_000_000_000_000_001)

    def _add(self, row):
        with Session(self.engine, expire_on_commit=False) as s:
            s.add(row)
            s.commit()
        return row

    def team(self, name: str = "Falcons", guild_id: int | None = 555_000_000_000_000_001) -> Team:
        return self._add(Team(name=name, guild_id=guild_id))

    def role(self, team: Team, name: str) -> Role:
        return self._add(Role(team_id=team.id, name=name))

    def subgroup(self, team: Team, name: str) -> Subgroup:
        return self._add(Subgroup(team_id=team.id, name=name))

    def member(
        self,
        team: Team,
        username: str,
        birth_year: int | None = None,
        *,
        name: str | None = None,
        discord_id: int | None = None,
        active: bool = True,
        roles: tuple[Role, ...] = (),
    ) -> TeamMember:
        user = self._add(User(
            discord_id=discord_id or next(self._discord_ids),
            discord_username=username,
            name=name,
            birth_year=birth_year,
        ))
        member = self._add(TeamMember(team_id=team.id, user_id=user.id, active=active))
        for role in roles:
            self._add(MemberRole(team_member_id=member.id, role_id=role.id))
        return member

    def rule(
        self, team: Team, role: Role, min_age: int | None = None, max_age: int | None = None,
    ) -> AgeThresholdRule:
        return self._add(AgeThresholdRule(
            team_id=team.id, role_id=role.id, min_age=min_age, max_age=max_age,
        ))


@pytest.fixture
def seed(db_engine: Engine) -> Seeder:
    return Seeder(db_engine)


# ---------------------------------------------------------------------------
# In-memory Discord gateway
# ---------------------------------------------------------------------------
class FakeGateway:
    """Records every call in order; hands out increasing snowflakes.

    ``fail(op, exc, ...)`` queues exceptions raised by the next calls to
    *op*; ``fail_always(op, exc)`` makes every call to *op* raise.
    """

    def __init__(self):
        self.calls: list[tuple] = []
        self._ids = itertools.count(900_000_000_000_000_001)
        self._queued: dict[str, list[BaseException]] = {}
        self._always: dict[str, BaseException] = {}

    def fail(self, operation: str, *errors: BaseException) -> None:
        self._queued.setdefault(operation, []).extend(errors)

    def fail_always(self, operation: str, error: BaseException) -> None:
        self._always[operation] = error

    def ops(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self._always:
            raise self._always[operation]
        queued = self._queued.get(operation)
        if queued:
            raise queued.pop(0)

    async def create_role(self, guild_id, name):
        self._record("create_role", guild_id, name)
        return next(self._ids)

    async def delete_role(self, guild_id, role_id):
        self._record("delete_role", guild_id, role_id)

    async def add_member_role(self, guild_id, user_id, role_id):
        self._record("add_member_role", guild_id, user_id, role_id)

    async def remove_member_role(self, guild_id, user_id, role_id):
        self._record("remove_member_role", guild_id, user_id, role_id)

    async def create_private_channel(self, guild_id, name):
        self._record("create_private_channel", guild_id, name)
        return next(self._ids)

    async def delete_channel(self, channel_id):
        self._record("delete_channel", channel_id)

    async def grant_channel_access(self, channel_id, role_id, preset=None):
        self._record("grant_channel_access", channel_id, role_id)

    async def revoke_channel_access(self, channel_id, role_id):
        self._record("revoke_channel_access", channel_id, role_id)


class RecordingSleep:
    """Drop-in for ``asyncio.sleep`` that returns at once and keeps the delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()

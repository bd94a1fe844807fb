"""
tests/test_resolver.py — Mapping Resolver Tests
================================================
Get-or-create behaviour of ``MappingResolver`` against the in-memory
gateway and a real (SQLite) mapping store.
"""

from __future__ import annotations

import asyncio

import pytest

from sideline.constants import PLACEHOLDER_ROLE_NAME, PLACEHOLDER_SUBGROUP_NAME
from sideline.services.mapping_service import ChannelMappingStore, RoleMappingStore
from sideline.sync.errors import RetryExhaustedError
from sideline.sync.resolver import MappingResolver

GUILD_ID = 111222333
TEAM_ID = 1


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def resolver(db_engine, gateway, no_sleep):
    return MappingResolver(
        gateway,
        RoleMappingStore(db_engine),
        ChannelMappingStore(db_engine),
        sleep=no_sleep,
    )


class TestEnsureRole:

    def test_creates_and_persists_on_first_use(self, resolver, gateway):
        discord_id = run_async(resolver.ensure_role(TEAM_ID, 5, GUILD_ID, "U12"))

        assert gateway.calls == [("create_role", GUILD_ID, "U12")]
        assert resolver.role_mappings.find(TEAM_ID, 5).discord_role_id == discord_id

    def test_second_call_reuses_mapping(self, resolver, gateway):
        first = run_async(resolver.ensure_role(TEAM_ID, 5, GUILD_ID, "U12"))
        second = run_async(resolver.ensure_role(TEAM_ID, 5, GUILD_ID, "U12"))

        assert first == second
        assert gateway.ops() == ["create_role"]

    def test_missing_name_uses_placeholder(self, resolver, gateway):
        run_async(resolver.ensure_role(TEAM_ID, 5, GUILD_ID, None))

        assert gateway.calls[0][2] == PLACEHOLDER_ROLE_NAME

    def test_transient_failure_is_retried(self, resolver, gateway, no_sleep):
        gateway.fail("create_role", ConnectionError("blip"))

        run_async(resolver.ensure_role(TEAM_ID, 5, GUILD_ID, "U12"))

        assert gateway.ops() == ["create_role", "create_role"]
        assert no_sleep.delays == [1.0]

    def test_exhausted_retries_leave_no_mapping(self, resolver, gateway):
        gateway.fail_always("create_role", ConnectionError("down"))

        with pytest.raises(RetryExhaustedError):
            run_async(resolver.ensure_role(TEAM_ID, 5, GUILD_ID, "U12"))

        assert gateway.ops().count("create_role") == 4
        assert resolver.role_mappings.find(TEAM_ID, 5) is None


class TestEnsureChannel:

    def test_creates_channel_role_and_grant(self, resolver, gateway):
        link = run_async(resolver.ensure_channel(TEAM_ID, 8, GUILD_ID, "Goalies"))

        assert gateway.ops() == [
            "create_private_channel", "create_role", "grant_channel_access",
        ]
        assert gateway.calls[2] == (
            "grant_channel_access", link.discord_channel_id, link.discord_role_id,
        )
        assert resolver.channel_mappings.find(TEAM_ID, 8) == link

    def test_existing_complete_mapping_makes_no_calls(self, resolver, gateway):
        resolver.channel_mappings.upsert(TEAM_ID, 8, 700, 701)

        link = run_async(resolver.ensure_channel(TEAM_ID, 8, GUILD_ID, "Goalies"))

        assert (link.discord_channel_id, link.discord_role_id) == (700, 701)
        assert gateway.calls == []

    def test_mapping_without_role_gets_role_added(self, resolver, gateway):
        resolver.channel_mappings.upsert(TEAM_ID, 8, 700)

        link = run_async(resolver.ensure_channel(TEAM_ID, 8, GUILD_ID, None))

        assert gateway.ops() == ["create_role", "grant_channel_access"]
        assert gateway.calls[0] == ("create_role", GUILD_ID, PLACEHOLDER_SUBGROUP_NAME)
        assert link.discord_channel_id == 700
        assert resolver.channel_mappings.find(TEAM_ID, 8).discord_role_id == link.discord_role_id

    def test_role_failure_keeps_created_channel_mapped(self, resolver, gateway):
        gateway.fail_always("create_role", ConnectionError("down"))

        with pytest.raises(RetryExhaustedError):
            run_async(resolver.ensure_channel(TEAM_ID, 8, GUILD_ID, "Goalies"))

        link = resolver.channel_mappings.find(TEAM_ID, 8)
        assert link is not None
        assert link.discord_role_id is None
        assert gateway.ops().count("create_private_channel") == 1

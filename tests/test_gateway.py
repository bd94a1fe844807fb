"""
tests/test_gateway.py — DiscordGateway Tests
=============================================
Exercises the REST payloads against a mocked ``discord.http.HTTPClient``.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from sideline.constants import HIDDEN, READ_ONLY, READ_WRITE
from sideline.sync.gateway import OVERWRITE_ROLE, DiscordGateway

GUILD_ID = 111222333


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _not_found() -> discord.NotFound:
    return discord.NotFound(MagicMock(status=404, reason="Not Found"), "Unknown")


@pytest.fixture
def http():
    return AsyncMock()


class TestPermissionPresets:

    def test_hidden_denies_view(self):
        assert HIDDEN.allow_bits == 0
        assert HIDDEN.deny.view_channel

    def test_read_write_allows_view_and_send(self):
        assert READ_WRITE.allow.view_channel
        assert READ_WRITE.allow.send_messages
        assert READ_WRITE.deny_bits == 0

    def test_read_only_denies_send(self):
        assert READ_ONLY.allow.view_channel
        assert READ_ONLY.deny.send_messages


class TestRoles:

    def test_create_role_returns_snowflake(self, http):
        http.create_role.return_value = {"id": "42", "name": "U12"}

        role_id = run_async(DiscordGateway(http).create_role(GUILD_ID, "U12"))

        assert role_id == 42
        http.create_role.assert_awaited_once()
        args, kwargs = http.create_role.call_args
        assert args == (GUILD_ID,)
        assert kwargs["name"] == "U12"

    def test_delete_missing_role_is_success(self, http):
        http.delete_role.side_effect = _not_found()

        run_async(DiscordGateway(http).delete_role(GUILD_ID, 42))

    def test_remove_member_role_tolerates_404(self, http):
        http.remove_role.side_effect = _not_found()

        run_async(DiscordGateway(http).remove_member_role(GUILD_ID, 7, 42))

    def test_add_member_role_propagates_errors(self, http):
        http.add_role.side_effect = _not_found()

        with pytest.raises(discord.NotFound):
            run_async(DiscordGateway(http).add_member_role(GUILD_ID, 7, 42))


class TestChannels:

    def test_private_channel_hides_from_everyone(self, http):
        http.create_channel.return_value = {"id": "900"}

        channel_id = run_async(
            DiscordGateway(http).create_private_channel(GUILD_ID, "goalies")
        )

        assert channel_id == 900
        args, kwargs = http.create_channel.call_args
        assert args == (GUILD_ID, discord.ChannelType.text.value)
        assert kwargs["name"] == "goalies"
        (overwrite,) = kwargs["permission_overwrites"]
        assert overwrite == {
            "id": str(GUILD_ID),
            "type": OVERWRITE_ROLE,
            "allow": "0",
            "deny": str(discord.Permissions(view_channel=True).value),
        }

    def test_grant_access_sends_role_overwrite(self, http):
        run_async(DiscordGateway(http).grant_channel_access(900, 42))

        args, _ = http.edit_channel_permissions.call_args
        assert args == (
            900, 42, str(READ_WRITE.allow_bits), str(READ_WRITE.deny_bits), OVERWRITE_ROLE,
        )

    def test_delete_missing_channel_is_success(self, http):
        http.delete_channel.side_effect = _not_found()

        run_async(DiscordGateway(http).delete_channel(900))

    def test_revoke_missing_overwrite_is_success(self, http):
        http.delete_channel_permissions.side_effect = _not_found()

        run_async(DiscordGateway(http).revoke_channel_access(900, 42))
        http.delete_channel_permissions.assert_awaited_once()

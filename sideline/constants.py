"""
sideline.constants — Shared Constants
======================================

Single source of truth for sync tuning defaults, placeholder names and the
Discord permission presets applied to subgroup channels.
"""

from __future__ import annotations

from dataclasses import dataclass

import discord

# ---------------------------------------------------------------------------
# Outbox polling
# ---------------------------------------------------------------------------
POLL_BATCH_SIZE = 50
DEFAULT_POLL_INTERVAL_SECONDS = 5.0
DEFAULT_CLAIM_LEASE_SECONDS = 60

# Exponential backoff: 1s, 2s, 4s → 4 attempts in total
DEFAULT_RETRY_BASE_DELAY = 1.0
DEFAULT_RETRY_MAX_RETRIES = 3

# Age check runs once a day at this UTC hour
DEFAULT_AGE_CHECK_HOUR_UTC = 2

# ---------------------------------------------------------------------------
# Names used when the outbox event carries no display name
# ---------------------------------------------------------------------------
PLACEHOLDER_ROLE_NAME = "role"
PLACEHOLDER_SUBGROUP_NAME = "subgroup"

# Team role whose holders receive age-check notifications
ADMIN_ROLE_NAME = "Admin"


# ---------------------------------------------------------------------------
# Permission presets for channel overwrites
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PermissionPreset:
    """An allow/deny pair of Discord permission bitfields."""

    allow: discord.Permissions
    deny: discord.Permissions

    @property
    def allow_bits(self) -> int:
        return self.allow.value

    @property
    def deny_bits(self) -> int:
        return self.deny.value


HIDDEN = PermissionPreset(
    allow=discord.Permissions.none(),
    deny=discord.Permissions(view_channel=True),
)

READ_ONLY = PermissionPreset(
    allow=discord.Permissions(view_channel=True),
    deny=discord.Permissions(send_messages=True),
)

READ_WRITE = PermissionPreset(
    allow=discord.Permissions(view_channel=True, send_messages=True),
    deny=discord.Permissions.none(),
)

"""
sideline.config — YAML Configuration Loader
============================================

Reads ``config.yaml`` for **non-secret** settings: the bot prefix and the
tuning knobs of the sync engine and the age check.  Secrets
(``DISCORD_TOKEN``, ``DATABASE_URL``) stay in the environment / ``.env``.

Usage::

    from sideline.config import load_config

    cfg = load_config()               # reads ./config.yaml by default
    print(cfg.sync.poll_interval_seconds)   # 5.0
    print(cfg.age_check.hour_utc)           # 2
"""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from sideline.constants import (
    DEFAULT_AGE_CHECK_HOUR_UTC,
    DEFAULT_CLAIM_LEASE_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_RETRY_BASE_DELAY,
    DEFAULT_RETRY_MAX_RETRIES,
    POLL_BATCH_SIZE,
)


def _default_worker_id() -> str:
    return f"{socket.gethostname()}:{os.getpid()}"


# ---------------------------------------------------------------------------
# Typed settings objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class SyncSettings:
    """Tuning for the role/channel outbox processors."""

    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    batch_size: int = POLL_BATCH_SIZE
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY
    retry_max_retries: int = DEFAULT_RETRY_MAX_RETRIES

    # Claim/lease — only needed when more than one bot process polls
    claim_events: bool = False
    claim_lease_seconds: int = DEFAULT_CLAIM_LEASE_SECONDS
    worker_id: str = field(default_factory=_default_worker_id)


@dataclass(frozen=True, slots=True)
class AgeCheckSettings:
    """Schedule for the daily age-threshold reconciliation."""

    enabled: bool = True
    hour_utc: int = DEFAULT_AGE_CHECK_HOUR_UTC


@dataclass(frozen=True, slots=True)
class SidelineConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    bot_prefix: str = "!"
    sync: SyncSettings = field(default_factory=SyncSettings)
    age_check: AgeCheckSettings = field(default_factory=AgeCheckSettings)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> SidelineConfig:
    """Read *path* and return a :class:`SidelineConfig` instance.

    Every key is optional; missing keys fall back to the dataclass defaults.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If a numeric setting is out of range.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return parse_config(raw)


def parse_config(raw: dict) -> SidelineConfig:
    """Build a :class:`SidelineConfig` from an already-parsed mapping."""
    sync_raw: dict = raw.get("sync") or {}
    age_raw: dict = raw.get("age_check") or {}

    sync_defaults = SyncSettings()
    sync = SyncSettings(
        poll_interval_seconds=float(
            sync_raw.get("poll_interval_seconds", sync_defaults.poll_interval_seconds)
        ),
        batch_size=int(sync_raw.get("batch_size", sync_defaults.batch_size)),
        retry_base_delay=float(
            sync_raw.get("retry_base_delay", sync_defaults.retry_base_delay)
        ),
        retry_max_retries=int(
            sync_raw.get("retry_max_retries", sync_defaults.retry_max_retries)
        ),
        claim_events=bool(sync_raw.get("claim_events", False)),
        claim_lease_seconds=int(
            sync_raw.get("claim_lease_seconds", sync_defaults.claim_lease_seconds)
        ),
        worker_id=str(sync_raw.get("worker_id") or sync_defaults.worker_id),
    )
    age_check = AgeCheckSettings(
        enabled=bool(age_raw.get("enabled", True)),
        hour_utc=int(age_raw.get("hour_utc", DEFAULT_AGE_CHECK_HOUR_UTC)),
    )

    if sync.poll_interval_seconds <= 0:
        raise ValueError("sync.poll_interval_seconds must be positive")
    if sync.batch_size < 1:
        raise ValueError("sync.batch_size must be at least 1")
    if sync.retry_max_retries < 0:
        raise ValueError("sync.retry_max_retries cannot be negative")
    if not 0 <= age_check.hour_utc <= 23:
        raise ValueError("age_check.hour_utc must be between 0 and 23")

    return SidelineConfig(
        bot_prefix=str(raw.get("bot_prefix", "!")),
        sync=sync,
        age_check=age_check,
    )

"""
Sideline — Team Management ↔ Discord Synchronization Engine
============================================================
Keeps a team's Discord guild (roles, private subgroup channels, member
role grants) eventually consistent with the team-management database, and
reconciles age-based role membership from member birth years.

Package layout::

    sideline/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Batch sizes, placeholder names, permission presets
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ORM models (teams, roles, outbox, mappings …)
    ├── engine/
    │   └── age_rules.py   # Pure age-threshold diff computation
    ├── services/
    │   ├── outbox_service.py        # Role/channel sync event outbox
    │   ├── mapping_service.py       # Internal id ↔ Discord id mappings
    │   ├── member_service.py        # Member snapshot + role assignment
    │   ├── notification_service.py  # Bulk notification insert
    │   └── age_check_service.py     # Age reconciliation (diff/commit/notify)
    ├── sync/
    │   ├── errors.py      # Sync exception taxonomy
    │   ├── retry.py       # Bounded exponential retry
    │   ├── gateway.py     # Discord REST gateway
    │   ├── resolver.py    # "Ensure mapping" get-or-create
    │   ├── processor.py   # Polling processor base
    │   ├── role_sync.py   # Role-flavored processor
    │   └── channel_sync.py  # Channel-flavored processor
    └── bot/
        ├── core.py        # Bot subclass, cog loader
        └── cogs/
            ├── sync.py    # Outbox polling loops
            └── tasks.py   # Daily age check
"""

__version__ = "0.1.0"

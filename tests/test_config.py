"""
tests/test_config.py — Configuration Loader Tests
==================================================
"""

from __future__ import annotations

import pytest

from sideline.config import SidelineConfig, load_config, parse_config


class TestLoadConfig:

    def test_missing_file_gives_hint(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "config.yaml")

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")

        cfg = load_config(path)

        assert cfg.bot_prefix == "!"
        assert cfg.sync.poll_interval_seconds == 5.0
        assert cfg.sync.batch_size == 50
        assert cfg.sync.retry_base_delay == 1.0
        assert cfg.sync.retry_max_retries == 3
        assert cfg.sync.claim_events is False
        assert cfg.age_check.enabled is True
        assert cfg.age_check.hour_utc == 2

    def test_reads_nested_sections(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "bot_prefix: '?'\n"
            "sync:\n"
            "  poll_interval_seconds: 2.5\n"
            "  batch_size: 10\n"
            "  claim_events: true\n"
            "  worker_id: bot-a\n"
            "age_check:\n"
            "  hour_utc: 4\n",
            encoding="utf-8",
        )

        cfg = load_config(path)

        assert cfg.bot_prefix == "?"
        assert cfg.sync.poll_interval_seconds == 2.5
        assert cfg.sync.batch_size == 10
        assert cfg.sync.claim_events is True
        assert cfg.sync.worker_id == "bot-a"
        assert cfg.age_check.hour_utc == 4


class TestParseConfig:

    def test_default_worker_id_is_set(self):
        assert parse_config({}).sync.worker_id

    def test_frozen(self):
        cfg = parse_config({})
        assert isinstance(cfg, SidelineConfig)
        with pytest.raises(AttributeError):
            cfg.bot_prefix = "x"  # type: ignore[misc]

    @pytest.mark.parametrize(
        "raw",
        [
            {"sync": {"poll_interval_seconds": 0}},
            {"sync": {"batch_size": 0}},
            {"sync": {"retry_max_retries": -1}},
            {"age_check": {"hour_utc": 24}},
        ],
    )
    def test_out_of_range_values_rejected(self, raw):
        with pytest.raises(ValueError):
            parse_config(raw)

"""Tests for config.py defaults and environment overrides."""

import importlib
from pathlib import Path

import pytest

import config

ENV_VARS = ("AFFIX_TAG_MATCH_MODE", "AFFIX_BATCH_WORKERS", "AFFIX_LOG_LEVEL", "AFFIX_LOG_FILE")


@pytest.fixture
def reload_config(monkeypatch):
    """Reload config under a clean environment; restore it afterwards."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    def _reload(**env):
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        return importlib.reload(config)

    yield _reload
    monkeypatch.undo()
    importlib.reload(config)


class TestDefaults:

    def test_runtime_defaults(self, reload_config):
        cfg = reload_config()
        assert cfg.TAG_MATCH_MODE == "any"
        assert cfg.BATCH_WORKERS == 0
        assert cfg.LOG_LEVEL == "INFO"
        assert cfg.LOG_FILE is None

    def test_tier_tables(self):
        assert config.TIER_BEST == 1
        assert config.TIER_WORST == 9
        assert config.DEFAULT_TIER == 5
        # One bound per tier boundary, ascending
        for bounds in (config.ITEM_LEVEL_TIER_BOUNDS, config.MAGNITUDE_TIER_BOUNDS):
            assert len(bounds) == config.TIER_WORST - config.TIER_BEST
            assert list(bounds) == sorted(bounds)

    def test_base_stat_tags(self):
        assert set(config.BASE_STAT_TAGS) == {"armour_base", "evasion_base", "energyshield_base"}
        assert len(config.ARMOUR_SLOT_KEYWORDS) == len(config.ARMOUR_SLOT_TAGS)

    def test_status_word_forms_map_to_statuses(self):
        assert set(config.STATUS_WORD_FORMS.values()) <= set(config.STATUS_WORDS)
        assert config.STATUS_WORD_FORMS["bleeding"] == "bleed"


class TestEnvironmentOverrides:

    def test_match_mode(self, reload_config):
        assert reload_config(AFFIX_TAG_MATCH_MODE=" ALL ").TAG_MATCH_MODE == "all"

    def test_batch_workers(self, reload_config):
        assert reload_config(AFFIX_BATCH_WORKERS="4").BATCH_WORKERS == 4
        assert reload_config(AFFIX_BATCH_WORKERS="").BATCH_WORKERS == 0

    def test_log_file(self, reload_config, tmp_path):
        cfg = reload_config(AFFIX_LOG_FILE=str(tmp_path / "audit.log"))
        assert cfg.LOG_FILE == Path(tmp_path / "audit.log")

"""
Unit tests for CritConfig.

Tests configuration loading, environment overrides and saving.
"""

import json
from pathlib import Path

import pytest

from crit.config import CONFIG_PATH, DEFAULT_CONFIG, CritConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CRIT_HOST",
        "CRIT_PORT",
        "CRIT_OUTPUT_DIR",
        "CRIT_DEBOUNCE_SECONDS",
        "CRIT_WATCH_INTERVAL",
        "CRIT_NO_OPEN",
        "CRIT_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestCritConfigDefaults:
    """Tests for default configuration values."""

    def test_default_values(self):
        config = CritConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 0
        assert config.output_dir is None
        assert config.debounce_seconds == 0.2
        assert config.open_browser is True
        assert config.log_level == "INFO"

    def test_defaults_dict_matches_dataclass(self):
        assert DEFAULT_CONFIG == CritConfig().__dict__

    def test_config_path(self):
        assert CONFIG_PATH == Path.home() / ".crit" / "config.json"


class TestCritConfigLoad:
    """Tests for CritConfig.load()."""

    def test_load_without_file_returns_defaults(self, tmp_path):
        config = CritConfig.load(path=tmp_path / "missing.json")
        assert config == CritConfig()

    def test_load_with_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"port": 4000, "debounce_seconds": 1.5, "unknown_key": True}))

        config = CritConfig.load(path=path)

        assert config.port == 4000
        assert config.debounce_seconds == 1.5
        assert not hasattr(config, "unknown_key")

    def test_invalid_json_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{broken")

        assert CritConfig.load(path=path) == CritConfig()

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"port": 4000}))
        monkeypatch.setenv("CRIT_PORT", "5000")
        monkeypatch.setenv("CRIT_NO_OPEN", "1")
        monkeypatch.setenv("CRIT_OUTPUT_DIR", "/tmp/reviews")

        config = CritConfig.load(path=path)

        assert config.port == 5000
        assert config.open_browser is False
        assert config.output_dir == "/tmp/reviews"

    def test_unparseable_env_value_is_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CRIT_PORT", "not-a-port")

        assert CritConfig.load(path=tmp_path / "missing.json").port == 0

    def test_env_can_be_disabled(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CRIT_PORT", "5000")
        assert CritConfig.load(path=tmp_path / "missing.json", use_env=False).port == 0


def test_save_round_trip(tmp_path):
    path = tmp_path / "nested" / "config.json"
    original = CritConfig(port=8123, output_dir="/srv/out", open_browser=False)

    original.save(path=path)

    assert CritConfig.load(path=path, use_env=False) == original

"""Tests for settings loading."""

import tempfile
from pathlib import Path

import pytest
import yaml

from skillswap.config import Settings, load_settings
from skillswap.errors import ValidationError


def test_defaults(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("SKILLSWAP_HOME", tmpdir)
        monkeypatch.delenv("SKILLSWAP_CONFIG", raising=False)
        monkeypatch.delenv("SKILLSWAP_LOG_LEVEL", raising=False)

        settings = load_settings()

        assert settings.data_dir == Path(tmpdir)
        assert settings.cas_max_attempts == 5
        assert settings.default_rating == 5.0
        assert settings.match_limit == 0
        assert settings.persist_events is True
        assert settings.log_level == "INFO"


def test_load_from_yaml_file(monkeypatch):
    monkeypatch.delenv("SKILLSWAP_HOME", raising=False)
    monkeypatch.delenv("SKILLSWAP_LOG_LEVEL", raising=False)
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        with open(path, "w") as f:
            yaml.dump(
                {
                    "data_dir": str(Path(tmpdir) / "data"),
                    "log_level": "DEBUG",
                    "store": {"cas_max_attempts": 9},
                    "members": {"default_rating": 0.0},
                    "matching": {"limit": 20},
                    "events": {"persist": False},
                    "unknown_key": "ignored",
                },
                f,
            )

        settings = load_settings(path)

        assert settings.data_dir == Path(tmpdir) / "data"
        assert settings.log_level == "DEBUG"
        assert settings.cas_max_attempts == 9
        assert settings.default_rating == 0.0
        assert settings.match_limit == 20
        assert settings.persist_events is False


def test_config_env_var_and_overrides(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "settings.yaml"
        path.write_text("data_dir: /somewhere/else\nlog_level: INFO\n")
        monkeypatch.setenv("SKILLSWAP_CONFIG", str(path))
        monkeypatch.setenv("SKILLSWAP_HOME", tmpdir)
        monkeypatch.setenv("SKILLSWAP_LOG_LEVEL", "WARNING")

        settings = load_settings()

        assert settings.data_dir == Path(tmpdir)
        assert settings.log_level == "WARNING"


def test_config_in_data_dir_is_picked_up(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "config.yaml").write_text("matching:\n  limit: 3\n")
        monkeypatch.setenv("SKILLSWAP_HOME", tmpdir)
        monkeypatch.delenv("SKILLSWAP_CONFIG", raising=False)

        assert load_settings().match_limit == 3


def test_malformed_yaml_raises_validation_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "bad.yaml"
        path.write_text("store: [unclosed\n")
        with pytest.raises(ValidationError):
            load_settings(path)


def test_non_mapping_yaml_is_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValidationError):
            load_settings(path)


def test_settings_validation():
    with pytest.raises(ValidationError):
        Settings(cas_max_attempts=0)
    with pytest.raises(ValidationError):
        Settings(default_rating=7.5)
    with pytest.raises(ValidationError):
        Settings(match_limit=-1)

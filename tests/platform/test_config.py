"""Tests for settings resolution and the user config file."""

import json

import pytest

from dojo_log.config import (
    DB_FILE,
    DEFAULT_LIST_LIMIT,
    DEFAULT_LOCALE,
    DICTATION_TIMEOUT_SECONDS,
    load_settings,
)
from dojo_log.user_config import UserConfig, load_user_config, save_user_config, update_user_config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("DOJO_LOG_USER_CONFIG_PATH", str(tmp_path / "config.json"))
    for name in ("DOJO_LOG_DB_PATH", "DOJO_LOG_LOCALE", "DOJO_LOG_DICTATION_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path / "config.json"


def test_defaults():
    settings = load_settings()
    assert settings.db_path.name == DB_FILE
    assert settings.locale == DEFAULT_LOCALE
    assert settings.dictation_timeout_seconds == DICTATION_TIMEOUT_SECONDS
    assert settings.list_limit == DEFAULT_LIST_LIMIT


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("DOJO_LOG_DB_PATH", str(tmp_path / "custom.db"))
    monkeypatch.setenv("DOJO_LOG_LOCALE", "ja-JP")
    monkeypatch.setenv("DOJO_LOG_DICTATION_TIMEOUT", "4")

    settings = load_settings()
    assert settings.db_path == tmp_path / "custom.db"
    assert settings.locale == "ja-JP"
    assert settings.dictation_timeout_seconds == 4.0


@pytest.mark.parametrize("raw", ["abc", "-1", "0"])
def test_invalid_timeout_falls_back(monkeypatch, raw):
    monkeypatch.setenv("DOJO_LOG_DICTATION_TIMEOUT", raw)
    assert load_settings().dictation_timeout_seconds == DICTATION_TIMEOUT_SECONDS


def test_user_config_round_trip(tmp_path):
    save_user_config(UserConfig(db_path=str(tmp_path / "u.db"), locale="en-GB"))
    config = load_user_config()
    assert config.db_path == str(tmp_path / "u.db")
    assert config.locale == "en-GB"

    settings = load_settings()
    assert settings.db_path == tmp_path / "u.db"
    assert settings.locale == "en-GB"


def test_environment_beats_user_config(tmp_path, monkeypatch):
    save_user_config(UserConfig(locale="en-GB"))
    monkeypatch.setenv("DOJO_LOG_LOCALE", "de-DE")
    assert load_settings().locale == "de-DE"


def test_corrupt_user_config_is_ignored(isolated_config):
    isolated_config.write_text("{not json", encoding="utf-8")
    assert load_user_config() == UserConfig()


def test_blank_user_config_values_are_ignored(isolated_config):
    isolated_config.write_text(json.dumps({"db_path": "  ", "locale": 3}), encoding="utf-8")
    assert load_user_config() == UserConfig()


def test_update_user_config_merges_and_clears(isolated_config, tmp_path):
    update_user_config(db_path=str(tmp_path / "a.db"), locale="en-GB")
    config = update_user_config(locale="", dictation_timeout_seconds=3.5)

    assert config == UserConfig(db_path=str(tmp_path / "a.db"), dictation_timeout_seconds=3.5)
    assert json.loads(isolated_config.read_text(encoding="utf-8")) == {
        "db_path": str(tmp_path / "a.db"), "dictation_timeout_seconds": 3.5,
    }
    assert load_settings().dictation_timeout_seconds == 3.5


def test_invalid_saved_timeout_is_ignored(isolated_config):
    isolated_config.write_text(json.dumps({"dictation_timeout_seconds": -2}), encoding="utf-8")
    assert load_user_config().dictation_timeout_seconds is None
    assert load_settings().dictation_timeout_seconds == DICTATION_TIMEOUT_SECONDS

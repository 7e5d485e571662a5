"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from raindrop_sync.config import SyncConfig, load_config, validate_access_token
from raindrop_sync.core.sync_enums import (
    BookmarkSort,
    CollectionSelection,
    CollectionSort,
    SyncMode,
)

_ENV_KEYS = (
    "RAINDROP_ACCESS_TOKEN",
    "RAINDROP_API_URL",
    "RAINDROP_SYNC_ENABLED",
    "RAINDROP_TWO_WAY_MODE",
    "RAINDROP_TARGET_FOLDER_ID",
    "RAINDROP_COLLECTION_IMPORT_MODE",
    "RAINDROP_SELECTED_COLLECTION_IDS",
    "RAINDROP_BOOKMARKS_SORT",
    "RAINDROP_QUIET_HOURS_START",
    "DB_PATH",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)


def test_defaults():
    cfg = load_config()

    assert cfg.sync.enabled is True
    assert cfg.sync.mode is SyncMode.ADDITIONS_ONLY
    assert cfg.sync.target_folder_id == "1"
    assert cfg.sync.selection is CollectionSelection.TOP_LEVEL
    assert cfg.sync.collections_sort is CollectionSort.ALPHA_ASC
    assert cfg.sync.bookmarks_sort is BookmarkSort.CREATED_DESC
    assert cfg.sync.rate_limit_rpm == 60
    assert cfg.raindrop.api_url == "https://api.raindrop.io/rest/v1"
    assert cfg.raindrop.access_token == ""


def test_environment_values_are_applied(monkeypatch):
    monkeypatch.setenv("RAINDROP_ACCESS_TOKEN", "  secret  ")
    monkeypatch.setenv("RAINDROP_API_URL", "https://proxy.example.com/rest/v1/")
    monkeypatch.setenv("RAINDROP_TWO_WAY_MODE", "Mirror")
    monkeypatch.setenv("RAINDROP_SYNC_ENABLED", "false")
    monkeypatch.setenv("RAINDROP_SELECTED_COLLECTION_IDS", "12, 7,,abc")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = load_config()

    assert cfg.raindrop.access_token == "secret"
    assert cfg.raindrop.api_url == "https://proxy.example.com/rest/v1"
    assert cfg.sync.mode is SyncMode.MIRROR
    assert cfg.sync.enabled is False
    assert cfg.sync.selected_collection_ids == frozenset({7, 12})
    assert cfg.runtime.log_level == "DEBUG"


def test_overrides_take_precedence(monkeypatch):
    monkeypatch.setenv("RAINDROP_TWO_WAY_MODE", "mirror")
    monkeypatch.setenv("DB_PATH", "/tmp/from-env.db")

    cfg = load_config(sync={"mode": "off"}, runtime={"db_path": "/tmp/override.db"})

    assert cfg.sync.mode is SyncMode.OFF
    assert cfg.runtime.db_path == "/tmp/override.db"


def test_legacy_parent_only_selection(monkeypatch):
    monkeypatch.setenv("RAINDROP_COLLECTION_IMPORT_MODE", "parentOnly")

    assert load_config().sync.selection is CollectionSelection.TOP_LEVEL


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("RAINDROP_TWO_WAY_MODE", "sideways"),
        ("RAINDROP_BOOKMARKS_SORT", "random"),
        ("RAINDROP_QUIET_HOURS_START", "25:00"),
        ("RAINDROP_API_URL", "ftp://raindrop.io"),
        ("LOG_LEVEL", "chatty"),
    ],
)
def test_invalid_values_raise_runtime_error(monkeypatch, key, value):
    monkeypatch.setenv(key, value)

    with pytest.raises(RuntimeError, match="Configuration validation failed"):
        load_config()


def test_blank_target_folder_falls_back_to_bar():
    assert SyncConfig(target_folder_id="  ").target_folder_id == "1"


def test_quiet_hours_are_normalized():
    cfg = SyncConfig(quiet_hours_start="7:05", quiet_hours_end="")

    assert cfg.quiet_hours_start == "07:05"
    assert cfg.quiet_hours_end == "07:00"


def test_rate_limit_bounds():
    with pytest.raises(ValueError, match="between 1 and 10000"):
        SyncConfig(rate_limit_rpm=0)


def test_validate_access_token():
    assert validate_access_token("  abc123  ") == "abc123"
    with pytest.raises(ValueError, match="required"):
        validate_access_token("   ")
    with pytest.raises(ValueError, match="invalid characters"):
        validate_access_token("abc 123")

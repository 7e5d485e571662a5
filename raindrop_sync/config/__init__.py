from __future__ import annotations

from ._validators import _ensure_access_token, _parse_collection_ids, validate_access_token
from .integrations import RaindropConfig
from .runtime import RuntimeConfig
from .settings import AppConfig, Settings, load_config
from .sync import SyncConfig

__all__ = [
    "AppConfig",
    "RaindropConfig",
    "RuntimeConfig",
    "Settings",
    "SyncConfig",
    "_ensure_access_token",
    "_parse_collection_ids",
    "load_config",
    "validate_access_token",
]

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .integrations import RaindropConfig
from .runtime import RuntimeConfig
from .sync import SyncConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    raindrop: RaindropConfig
    sync: SyncConfig
    runtime: RuntimeConfig


def _env_names(field: Any) -> list[str]:
    alias = field.validation_alias
    if isinstance(alias, AliasChoices):
        names = [choice for choice in alias.choices if isinstance(choice, str)]
    elif isinstance(alias, str):
        names = [alias]
    else:
        names = []
    if field.alias:
        names.append(field.alias)
    return names


def _section_from_env(section: type[BaseModel], source: Mapping[str, Any]) -> dict[str, Any]:
    """Pick the flat variables belonging to one config section, keyed by field name."""
    values: dict[str, Any] = {}
    for name, field in section.model_fields.items():
        for env_name in _env_names(field):
            if env_name in source:
                values[name] = source[env_name]
                break
    return values


class Settings(BaseSettings):
    """Flat ``RAINDROP_*`` / runtime variables folded into the three config sections.

    Each section field declares its variable through ``validation_alias``; values
    passed to the constructor win over the environment and ``.env``.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    raindrop: RaindropConfig = Field(default_factory=RaindropConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @model_validator(mode="before")
    @classmethod
    def _fold_sections(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        source = {**os.environ, **data}
        folded = dict(data)
        for section_name in ("raindrop", "sync", "runtime"):
            section = cls.model_fields[section_name].annotation
            from_env = _section_from_env(section, source)
            explicit = folded.get(section_name)
            if isinstance(explicit, dict):
                folded[section_name] = {**from_env, **explicit}
            elif from_env and explicit is None:
                folded[section_name] = from_env
        return folded

    def as_app_config(self) -> AppConfig:
        return AppConfig(raindrop=self.raindrop, sync=self.sync, runtime=self.runtime)


def load_config(**overrides: Any) -> AppConfig:
    """Load application configuration from the environment and ``.env``.

    Args:
        **overrides: Section dictionaries (``raindrop``, ``sync``, ``runtime``)
            taking precedence over environment variables.

    Returns:
        Immutable AppConfig instance.

    Raises:
        RuntimeError: If configuration validation fails.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        raise RuntimeError(msg) from exc

    if not settings.raindrop.access_token:
        logger.warning("raindrop_access_token_missing")

    return settings.as_app_config()

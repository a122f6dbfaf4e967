"""
Reading settings from YAML config files and the environment.

Sources, lowest precedence first:

1. Field defaults
2. User file ``~/.config/claude-cmd/config.yaml``
3. Project file ``./.claude/claude-cmd.yaml`` (deep-merged over the user file)
4. ``CLAUDE_CMD_*`` environment variables (``__`` separates nested keys,
   e.g. ``CLAUDE_CMD_CACHE__TTL_SECONDS=60``)
5. Keyword arguments passed to :class:`Settings`
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from claude_cmd.constants import (
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_REPOSITORY_URL,
    PROJECT_CONFIG_PATH,
    USER_CONFIG_PATH,
)
from claude_cmd.core.logging.logger import get_logger

logger = get_logger(__name__)


class RepositorySettings(BaseModel):
    """Where manifests and command files are downloaded from."""

    base_url: str = DEFAULT_REPOSITORY_URL
    timeout_seconds: float = Field(default=DEFAULT_HTTP_TIMEOUT_SECONDS, gt=0)

    model_config = ConfigDict(extra="ignore")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class CacheSettings(BaseModel):
    directory: str = "~/.cache/claude-cmd"
    ttl_seconds: float = Field(default=DEFAULT_CACHE_TTL_SECONDS, ge=0)

    model_config = ConfigDict(extra="ignore")

    @property
    def path(self) -> Path:
        return Path(self.directory).expanduser()

    @property
    def ttl_ms(self) -> int:
        return int(self.ttl_seconds * 1000)


class DirectorySettings(BaseModel):
    """Overrides for the personal and project command roots."""

    personal: str | None = None
    project: str | None = None

    model_config = ConfigDict(extra="ignore")


class LoggingSettings(BaseModel):
    level: str = "warning"

    model_config = ConfigDict(extra="ignore")


class Settings(BaseSettings):
    """Top-level claude-cmd settings."""

    language: str | None = None
    """Preferred command language; detection falls back to the environment."""

    repository: RepositorySettings = Field(default_factory=RepositorySettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    directories: DirectorySettings = Field(default_factory=DirectorySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="CLAUDE_CMD_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, YamlConfigLayersSource(settings_cls))


class YamlConfigLayersSource(PydanticBaseSettingsSource):
    """Merges the user and project YAML config files, project winning."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        # Values are produced wholesale by __call__
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for path in config_file_candidates():
            merged = deep_merge(merged, load_yaml_config(path))
        return merged


def config_file_candidates(*, home: Path | None = None, cwd: Path | None = None) -> list[Path]:
    home_dir = home or Path.home()
    work_dir = cwd or Path.cwd()
    return [home_dir.joinpath(*USER_CONFIG_PATH), work_dir.joinpath(*PROJECT_CONFIG_PATH)]


def load_yaml_config(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable config file", data={"path": str(path), "error": str(exc)})
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file without a mapping root", data={"path": str(path)})
        return {}
    return data


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        existing = result.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            result[key] = deep_merge(existing, value)
        else:
            result[key] = value
    return result


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def update_global_settings(settings: Settings) -> None:
    global _settings
    _settings = settings

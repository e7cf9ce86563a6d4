# scopefilter/config.py
"""
Configuration loading and validation.

Responsibilities:
- Load an optional YAML configuration file
- Validate it against JSON Schema
- Merge it with SRM_* environment settings into one Settings object

Precedence, highest first: explicit override, environment, file, default.

This module does NOT:
- interact with git
- read package manifests
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type

import json
import yaml
from pydantic import ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
)

from scopefilter.errors import ConfigError
from scopefilter.limiter import DEFAULT_MAX_THREADS, resolve_max_threads
from scopefilter.manifest import DEFAULT_MANIFEST_NAME
from scopefilter.validation import schema_errors

ENV_PREFIX = "SRM_"


@dataclass(frozen=True)
class FileConfig:
    max_threads: Optional[int] = None
    manifest: Optional[str] = None
    extra_paths: Tuple[str, ...] = ()


class Settings(BaseSettings):
    """
    Run settings, read from SRM_* environment variables.

    Keyword arguments are the file layer: an SRM_* variable that is set
    takes precedence over them. SRM_MAX_THREADS that is not a positive
    integer falls back to the default instead of failing.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        frozen=True,
    )

    max_threads: int = DEFAULT_MAX_THREADS
    manifest: str = DEFAULT_MANIFEST_NAME
    extra_paths: Tuple[str, ...] = ()

    @field_validator("max_threads", mode="before")
    @classmethod
    def _fallback_max_threads(cls, value: Any) -> int:
        return resolve_max_threads(value)

    @field_validator("manifest", mode="before")
    @classmethod
    def _default_blank_manifest(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return DEFAULT_MANIFEST_NAME
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings


def default_schema_path() -> Path:
    """
    schema.json ships inside the package, next to this file.
    """
    return Path(__file__).resolve().parent / "schema.json"


def _load_schema(schema_path: Path) -> Dict[str, Any]:
    """
    Load JSON Schema from a schema.json file.
    """
    try:
        raw = schema_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read schema file: {schema_path}") from e

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Schema is not valid JSON: {schema_path}") from e

    if not isinstance(parsed, dict):
        raise ConfigError(f"Schema must be a JSON object: {schema_path}")

    return parsed


def _load_yaml(config_path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config: {config_path}") from e

    # An empty file means "no overrides"
    if raw is None:
        return {}

    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a mapping at top level: {config_path}")

    return raw


def load_config(config_path: Path, schema_path: Optional[Path] = None) -> FileConfig:
    """
    Load and validate a configuration file.

    Raises ConfigError on validation failure.
    """
    raw_config = _load_yaml(config_path)
    schema = _load_schema(schema_path or default_schema_path())

    messages = schema_errors(schema, raw_config)
    if messages:
        raise ConfigError("Invalid configuration:\n" + "\n".join(messages))

    return FileConfig(
        max_threads=raw_config.get("max_threads"),
        manifest=raw_config.get("manifest"),
        extra_paths=tuple(raw_config.get("extra_paths") or ()),
    )


def load_settings(
    file_config: Optional[FileConfig] = None,
    *,
    max_threads: Optional[int] = None,
) -> Settings:
    """
    Build Settings from the environment and an optional file config.

    File values only fill fields the environment leaves unset. The
    max_threads override applies only when it is a positive integer.

    Raises ConfigError when an SRM_* variable cannot be parsed at all.
    """
    file_config = file_config or FileConfig()

    values: Dict[str, Any] = {}
    if file_config.max_threads is not None:
        values["max_threads"] = file_config.max_threads
    if file_config.manifest is not None:
        values["manifest"] = file_config.manifest
    if file_config.extra_paths:
        values["extra_paths"] = file_config.extra_paths

    try:
        settings = Settings(**values)
    except (ValidationError, SettingsError) as e:
        raise ConfigError(f"Invalid {ENV_PREFIX}* environment settings: {e}") from e

    if max_threads is not None and max_threads > 0:
        settings = settings.model_copy(update={"max_threads": max_threads})

    return settings

"""PSC configuration, validated with pydantic-settings.

Values come from PSC/config/config.yaml, an optional config.<env>.yaml
overlay and environment variables, which take precedence.

Usage:
    from PSC.services.shared.settings import get_settings

    settings = get_settings()
    interval = settings.pacer.min_interval_seconds
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional, Literal, List

import yaml
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from PSC.services.shared.errors import ConfigurationError


DEFAULT_BRAVE_BASE_URL = "https://api.search.brave.com/res/v1"
DEFAULT_ENDPOINTS = "web,news,images,videos"


class _SettingsSection(BaseSettings):
    """Common loading rules: environment variables and an optional .env file."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


# === Search Configuration ===

class BraveSearchConfig(_SettingsSection):
    """Brave Search API configuration."""
    api_key: Optional[SecretStr] = None
    base_url: str = DEFAULT_BRAVE_BASE_URL
    timeout_seconds: float = 10.0
    # Comma separated endpoint keys; endpoints not listed stay disabled
    endpoints: str = DEFAULT_ENDPOINTS

    model_config = SettingsConfigDict(env_prefix="BRAVE_")

    @field_validator("base_url")
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @field_validator("endpoints", mode="before")
    def normalize_endpoints(cls, v):
        if v is None:
            return ""
        if isinstance(v, (list, tuple)):
            return ",".join(str(item) for item in v)
        return v

    @property
    def enabled_endpoints(self) -> List[str]:
        return [item.strip().lower() for item in self.endpoints.split(",") if item.strip()]


# === Pacing Configuration ===

class PacerConfig(_SettingsSection):
    """Provider rate-limit compliance."""
    min_interval_seconds: float = Field(1.0, ge=0.0)

    model_config = SettingsConfigDict(env_prefix="PSC_PACER_")


# === Observability Configuration ===

class LoggingConfig(_SettingsSection):
    """Logging configuration."""
    level: str = Field("INFO", validation_alias="LOG_LEVEL")
    directory: Optional[str] = Field(None, validation_alias="PSC_LOG_DIR")


# === Secret Management ===

class AWSSecretsConfig(_SettingsSection):
    """AWS Secrets Manager configuration."""
    region: str = Field("us-west-2", validation_alias="AWS_REGION")
    secret_name_prefix: str = Field("psc/", validation_alias="AWS_SECRET_PREFIX")


class SecretsConfig(_SettingsSection):
    """Secret management configuration."""
    provider: Literal["environment", "aws_secrets_manager"] = "environment"
    aws: AWSSecretsConfig = Field(default_factory=AWSSecretsConfig)

    model_config = SettingsConfigDict(env_prefix="PSC_SECRETS_")


# === Main Settings ===

class PSCSettings(_SettingsSection):
    """Main PSC configuration."""
    environment: str = Field("development", validation_alias="PSC_ENV")
    brave: BraveSearchConfig = Field(default_factory=BraveSearchConfig)
    pacer: PacerConfig = Field(default_factory=PacerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)

    model_config = SettingsConfigDict(case_sensitive=False)


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "config.yaml"

SECTIONS = {
    "brave": BraveSearchConfig,
    "pacer": PacerConfig,
    "logging": LoggingConfig,
    "secrets": SecretsConfig,
}


def _read_yaml(path: Path) -> dict:
    """Parse one YAML file into a mapping; a missing file reads as empty."""
    if not path.exists():
        return {}
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def _load_yaml_config(config_path: Optional[Path] = None) -> dict:
    """Base config file merged with its ``config.<env>.yaml`` overlay.

    The overlay is picked by PSC_ENV, falling back to the base file's
    ``environment`` key. Without any file, only env vars and defaults apply.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    base = _read_yaml(path)

    env = os.getenv("PSC_ENV") or base.get("environment", "development")
    overlay = _read_yaml(path.parent / f"config.{env}.yaml")
    return _deep_merge(base, overlay) if overlay else base


def _deep_merge(base: dict, override: dict) -> dict:
    """Nested dicts merge key by key; any other override value replaces the base."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _build_section(section_cls, values) -> BaseSettings:
    # Environment variables win over YAML values for the same field.
    from_env = section_cls()
    if not isinstance(values, dict):
        return from_env
    from_yaml = {k: v for k, v in values.items() if k not in from_env.model_fields_set}
    return section_cls(**from_yaml) if from_yaml else from_env


@lru_cache(maxsize=1)
def get_settings(config_path: Optional[Path] = None) -> PSCSettings:
    """Settings singleton.

    Precedence, highest first: environment variables (and .env), the
    ``config.<env>.yaml`` overlay, the base ``config.yaml``, field defaults.
    """
    yaml_config = _load_yaml_config(config_path)

    kwargs = {
        name: _build_section(section_cls, yaml_config.get(name))
        for name, section_cls in SECTIONS.items()
    }
    if "environment" in yaml_config and not os.getenv("PSC_ENV"):
        kwargs["environment"] = yaml_config["environment"]

    return PSCSettings(**kwargs)


def reload_settings(config_path: Optional[Path] = None) -> PSCSettings:
    """Drop the cached settings and load them again."""
    get_settings.cache_clear()
    return get_settings(config_path)

"""Configuration settings and loading."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from apiscramble.errors import ConfigValidationError, ErrorContext

SUPPORTED_CACHE_DRIVERS = {"memory", "file"}


class ScrambleConfig(BaseSettings):
    """Configuration for apiscramble document generation."""

    model_config = SettingsConfigDict(
        env_prefix="SCRAMBLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openapi_version: str = "3.0.0"
    title: str = "API Documentation"
    version: str = "1.0.0"
    description: str = ""
    contact: dict[str, str] = Field(default_factory=dict)
    license: dict[str, str] = Field(default_factory=dict)
    servers: list[dict[str, Any]] = Field(default_factory=list)
    base_url: str = "/"
    api_path: str = ""

    security_schemes: dict[str, dict[str, Any]] = Field(default_factory=dict)
    default_security_scheme: str = "bearerAuth"
    common_headers: list[dict[str, Any]] = Field(default_factory=list)
    validate_references: bool = True

    cache_enabled: bool = True
    cache_driver: str = "memory"
    cache_dir: str = ".apiscramble_cache"
    cache_ttl: int = 3600
    cache_prefix: str = "scramble_"

    verbose: bool = False

    @field_validator("openapi_version", mode="before")
    @classmethod
    def validate_openapi_version(cls, v: str) -> str:
        if not str(v).startswith("3.0"):
            raise ConfigValidationError(
                message=f"Unsupported OpenAPI version: {v}. Only 3.0.x documents are generated",
                field="openapi_version",
                value=v,
                context=ErrorContext(extra={"expected_prefix": "3.0"}),
            )
        return str(v)

    @field_validator("cache_driver", mode="before")
    @classmethod
    def validate_cache_driver(cls, v: str) -> str:
        if v not in SUPPORTED_CACHE_DRIVERS:
            raise ConfigValidationError(
                message=f"Invalid cache driver: {v}. Valid: {sorted(SUPPORTED_CACHE_DRIVERS)}",
                field="cache_driver",
                value=v,
                context=ErrorContext(extra={"valid_drivers": sorted(SUPPORTED_CACHE_DRIVERS)}),
            )
        return v

    @field_validator("cache_ttl")
    @classmethod
    def validate_cache_ttl(cls, v: int) -> int:
        if v < 0:
            raise ConfigValidationError(
                message="cache_ttl must not be negative",
                field="cache_ttl",
                value=v,
            )
        return v

    def info(self) -> dict[str, Any]:
        """Build the OpenAPI ``info`` block from the configured values."""
        info: dict[str, Any] = {"title": self.title, "version": self.version}
        if self.description:
            info["description"] = self.description
        if any(self.contact.values()):
            info["contact"] = {k: v for k, v in self.contact.items() if v}
        if self.license.get("name"):
            info["license"] = {k: v for k, v in self.license.items() if v}
        return info

    def server_list(self) -> list[dict[str, Any]]:
        """Configured servers, falling back to a single server at ``base_url``."""
        if self.servers:
            return [dict(server) for server in self.servers]
        return [{"url": self.base_url, "description": "Development server"}]


def load_config(config_path: str | Path | None = None) -> ScrambleConfig:
    """Load configuration from file and environment.

    Priority: CLI args > env vars > config file > defaults
    """
    config_data: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if config_path.exists():
            with open(config_path) as f:
                config_data = _flatten_file_config(yaml.safe_load(f) or {})

    env_overrides = _get_env_overrides()
    config_data.update(env_overrides)

    return ScrambleConfig(**config_data)


def _flatten_file_config(data: dict[str, Any]) -> dict[str, Any]:
    """Lift the nested ``info`` and ``cache`` sections into flat settings."""
    if not isinstance(data, dict):
        raise ConfigValidationError(
            message="Configuration file must contain a mapping",
            value=data,
        )

    flat = {k: v for k, v in data.items() if k not in ("info", "cache")}

    info = data.get("info") or {}
    for key in ("title", "version", "description", "contact", "license"):
        if key in info:
            flat.setdefault(key, info[key])

    cache = data.get("cache") or {}
    for key in ("enabled", "driver", "dir", "ttl", "prefix"):
        if key in cache:
            flat.setdefault(f"cache_{key}", cache[key])

    return flat


def _get_env_overrides() -> dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    env_mappings = {
        "SCRAMBLE_API_TITLE": "title",
        "SCRAMBLE_API_VERSION": "version",
        "SCRAMBLE_API_DESCRIPTION": "description",
        "SCRAMBLE_OPENAPI_VERSION": "openapi_version",
        "SCRAMBLE_BASE_URL": "base_url",
        "SCRAMBLE_CACHE_ENABLED": ("cache_enabled", lambda x: x.lower() in ("true", "1", "yes")),
        "SCRAMBLE_CACHE_TTL": ("cache_ttl", int),
        "SCRAMBLE_VERBOSE": ("verbose", lambda x: x.lower() in ("true", "1", "yes")),
    }

    for env_key, config_key in env_mappings.items():
        value = os.environ.get(env_key)
        if value is not None:
            if isinstance(config_key, tuple):
                key, converter = config_key
                overrides[key] = converter(value)
            else:
                overrides[config_key] = value

    return overrides

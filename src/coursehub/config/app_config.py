"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file is absent.

Usage:
    from coursehub.config.app_config import load_app_config

    config = load_app_config()
    db_path = config.database.path
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

DB_PATH_ENV = "COURSEHUB_DB_PATH"
API_URL_ENV = "COURSEHUB_API_URL"


@dataclass
class DatabaseConfig:
    """SQLite store settings."""

    path: str = "db/coursehub.db"


@dataclass
class ApiConfig:
    """CORS settings shared by every endpoint."""

    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    cors_methods: list[str] = field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    cors_headers: list[str] = field(
        default_factory=lambda: ["Content-Type", "Authorization"]
    )


@dataclass
class SecurityConfig:
    """Password policy and hashing schemes."""

    password_min_length: int = 8
    password_schemes: list[str] = field(default_factory=lambda: ["pbkdf2_sha256"])


@dataclass
class ClientConfig:
    """Settings for the command-line client."""

    base_url: str = "http://127.0.0.1:8000"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    client: ClientConfig = field(default_factory=ClientConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "db/coursehub.db"},
        "api": {
            "cors_origins": ["*"],
            "cors_methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "cors_headers": ["Content-Type", "Authorization"],
        },
        "security": {
            "password_min_length": 8,
            "password_schemes": ["pbkdf2_sha256"],
        },
        "client": {"base_url": "http://127.0.0.1:8000"},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    db_data = {**defaults["database"], **(data.get("database") or {})}
    api_data = {**defaults["api"], **(data.get("api") or {})}
    security_data = {**defaults["security"], **(data.get("security") or {})}
    client_data = {**defaults["client"], **(data.get("client") or {})}

    database = DatabaseConfig(path=os.environ.get(DB_PATH_ENV) or str(db_data["path"]))
    api = ApiConfig(
        cors_origins=list(api_data["cors_origins"]),
        cors_methods=[m.upper() for m in api_data["cors_methods"]],
        cors_headers=list(api_data["cors_headers"]),
    )
    security = SecurityConfig(
        password_min_length=int(security_data["password_min_length"]),
        password_schemes=list(security_data["password_schemes"]),
    )
    client = ClientConfig(
        base_url=os.environ.get(API_URL_ENV) or str(client_data["base_url"]),
    )

    return AppConfig(database=database, api=api, security=security, client=client)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, using defaults when no file exists.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None

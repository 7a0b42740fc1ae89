"""Configuration package for coursehub."""

from coursehub.config.app_config import (
    ApiConfig,
    AppConfig,
    ClientConfig,
    DatabaseConfig,
    SecurityConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "ApiConfig",
    "AppConfig",
    "ClientConfig",
    "DatabaseConfig",
    "SecurityConfig",
    "clear_config_cache",
    "load_app_config",
]

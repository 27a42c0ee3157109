"""Configuration management using Pydantic Settings.

Type-safe configuration with automatic environment variable loading.

The configuration is organized into logical groups:
- DatabaseConfig: Database connection and pooling settings
- PersistenceConfig: Save/retry discipline for mutating operations
- LoggingConfig: Logging levels, files, and debugging options
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Database connection and pooling configuration."""

    url: str = "sqlite+aiosqlite:///data/db/music_catalog.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    busy_timeout_ms: int = 30000


class PersistenceConfig(BaseModel):
    """Bounded retry applied to transient store failures during saves."""

    save_retry_count: int = 3
    save_retry_base_delay: float = 0.5
    save_retry_max_delay: float = 5.0


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("music_catalog.log")
    real_time_debug: bool = True


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: DATABASE_URL, CONSOLE_LOG_LEVEL, SAVE_RETRY_COUNT
    - Nested: DATABASE__URL, LOGGING__CONSOLE_LEVEL, PERSISTENCE__SAVE_RETRY_COUNT

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    database: DatabaseConfig = DatabaseConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    logging: LoggingConfig = LoggingConfig()

    data_dir: Path = Path("data")

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Map flat environment variables (DATABASE_URL) onto nested groups."""
        if not isinstance(data, dict):
            return data

        mappings = {
            "database": {
                "database_url": "url",
                "database_echo": "echo",
                "database_pool_size": "pool_size",
                "database_max_overflow": "max_overflow",
                "database_pool_timeout": "pool_timeout",
                "database_pool_recycle": "pool_recycle",
                "database_busy_timeout_ms": "busy_timeout_ms",
            },
            "persistence": {
                "save_retry_count": "save_retry_count",
                "save_retry_base_delay": "save_retry_base_delay",
                "save_retry_max_delay": "save_retry_max_delay",
            },
            "logging": {
                "console_log_level": "console_level",
                "file_log_level": "file_level",
                "log_file": "log_file",
                "log_real_time_debug": "real_time_debug",
            },
        }

        transformed: dict[str, dict[str, Any]] = {}
        for group, mapping in mappings.items():
            for env_key, field_key in mapping.items():
                if env_key in data:
                    transformed.setdefault(group, {})[field_key] = data.pop(env_key)

        for group, values in transformed.items():
            existing = data.get(group)
            if isinstance(existing, dict):
                values = {**existing, **values}
            data[group] = values

        return data


# Singleton instance for application use
settings = Settings()

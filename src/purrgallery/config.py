"""Configuration management for purrgallery.

Configuration comes from environment variables, with typed casting and a
small cache. The CLI loads a ``.env`` file into the environment first.
"""

import os
from pathlib import Path
from typing import Any

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_DATA_DIR = "~/.purrgallery"
BLOB_DB_FILENAME = "media.duckdb"
METADATA_DB_FILENAME = "metadata.duckdb"


class Config:
    """Centralized configuration management using environment variables."""

    def __init__(self):
        self._cache = {}

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Get configuration value from environment variables.

        Args:
            key: Configuration key
            default: Default value if not found
            cast_type: Type to cast the value to (str, int, bool, float)

        Returns:
            Configuration value cast to the specified type
        """
        cache_key = f"{key}:{cast_type.__name__}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        value = os.getenv(key)

        if value is None:
            value = default

        if value is not None:
            try:
                if cast_type is bool:
                    if isinstance(value, str):
                        value = value.lower() in ("true", "1", "yes", "on")  # type: ignore[assignment]
                    else:
                        value = bool(value)  # type: ignore[assignment]
                elif cast_type is not str:
                    value = cast_type(value)
            except (ValueError, TypeError) as e:
                logger.warning(f"Failed to cast config value '{key}' to {cast_type.__name__}: {e}")
                value = default

        self._cache[cache_key] = value
        return value

    def is_development(self) -> bool:
        """Check if running in development mode."""
        environment = self.get("ENVIRONMENT", "development").lower()
        return environment in ["development", "dev", "local"]

    def is_production(self) -> bool:
        """Check if running in production mode."""
        environment = self.get("ENVIRONMENT", "development").lower()
        return environment in ["production", "prod"]

    def clear_cache(self):
        """Clear configuration cache."""
        self._cache.clear()


_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_env(key: str, default: Any = None, cast_type: type = str) -> Any:
    """Get environment variable with type casting."""
    return get_config().get(key, default, cast_type)


def get_data_dir() -> Path:
    """Get the directory holding both storage tiers."""
    return Path(str(get_env("PURRGALLERY_DATA_DIR", DEFAULT_DATA_DIR))).expanduser()


def get_blob_db_path() -> Path:
    """Get the DuckDB file used by the blob store."""
    path = get_env("PURRGALLERY_BLOB_DB")
    if path:
        return Path(str(path)).expanduser()
    return get_data_dir() / BLOB_DB_FILENAME


def get_metadata_db_path() -> Path:
    """Get the DuckDB file used by the metadata key-value store."""
    path = get_env("PURRGALLERY_METADATA_DB")
    if path:
        return Path(str(path)).expanduser()
    return get_data_dir() / METADATA_DB_FILENAME

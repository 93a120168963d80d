"""Configuration management for pfile.

This module provides centralized configuration management using environment variables
and Streamlit secrets as fallback. Designed for simplicity and single-user local usage.
"""

import os
from pathlib import Path
from typing import Any

try:
    import streamlit as st

    STREAMLIT_AVAILABLE = True
except ImportError:
    STREAMLIT_AVAILABLE = False

from .logging_config import get_logger

logger = get_logger(__name__)

# Fixed total capacity shown in the storage meter (6 GB)
DEFAULT_STORAGE_CAPACITY = 6 * 1024 * 1024 * 1024


class Config:
    """Centralized configuration management using environment variables."""

    def __init__(self):
        """Initialize configuration."""
        self._cache = {}

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Get configuration value from environment variables or Streamlit secrets.

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

        if value is None and STREAMLIT_AVAILABLE:
            try:
                value = st.secrets.get(key)
            except Exception:  # nosec B110
                # No secrets file outside a Streamlit run
                pass

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
    """Get the directory holding the catalog, key and preferences."""
    return Path(str(get_env("PFILE_DATA_DIR", "~/.pfile"))).expanduser()


def get_thumbnail_max_size() -> int:
    """Get the longest thumbnail edge in pixels."""
    return int(get_env("THUMBNAIL_MAX_SIZE", 200, int))


def get_thumbnail_quality() -> int:
    """Get thumbnail JPEG quality on Pillow's 1-95 scale (80 == 0.8)."""
    return int(get_env("THUMBNAIL_QUALITY", 80, int))


def get_storage_capacity() -> int:
    """Get the total storage capacity used for quota display, in bytes."""
    return int(get_env("STORAGE_CAPACITY_BYTES", DEFAULT_STORAGE_CAPACITY, int))


def get_max_file_size() -> int:
    """Get the largest accepted upload in bytes."""
    return int(get_env("MAX_FILE_SIZE", 50 * 1024 * 1024, int))


def get_default_encryption_method() -> str:
    """Get the encryption method used when none has been chosen yet."""
    return str(get_env("PFILE_ENCRYPTION_METHOD", "aes256")).lower()


def get_debug_mode() -> bool:
    """Get debug mode setting."""
    return get_env("DEBUG", False, bool) or get_config().is_development()

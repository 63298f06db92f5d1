"""Configuration management for the browser session."""

from .environment import (
    CONNECTION_MODES,
    TRANSPORTS,
    get_env_config,
    is_tool_disabled,
)

from .paths import (
    get_cache_dir,
    driver_executable_name,
    version_dir,
    cached_driver_path,
    download_lock_path,
)

__all__ = [
    "CONNECTION_MODES",
    "TRANSPORTS",
    "get_env_config",
    "is_tool_disabled",
    "get_cache_dir",
    "driver_executable_name",
    "version_dir",
    "cached_driver_path",
    "download_lock_path",
]

"""Path utilities for the driver download cache."""

import os
import platform
from pathlib import Path
from typing import Optional


def get_cache_dir(config: Optional[dict] = None) -> str:
    """
    Get the chromedriver cache directory.

    Uses config['driver_cache_dir'] (MCP_DRIVER_CACHE_DIR) if set, otherwise:
        ~/.cache/mcp_computer_use/drivers

    The directory is created if it doesn't exist.

    Returns:
        Absolute path to the cache directory
    """
    configured = (config or {}).get("driver_cache_dir") or os.getenv("MCP_DRIVER_CACHE_DIR")
    if configured:
        cache_dir = Path(configured).expanduser()
    else:
        cache_dir = Path.home() / ".cache" / "mcp_computer_use" / "drivers"

    cache_dir.mkdir(parents=True, exist_ok=True)
    return str(cache_dir.resolve())


def driver_executable_name() -> str:
    """chromedriver file name for the current OS."""
    return "chromedriver.exe" if platform.system() == "Windows" else "chromedriver"


def version_dir(cache_dir: str, version: str) -> str:
    """Directory holding the cached driver for one version."""
    return os.path.join(cache_dir, version)


def cached_driver_path(cache_dir: str, version: str) -> str:
    """Where the extracted driver for `version` lives."""
    return os.path.join(version_dir(cache_dir, version), driver_executable_name())


def download_lock_path(cache_dir: str, version: str) -> str:
    """Cross-process lock file guarding the download of `version`."""
    return os.path.join(cache_dir, f"{version}.lock")


__all__ = [
    "get_cache_dir",
    "driver_executable_name",
    "version_dir",
    "cached_driver_path",
    "download_lock_path",
]

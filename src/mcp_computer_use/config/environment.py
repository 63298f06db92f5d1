"""Environment configuration and validation."""

import os
from typing import Optional

import logging
logger = logging.getLogger(__name__)


_TRUE_VALUES = ("true", "1", "yes")
_FALSE_VALUES = ("false", "0", "no")

CONNECTION_MODES = ("webdriver", "cdp")
TRANSPORTS = ("stdio", "http")


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or default


def _env_bool(name: str, default: bool) -> bool:
    raw = _env_str(name)
    if raw is None:
        return default
    value = raw.lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning("Invalid boolean for %s: %r, using default %s", name, raw, default)
    return default


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s: %r, using default %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("Negative value for %s: %r, using default %s", name, raw, default)
        return default
    return value


def _env_choice(name: str, choices: tuple, default: str) -> str:
    raw = _env_str(name)
    if raw is None:
        return default
    value = raw.lower()
    if value not in choices:
        logger.warning("Invalid value for %s: %r (expected one of %s), using default %s",
                       name, raw, ", ".join(choices), default)
        return default
    return value


def get_env_config() -> dict:
    """
    Read MCP_* environment variables into a plain configuration dict.

    Every variable is optional. Malformed numbers, booleans and choices log a
    warning and fall back to their default; the only hard failure is a browser
    type other than chrome.

    Browser:    MCP_BROWSER_TYPE (only 'chrome'), MCP_BROWSER_PATH
                (alias MCP_BROWSER_BINARY_PATH), MCP_HEADLESS, MCP_UNDETECTED,
                MCP_SCREEN_WIDTH, MCP_SCREEN_HEIGHT, MCP_INITIAL_URL,
                MCP_SEARCH_ENGINE_URL, MCP_HIGHLIGHT_MOUSE
    Connection: MCP_CONNECTION_MODE ('webdriver' | 'cdp'), MCP_WEBDRIVER_URL,
                MCP_DRIVER_PATH, MCP_DRIVER_PORT, MCP_CDP_PORT, MCP_CDP_URL,
                MCP_AUTO_START, MCP_AUTO_DOWNLOAD_DRIVER, MCP_DRIVER_CACHE_DIR
    Session:    MCP_OPEN_BROWSER_ON_START, MCP_IDLE_TIMEOUT (seconds, 0 disables)
    Server:     MCP_TRANSPORT ('stdio' | 'http'), MCP_HTTP_HOST, MCP_HTTP_PORT,
                MCP_DISABLED_TOOLS (comma separated), MCP_LOG_LEVEL
    """
    browser_type = (_env_str("MCP_BROWSER_TYPE", "chrome") or "chrome").lower()
    if browser_type != "chrome":
        raise EnvironmentError(f"Unsupported MCP_BROWSER_TYPE {browser_type!r}: only 'chrome' is supported.")

    driver_port = _env_int("MCP_DRIVER_PORT", 9515)
    disabled = _env_str("MCP_DISABLED_TOOLS", "") or ""

    return {
        "browser_type": browser_type,
        "browser_path": _env_str("MCP_BROWSER_PATH") or _env_str("MCP_BROWSER_BINARY_PATH"),
        "headless": _env_bool("MCP_HEADLESS", True),
        "undetected": _env_bool("MCP_UNDETECTED", False),
        "screen_width": _env_int("MCP_SCREEN_WIDTH", 1280) or 1280,
        "screen_height": _env_int("MCP_SCREEN_HEIGHT", 720) or 720,
        "initial_url": _env_str("MCP_INITIAL_URL", "https://www.google.com"),
        "search_engine_url": _env_str("MCP_SEARCH_ENGINE_URL", "https://www.google.com"),
        "highlight_mouse": _env_bool("MCP_HIGHLIGHT_MOUSE", False),
        "connection_mode": _env_choice("MCP_CONNECTION_MODE", CONNECTION_MODES, "webdriver"),
        "webdriver_url": _env_str("MCP_WEBDRIVER_URL", f"http://localhost:{driver_port}"),
        "driver_path": _env_str("MCP_DRIVER_PATH"),
        "driver_port": driver_port,
        "cdp_port": _env_int("MCP_CDP_PORT", 9222),
        "cdp_url": _env_str("MCP_CDP_URL"),
        "auto_start": _env_bool("MCP_AUTO_START", False),
        "auto_download_driver": _env_bool("MCP_AUTO_DOWNLOAD_DRIVER", False),
        "driver_cache_dir": _env_str("MCP_DRIVER_CACHE_DIR"),
        "open_browser_on_start": _env_bool("MCP_OPEN_BROWSER_ON_START", False),
        "idle_timeout": _env_int("MCP_IDLE_TIMEOUT", 300),
        "transport": _env_choice("MCP_TRANSPORT", TRANSPORTS, "stdio"),
        "http_host": _env_str("MCP_HTTP_HOST", "127.0.0.1"),
        "http_port": _env_int("MCP_HTTP_PORT", 8080),
        "disabled_tools": [t.strip() for t in disabled.split(",") if t.strip()],
        "log_level": (_env_str("MCP_LOG_LEVEL", "INFO") or "INFO").upper(),
    }


def is_tool_disabled(config: dict, name: str) -> bool:
    """True if `name` is listed in MCP_DISABLED_TOOLS."""
    return name in (config.get("disabled_tools") or [])


__all__ = [
    "CONNECTION_MODES",
    "TRANSPORTS",
    "get_env_config",
    "is_tool_disabled",
]

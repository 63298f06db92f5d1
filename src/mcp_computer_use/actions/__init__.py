"""Primitive browser actions over WebDriver or CDP."""

from .base import (
    DIRECTIONS,
    Observation,
    TabInfo,
    BrowserBackend,
    validate_coordinates,
    normalize_direction,
    scroll_delta,
    normalize_url,
)
from .keyboard import normalize_key, validate_keys
from .webdriver_backend import WebDriverBackend
from .cdp_backend import CdpBackend


def create_backend(config: dict) -> BrowserBackend:
    """Backend for config['connection_mode']."""
    if config.get("connection_mode") == "cdp":
        return CdpBackend(config)
    return WebDriverBackend(config)


__all__ = [
    "DIRECTIONS",
    "Observation",
    "TabInfo",
    "BrowserBackend",
    "validate_coordinates",
    "normalize_direction",
    "scroll_delta",
    "normalize_url",
    "normalize_key",
    "validate_keys",
    "WebDriverBackend",
    "CdpBackend",
    "create_backend",
]

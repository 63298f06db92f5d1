"""
Global constants and tuning defaults.
No dependencies - safe to import from anywhere.
"""

import os

# ============================================================================
# Page Readiness and Settling
# ============================================================================

READY_POLL_INTERVAL_SECS = float(os.getenv("MCP_READY_POLL_INTERVAL", "0.1"))
"""How often document.readyState is polled after an action."""

READY_POLL_TIMEOUT_SECS = float(os.getenv("MCP_READY_POLL_TIMEOUT", "10"))
"""Ceiling for the readiness poll. Expiry is not an error."""

SETTLE_DELAY_SECS = float(os.getenv("MCP_SETTLE_DELAY", "0.5"))
"""Fixed delay between readiness and the screenshot."""

TYPING_DELAY_SECS = float(os.getenv("MCP_TYPING_DELAY", "0.1"))
"""Pause between focusing an element and inserting text."""

WAIT_ACTION_SECS = 5.0
"""Duration of the wait_5_seconds action."""


# ============================================================================
# Screenshot Retry
# ============================================================================

SCREENSHOT_ATTEMPTS = int(os.getenv("MCP_SCREENSHOT_ATTEMPTS", "3"))
"""Total screenshot attempts on the WebDriver backend."""

SCREENSHOT_BASE_DELAY_SECS = float(os.getenv("MCP_SCREENSHOT_BASE_DELAY", "0.2"))
"""First backoff delay; doubles after every failed attempt."""


# ============================================================================
# Acquisition
# ============================================================================

PORT_POLL_INTERVAL_SECS = 0.1
"""How often the driver/browser port is polled after launch."""

PORT_POLL_TIMEOUT_SECS = float(os.getenv("MCP_PORT_POLL_TIMEOUT", "30"))
"""Ceiling for the port poll. Expiry raises AcquisitionTimeout."""

DOWNLOAD_LOCK_STALE_SECS = int(os.getenv("MCP_DOWNLOAD_LOCK_STALE_SECS", "600"))
"""Break a download lock file older than this."""

DOWNLOAD_LOCK_WAIT_SECS = float(os.getenv("MCP_DOWNLOAD_LOCK_WAIT_SECS", "300"))
"""Maximum time to wait for another process to finish a download."""

HTTP_TIMEOUT_SECS = float(os.getenv("MCP_HTTP_TIMEOUT", "60"))
"""Timeout for manifest and archive requests."""

KNOWN_GOOD_VERSIONS_URL = (
    "https://googlechromelabs.github.io/chrome-for-testing/known-good-versions-with-downloads.json"
)
"""Every Chrome for Testing release with its download URLs."""

LAST_KNOWN_GOOD_URL = (
    "https://googlechromelabs.github.io/chrome-for-testing/last-known-good-versions-with-downloads.json"
)
"""Latest release per channel (Stable, Beta, Dev, Canary)."""


# ============================================================================
# Session
# ============================================================================

IDLE_CHECK_MIN_SECS = 1.0
"""Lower bound of the idle monitor tick."""

DEFAULT_LOCAL_HOST = "127.0.0.1"
"""Host used for every process this server launches."""


__all__ = [
    "READY_POLL_INTERVAL_SECS",
    "READY_POLL_TIMEOUT_SECS",
    "SETTLE_DELAY_SECS",
    "TYPING_DELAY_SECS",
    "WAIT_ACTION_SECS",
    "SCREENSHOT_ATTEMPTS",
    "SCREENSHOT_BASE_DELAY_SECS",
    "PORT_POLL_INTERVAL_SECS",
    "PORT_POLL_TIMEOUT_SECS",
    "DOWNLOAD_LOCK_STALE_SECS",
    "DOWNLOAD_LOCK_WAIT_SECS",
    "HTTP_TIMEOUT_SECS",
    "KNOWN_GOOD_VERSIONS_URL",
    "LAST_KNOWN_GOOD_URL",
    "IDLE_CHECK_MIN_SECS",
    "DEFAULT_LOCAL_HOST",
]

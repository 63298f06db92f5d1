"""Chrome and chromedriver executable resolution, plus version detection."""

import os
import re
import shutil
import platform
import subprocess
from typing import Iterable, List, Optional

from ..errors import BinaryNotFound

import logging
logger = logging.getLogger(__name__)


_VERSION_RE = re.compile(r"\d+(?:\.\d+)+")


def _browser_path_names(system: str) -> List[str]:
    if system == "Windows":
        return ["chrome.exe"]
    if system == "Darwin":
        return ["Google Chrome", "Chromium", "chromium"]
    return ["google-chrome", "google-chrome-stable", "chromium", "chromium-browser"]


def _browser_common_paths(system: str) -> List[str]:
    if system == "Windows":
        candidates = [
            r"C:\Program Files\Google\Chrome\Application\chrome.exe",
            r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
        ]
        local = os.environ.get("LOCALAPPDATA", "")
        if local:
            candidates.append(os.path.join(local, "Google", "Chrome", "Application", "chrome.exe"))
        return candidates
    if system == "Darwin":
        return [
            "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "/Applications/Chromium.app/Contents/MacOS/Chromium",
            "/Applications/Google Chrome Canary.app/Contents/MacOS/Google Chrome Canary",
        ]
    return [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/snap/bin/chromium",
        "/opt/google/chrome/chrome",
    ]


def _driver_common_paths(system: str) -> List[str]:
    if system == "Windows":
        return [
            r"C:\chromedriver\chromedriver.exe",
            r"C:\Program Files\chromedriver\chromedriver.exe",
            r"C:\webdrivers\chromedriver.exe",
        ]
    if system == "Darwin":
        return [
            "/usr/local/bin/chromedriver",
            "/opt/homebrew/bin/chromedriver",
            "/usr/bin/chromedriver",
        ]
    return [
        "/usr/bin/chromedriver",
        "/usr/local/bin/chromedriver",
        "/snap/bin/chromedriver",
        "/opt/chromedriver/chromedriver",
    ]


def _configured(path: Optional[str], what: str) -> Optional[str]:
    if not path:
        return None
    if os.path.isfile(path):
        return path
    logger.warning("Configured %s path does not exist: %s", what, path)
    return None


def _which_first(names: Iterable[str]) -> Optional[str]:
    for name in names:
        found = shutil.which(name)
        if found:
            return found
    return None


def _first_existing(paths: Iterable[str]) -> Optional[str]:
    for p in paths:
        if os.path.isfile(p):
            return p
    return None


def resolve_browser_executable(config: dict) -> str:
    """
    Resolve the Chrome binary: configured path, then PATH, then common install paths.

    Args:
        config: Configuration dict with optional browser_path

    Returns:
        str: Path to the Chrome executable

    Raises:
        BinaryNotFound: If no candidate exists
    """
    system = platform.system()
    path = (
        _configured(config.get("browser_path"), "browser")
        or _which_first(_browser_path_names(system))
        or _first_existing(_browser_common_paths(system))
    )
    if path is None:
        raise BinaryNotFound(
            "Chrome executable not found. Set MCP_BROWSER_PATH to the full binary path."
        )
    logger.debug("Resolved browser executable: %s", path)
    return path


def resolve_driver_executable(config: dict) -> Optional[str]:
    """
    Resolve an installed chromedriver: configured path, then PATH, then common install paths.

    Returns None when nothing is installed; the caller decides whether a
    download is allowed.
    """
    system = platform.system()
    name = "chromedriver.exe" if system == "Windows" else "chromedriver"
    path = (
        _configured(config.get("driver_path"), "driver")
        or shutil.which(name)
        or _first_existing(_driver_common_paths(system))
    )
    if path:
        logger.debug("Resolved driver executable: %s", path)
    return path


def parse_version(text: str) -> Optional[str]:
    """Return the first dotted numeric token in `text`, e.g. '131.0.6778.85'."""
    match = _VERSION_RE.search(text or "")
    return match.group(0) if match else None


def major_version(version: str) -> int:
    """Leading component of a dotted version string."""
    return int(version.split(".", 1)[0])


def _windows_registry_version() -> Optional[str]:
    import winreg
    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, r"Software\Google\Chrome\BLBeacon") as key:
            version, _ = winreg.QueryValueEx(key, "version")
    except OSError:
        return None
    return parse_version(str(version))


def get_browser_version(binary: str) -> Optional[str]:
    """
    Run `<binary> --version` and parse the version out of its output.
    On Windows the registry is consulted first; chrome.exe prints nothing there.

    Returns:
        Optional[str]: The version, or None if it could not be determined
    """
    if platform.system() == "Windows":
        version = _windows_registry_version()
        if version:
            return version
    try:
        out = subprocess.check_output(
            [binary, "--version"], stderr=subprocess.STDOUT, timeout=15
        ).decode(errors="replace").strip()
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("Could not read browser version from %s: %s", binary, e)
        return None
    version = parse_version(out)
    if version is None:
        logger.warning("No version number in %r", out)
    return version


__all__ = [
    'resolve_browser_executable',
    'resolve_driver_executable',
    'parse_version',
    'major_version',
    'get_browser_version',
]

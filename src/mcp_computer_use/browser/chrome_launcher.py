"""Driver and browser launch orchestration, command building and teardown."""

import shutil
import platform
import subprocess
import tempfile
from typing import List, Optional

from ..config.paths import get_cache_dir
from .. import constants
from ..errors import BinaryNotFound
from .chrome_executable import get_browser_version, resolve_browser_executable, resolve_driver_executable
from .driver_download import ensure_driver_downloaded, resolve_driver_release
from .process import ManagedProcess, ensure_port_free, wait_for_port

import logging
logger = logging.getLogger(__name__)


_URL_SCHEMES_FOR_LAUNCH = ("http://", "https://", "file://")


def chrome_flags(config: dict) -> List[str]:
    """
    Browser flags shared by the CDP launch and the WebDriver session options.

    Args:
        config: Configuration dict (headless, undetected, screen size)

    Returns:
        list[str]: Chrome command-line switches
    """
    headless = bool(config.get("headless", True))
    flags = [
        "--disable-extensions",
        "--disable-plugins",
        "--disable-dev-shm-usage",
        "--disable-background-networking",
        "--disable-default-apps",
        "--disable-sync",
        "--no-first-run",
        "--no-default-browser-check",
        "--disable-popup-blocking",
        f"--window-size={config.get('screen_width', 1280)},{config.get('screen_height', 720)}",
    ]
    if headless:
        flags.append("--no-sandbox")
        flags.append("--headless=new")
    if config.get("undetected"):
        flags.extend([
            "--disable-blink-features=AutomationControlled",
            "--disable-infobars",
            "--disable-notifications",
        ])
    return flags


def build_chrome_command(
    binary: str,
    port: int,
    config: dict,
    user_data_dir: Optional[str] = None,
) -> List[str]:
    """
    Build Chrome command-line arguments for remote debugging.

    The initial URL is appended only for http, https and file URLs.
    """
    cmd = [binary, f"--remote-debugging-port={port}"]
    if user_data_dir:
        cmd.append(f"--user-data-dir={user_data_dir}")
    cmd.extend(chrome_flags(config))

    initial_url = config.get("initial_url") or ""
    if initial_url.startswith(_URL_SCHEMES_FOR_LAUNCH):
        cmd.append(initial_url)
    return cmd


def build_driver_command(binary: str, port: int) -> List[str]:
    """chromedriver listening on `port`."""
    return [binary, f"--port={port}"]


def launch_process(cmd: List[str]) -> subprocess.Popen:
    """
    Spawn a detached-from-console child with all standard streams closed.

    Stdout must stay untouched because it carries the stdio MCP transport.
    """
    logger.debug("Launching: %s", " ".join(cmd))
    if platform.system() == "Windows":
        return subprocess.Popen(
            cmd,
            creationflags=subprocess.CREATE_NO_WINDOW,
            stdin=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL
        )
    return subprocess.Popen(
        cmd,
        stdin=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL
    )


def start_managed_process(
    binary: str,
    cmd: List[str],
    port: int,
    timeout: Optional[float] = None,
    interval: Optional[float] = None,
) -> ManagedProcess:
    """
    Check the port, launch `cmd` and wait until it accepts TCP connections.

    Raises:
        PortInUse: If the port is taken before launch
        AcquisitionTimeout: If the port never opens; the child is stopped first
    """
    ensure_port_free(port)
    managed = ManagedProcess(binary_path=binary, port=port, process=launch_process(cmd))
    try:
        wait_for_port(port, timeout=timeout, interval=interval, process=managed.process)
    except BaseException:
        managed.stop()
        raise
    logger.info("Started %s (pid %s) on port %s", binary, managed.pid, port)
    return managed


class Acquisition:
    """
    Produces a reachable control endpoint for the configured connection mode.

    WebDriver mode launches chromedriver only with auto_start; otherwise the
    configured WebDriver URL is used. CDP mode attaches to MCP_CDP_URL when it
    is set and auto_start is off; in every other case Chrome itself is
    launched. A launched process is owned here and `stop()` tears it down
    exactly once. Attached endpoints are never killed.
    """

    def __init__(self, config: dict):
        self.config = config
        self.process: Optional[ManagedProcess] = None
        self.endpoint: Optional[str] = None
        self._profile_dir: Optional[str] = None

    @property
    def owns_process(self) -> bool:
        return self.process is not None and not self.process.stopped

    def ensure_endpoint(self) -> str:
        if self.config.get("connection_mode") == "cdp":
            return self.ensure_cdp_endpoint()
        return self.ensure_webdriver_endpoint()

    def _reusable(self) -> bool:
        return (
            self.endpoint is not None
            and self.owns_process
            and self.process.process.poll() is None
        )

    def resolve_driver(self) -> str:
        """
        Installed chromedriver if any, otherwise a version-matched download.

        Raises:
            BinaryNotFound: If nothing is installed and auto_download_driver is off
        """
        path = resolve_driver_executable(self.config)
        if path:
            return path
        if not self.config.get("auto_download_driver"):
            raise BinaryNotFound(
                "chromedriver not found in MCP_DRIVER_PATH, PATH or common locations. "
                "Install it or set MCP_AUTO_DOWNLOAD_DRIVER=true."
            )

        try:
            browser_version = get_browser_version(resolve_browser_executable(self.config))
        except BinaryNotFound:
            browser_version = None
        release = resolve_driver_release(browser_version)
        return ensure_driver_downloaded(release, get_cache_dir(self.config))

    def ensure_webdriver_endpoint(self) -> str:
        if not self.config.get("auto_start"):
            return self.config["webdriver_url"]
        if self._reusable():
            return self.endpoint

        self.stop()
        port = int(self.config["driver_port"])
        driver = self.resolve_driver()
        self.process = start_managed_process(driver, build_driver_command(driver, port), port)
        self.endpoint = f"http://{constants.DEFAULT_LOCAL_HOST}:{port}"
        return self.endpoint

    def ensure_cdp_endpoint(self) -> str:
        cdp_url = self.config.get("cdp_url")
        if cdp_url and not self.config.get("auto_start"):
            return cdp_url
        if self._reusable():
            return self.endpoint

        self.stop()
        port = int(self.config["cdp_port"])
        browser = resolve_browser_executable(self.config)
        self._profile_dir = tempfile.mkdtemp(prefix="mcp_computer_use_profile_")
        cmd = build_chrome_command(browser, port, self.config, user_data_dir=self._profile_dir)
        try:
            self.process = start_managed_process(browser, cmd, port)
        except BaseException:
            self._remove_profile_dir()
            raise
        self.endpoint = f"http://{constants.DEFAULT_LOCAL_HOST}:{port}"
        return self.endpoint

    def _remove_profile_dir(self) -> None:
        if self._profile_dir:
            shutil.rmtree(self._profile_dir, ignore_errors=True)
            self._profile_dir = None

    def stop(self) -> None:
        """Tear down the owned process, if any. Idempotent."""
        if self.process is not None:
            self.process.stop()
            self.process = None
        self.endpoint = None
        self._remove_profile_dir()


__all__ = [
    'chrome_flags',
    'build_chrome_command',
    'build_driver_command',
    'launch_process',
    'start_managed_process',
    'Acquisition',
]

"""Process and port management."""

import time
import socket
import subprocess
import threading
from dataclasses import dataclass, field
from typing import Optional

import psutil

from .. import constants
from ..errors import AcquisitionTimeout, PortInUse

import logging
logger = logging.getLogger(__name__)


def _is_port_open(host: str, port: int, timeout: float = 0.25) -> bool:
    """Check if a port is open."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def get_free_port() -> int:
    """Get a free port by binding to port 0."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((constants.DEFAULT_LOCAL_HOST, 0))
        return s.getsockname()[1]


def ensure_port_free(port: int, host: Optional[str] = None) -> None:
    """
    Refuse to launch onto a port another process already listens on.

    Raises:
        PortInUse: if something accepts connections on host:port
    """
    host = host or constants.DEFAULT_LOCAL_HOST
    if _is_port_open(host, port):
        raise PortInUse(f"Port {port} on {host} is already in use by another process.")


def wait_for_port(
    port: int,
    host: Optional[str] = None,
    timeout: Optional[float] = None,
    interval: Optional[float] = None,
    process: Optional[subprocess.Popen] = None,
) -> None:
    """
    Poll raw TCP connectivity until host:port accepts a connection.

    Args:
        port: Port the launched process binds
        host: Host to connect to
        timeout: Ceiling in seconds
        interval: Delay between connection attempts
        process: If given, stop early when it has already exited

    Raises:
        AcquisitionTimeout: if the port never opens within `timeout`
    """
    host = host or constants.DEFAULT_LOCAL_HOST
    timeout = constants.PORT_POLL_TIMEOUT_SECS if timeout is None else timeout
    interval = constants.PORT_POLL_INTERVAL_SECS if interval is None else interval
    deadline = time.monotonic() + timeout
    while True:
        if _is_port_open(host, port, timeout=min(0.25, max(interval, 0.01))):
            return
        if process is not None and process.poll() is not None:
            raise AcquisitionTimeout(
                f"Process exited with code {process.returncode} before opening port {port}."
            )
        if time.monotonic() >= deadline:
            raise AcquisitionTimeout(f"Port {port} on {host} did not open within {timeout:.1f}s.")
        time.sleep(interval)


@dataclass
class ManagedProcess:
    """
    A driver or browser process this server launched and therefore owns.

    Attributes:
        binary_path: Executable that was started
        port: Port the process was told to listen on
        process: The Popen handle
    """

    binary_path: str
    port: int
    process: subprocess.Popen
    _stopped: bool = field(default=False, repr=False)
    _stop_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self, wait_timeout: float = 10.0) -> None:
        """
        Kill the process and its children, then wait for actual exit.
        Safe to call any number of times.
        """
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        try:
            children = psutil.Process(self.process.pid).children(recursive=True)
        except psutil.NoSuchProcess:
            children = []

        for child in children:
            try:
                child.kill()
            except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
                logger.debug("Could not kill child %s: %s", child.pid, e)

        if self.process.poll() is None:
            try:
                self.process.kill()
            except ProcessLookupError:
                pass
        try:
            self.process.wait(timeout=wait_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Process %s (%s) did not exit within %.1fs", self.pid, self.binary_path, wait_timeout)

        psutil.wait_procs(children, timeout=wait_timeout)
        logger.info("Stopped %s (pid %s, port %s)", self.binary_path, self.pid, self.port)


__all__ = [
    '_is_port_open',
    'get_free_port',
    'ensure_port_free',
    'wait_for_port',
    'ManagedProcess',
]

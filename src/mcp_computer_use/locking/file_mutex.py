"""File-based cross-process mutex."""

import os
import time
import contextlib
from pathlib import Path
from typing import Optional

import psutil

from ..errors import AcquisitionTimeout

import logging
logger = logging.getLogger(__name__)


def _now() -> float:
    """Return current time as float timestamp."""
    return time.time()


def _owner_pid(p: Path) -> Optional[int]:
    """PID recorded in the mutex file, or None while it is still being written."""
    try:
        text = p.read_text(encoding="ascii", errors="ignore").strip()
    except FileNotFoundError:
        return None
    return int(text) if text.isdigit() else None


def _is_abandoned(p: Path, stale_secs: int) -> bool:
    """The owner process is gone, or the file is older than stale_secs."""
    pid = _owner_pid(p)
    if pid is not None and pid != os.getpid() and not psutil.pid_exists(pid):
        logger.warning("Breaking mutex %s held by dead process %s", p, pid)
        return True
    if _now() - p.stat().st_mtime > stale_secs:
        logger.warning("Breaking stale mutex %s", p)
        return True
    return False


@contextlib.contextmanager
def _file_mutex(path: str, stale_secs: int, wait_timeout: float, poll_interval: float = 0.05):
    """
    Simple cross-process mutex via an exclusive file create.
    The owner's PID is written into the file; a mutex whose owner has died,
    or that is older than stale_secs, is removed by the next waiter.
    The mutex file is removed on exit, including when the body raises.

    Raises:
        AcquisitionTimeout: if the mutex is still held after wait_timeout
    """
    start = _now()
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    while True:
        try:
            fd = os.open(str(p), os.O_CREAT | os.O_EXCL | os.O_RDWR)
            break
        except FileExistsError:
            try:
                if _is_abandoned(p, stale_secs):
                    p.unlink(missing_ok=True)
                    continue
            except FileNotFoundError:
                continue
            if _now() - start > wait_timeout:
                raise AcquisitionTimeout(f"Timed out waiting for mutex {p}")
            time.sleep(poll_interval)
    try:
        os.write(fd, str(os.getpid()).encode("ascii"))
        yield
    finally:
        try:
            os.close(fd)
        except OSError:
            pass
        p.unlink(missing_ok=True)


__all__ = [
    '_now',
    '_file_mutex',
]

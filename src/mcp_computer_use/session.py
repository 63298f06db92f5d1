"""
Browser session lifecycle.

One `BrowserSession` is built at startup and handed to every tool. It owns
the single backend handle and serializes all access to it with an asyncio
lock: concurrent callers wait their turn, they are never rejected.

    Closed --open--> Open --close / idle timeout--> Closed

Acquisition (locating and launching chromedriver or Chrome) happens on the
first `open`. A launched process is kept for later re-opens and torn down
by `shutdown()`.
"""

import asyncio
import contextlib
from typing import Any, Callable, Optional

from . import constants
from .actions import BrowserBackend, Observation, create_backend
from .browser.chrome_launcher import Acquisition
from .context import ActivityClock
from .errors import SessionNotOpen

import logging
logger = logging.getLogger(__name__)


def idle_check_interval(timeout: float) -> float:
    """Idle monitor tick: a quarter of the timeout, never below the minimum."""
    return max(timeout / 4.0, constants.IDLE_CHECK_MIN_SECS)


class BrowserSession:

    def __init__(
        self,
        config: dict,
        backend_factory: Callable[[dict], BrowserBackend] = create_backend,
        acquisition: Optional[Acquisition] = None,
    ):
        self.config = config
        self.clock = ActivityClock()
        self.acquisition = acquisition if acquisition is not None else Acquisition(config)
        self._backend_factory = backend_factory
        self._backend: Optional[BrowserBackend] = None
        self._lock = asyncio.Lock()
        self._monitor: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self._backend is not None

    @property
    def idle_timeout(self) -> float:
        return float(self.config.get("idle_timeout") or 0)

    @property
    def monitor_task(self) -> Optional[asyncio.Task]:
        return self._monitor

    # ------------------------------------------------------------------
    # Open / close
    # ------------------------------------------------------------------

    async def open(self) -> Observation:
        """
        Open the browser, or return the current state if it is already open.
        Starts the idle monitor after a successful open.
        """
        self.clock.touch()
        try:
            async with self._lock:
                if self._backend is not None:
                    return await self._backend.current_state()

                endpoint = await asyncio.to_thread(self.acquisition.ensure_endpoint)
                backend = self._backend_factory(self.config)
                try:
                    await backend.start(endpoint)
                except BaseException:
                    await backend.stop()
                    raise
                self._backend = backend
                logger.info("Browser opened (%s mode, endpoint %s)", backend.mode, endpoint)
                observation = await backend.current_state()
        finally:
            self.clock.operation_complete()

        self.start_idle_monitor()
        return observation

    async def _close_locked(self) -> bool:
        backend, self._backend = self._backend, None
        if backend is None:
            return False
        await backend.stop()
        logger.info("Browser closed")
        return True

    async def close(self) -> None:
        """Close the browser. A no-op when already closed."""
        async with self._lock:
            await self._close_locked()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def run(self, action: str, *args, **kwargs) -> Any:
        """
        Run backend method `action` under the session lock.

        Backend errors propagate to the caller and leave the session open.

        Raises:
            SessionNotOpen: if the browser has not been opened
        """
        self.clock.touch()
        try:
            async with self._lock:
                if self._backend is None:
                    raise SessionNotOpen("Browser is not open. Call open_web_browser first.")
                return await getattr(self._backend, action)(*args, **kwargs)
        finally:
            self.clock.operation_complete()

    # ------------------------------------------------------------------
    # Idle monitor
    # ------------------------------------------------------------------

    def start_idle_monitor(self) -> Optional[asyncio.Task]:
        """Start the monitor unless it is disabled (timeout 0) or already running."""
        timeout = self.idle_timeout
        if timeout <= 0:
            return None
        if self._monitor is not None and not self._monitor.done():
            return self._monitor
        self._monitor = asyncio.get_running_loop().create_task(self._idle_monitor(timeout))
        return self._monitor

    async def _idle_monitor(self, timeout: float) -> None:
        interval = idle_check_interval(timeout)
        logger.debug("Idle monitor started (timeout %.1fs, interval %.1fs)", timeout, interval)
        while True:
            await asyncio.sleep(interval)
            if self.clock.in_progress:
                continue
            if self._backend is None:
                logger.debug("Idle monitor stopping: browser already closed")
                return
            if self.clock.idle_seconds() < timeout:
                continue

            async with self._lock:
                # An action may have started while we waited for the lock.
                idle = self.clock.idle_seconds()
                if self.clock.in_progress or idle < timeout:
                    continue
                logger.info("Browser idle for %.1fs (timeout %.1fs), closing", idle, timeout)
                self.clock.in_progress = True
                try:
                    await self._close_locked()
                except Exception:
                    logger.exception("Idle close failed")
                finally:
                    self.clock.in_progress = False
            return

    # ------------------------------------------------------------------
    # Process lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Open the browser at startup if configured. Failures are fatal to startup."""
        if self.config.get("open_browser_on_start"):
            await self.open()

    async def shutdown(self) -> None:
        """
        Cancel the idle monitor, close the browser and stop any process we
        launched. Safe to call more than once.
        """
        task, self._monitor = self._monitor, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        try:
            async with self._lock:
                await self._close_locked()
        finally:
            await asyncio.to_thread(self.acquisition.stop)


__all__ = [
    "idle_check_interval",
    "BrowserSession",
]

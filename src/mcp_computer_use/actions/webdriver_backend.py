"""Action backend over WebDriver (Selenium, request/response)."""

import asyncio
from typing import Any, Callable, List, Optional, Tuple

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.keys import Keys

from .. import constants
from ..browser.driver import create_webdriver
from ..errors import InvalidInput, ProtocolFailure
from ..utils.retry import retry_op
from . import scripts
from .base import BrowserBackend, Observation, TabInfo, normalize_url
from .keyboard import dom_key, selenium_key, split_modifiers

import logging
logger = logging.getLogger(__name__)


def _describe(err: WebDriverException) -> str:
    return (getattr(err, "msg", None) or str(err) or err.__class__.__name__).strip()


class WebDriverBackend(BrowserBackend):
    """
    Selenium is blocking, so every driver call runs in a worker thread and
    Selenium errors surface as ProtocolFailure.
    """

    mode = "webdriver"

    def __init__(self, config: dict, driver_factory: Callable = create_webdriver):
        super().__init__(config)
        self.driver = None
        self._driver_factory = driver_factory

    async def _call(self, fn: Callable, *args, **kwargs) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except WebDriverException as e:
            raise ProtocolFailure(_describe(e)) from e

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, endpoint: str) -> None:
        self.driver = await self._call(self._driver_factory, endpoint, self.config)
        initial_url = self.config.get("initial_url")
        if initial_url:
            await self.goto(normalize_url(initial_url))
        if self.config.get("undetected"):
            try:
                await self.evaluate(scripts.STEALTH)
            except ProtocolFailure as e:
                logger.warning("Stealth script failed: %s", e)
        await self.wait_for_ready()

    async def stop(self) -> None:
        driver, self.driver = self.driver, None
        if driver is None:
            return
        try:
            await asyncio.to_thread(driver.quit)
        except WebDriverException as e:
            logger.warning("driver.quit() failed: %s", _describe(e))

    # ------------------------------------------------------------------
    # Protocol hooks
    # ------------------------------------------------------------------

    async def evaluate(self, script: str) -> Any:
        return await self._call(self.driver.execute_script, "return " + script)

    async def screenshot_png(self) -> bytes:
        try:
            return await asyncio.to_thread(
                retry_op,
                self.driver.get_screenshot_as_png,
                constants.SCREENSHOT_ATTEMPTS,
                constants.SCREENSHOT_BASE_DELAY_SECS,
            )
        except WebDriverException as e:
            raise ProtocolFailure(f"Screenshot failed: {_describe(e)}") from e

    async def current_url(self) -> str:
        return await self._call(lambda: self.driver.current_url)

    async def goto(self, url: str) -> None:
        await self._call(self.driver.get, url)

    async def _active_element(self):
        return await self._call(lambda: self.driver.switch_to.active_element)

    async def press_keys(self, keys: List[str]) -> None:
        if len(keys) == 1:
            element = await self._active_element()
            await self._call(element.send_keys, selenium_key(keys[0]))
            return

        modifiers, main = split_modifiers(keys)
        flags = dict(
            ctrl="Control" in modifiers,
            shift="Shift" in modifiers,
            alt="Alt" in modifiers,
            meta="Meta" in modifiers,
        )
        for key in main or modifiers[-1:]:
            await self.evaluate(scripts.key_event(dom_key(key), **flags))

    async def press_enter(self) -> None:
        element = await self._active_element()
        await self._call(element.send_keys, Keys.ENTER)

    async def history_step(self, delta: int) -> None:
        await self._call(self.driver.back if delta < 0 else self.driver.forward)

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------

    async def _handles(self) -> Tuple[List[str], str]:
        def _read():
            return list(self.driver.window_handles), self.driver.current_window_handle
        return await self._call(_read)

    async def new_tab(self, url: Optional[str] = None) -> Tuple[TabInfo, Observation]:
        target = normalize_url(url) if url else None

        def _open():
            self.driver.switch_to.new_window("tab")
            error = None
            if target:
                try:
                    self.driver.get(target)
                except WebDriverException as e:
                    error = _describe(e)
                    logger.warning("New tab could not load %s: %s", target, error)
            return self.driver.current_window_handle, error

        handle, error = await self._call(_open)
        observation = await self.settle_and_observe()
        title = await self._call(lambda: self.driver.title)
        tab = TabInfo(handle=handle, url=observation.url, title=title or "", active=True, navigation_error=error)
        return tab, observation

    async def close_tab(self, handle: Optional[str] = None) -> Observation:
        handles, current = await self._handles()
        target = handle or current
        if target not in handles:
            raise InvalidInput(f"Unknown tab handle: {target!r}")
        if len(handles) <= 1:
            raise InvalidInput("Cannot close the last remaining tab")

        remaining = [h for h in handles if h != target]
        next_handle = current if current in remaining else remaining[-1]

        def _close():
            if target != current:
                self.driver.switch_to.window(target)
            self.driver.close()
            self.driver.switch_to.window(next_handle)

        await self._call(_close)
        return await self.settle_and_observe()

    async def switch_tab(self, handle: Optional[str] = None, index: Optional[int] = None) -> Observation:
        if (handle is None) == (index is None):
            raise InvalidInput("Provide exactly one of handle or index")
        handles, _ = await self._handles()
        if index is not None:
            if not 0 <= index < len(handles):
                raise InvalidInput(f"Tab index {index} out of range (0-{len(handles) - 1})")
            handle = handles[index]
        elif handle not in handles:
            raise InvalidInput(f"Unknown tab handle: {handle!r}")

        await self._call(self.driver.switch_to.window, handle)
        return await self.settle_and_observe()

    async def list_tabs(self) -> Tuple[List[TabInfo], Observation]:
        def _list():
            current = self.driver.current_window_handle
            tabs = []
            try:
                for h in self.driver.window_handles:
                    self.driver.switch_to.window(h)
                    tabs.append(TabInfo(
                        handle=h,
                        url=self.driver.current_url,
                        title=self.driver.title or "",
                        active=(h == current),
                    ))
            finally:
                self.driver.switch_to.window(current)
            return tabs

        tabs = await self._call(_list)
        return tabs, await self.current_state()


__all__ = ["WebDriverBackend"]

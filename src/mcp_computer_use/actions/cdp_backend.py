"""Action backend over the Chrome DevTools Protocol (Playwright connect_over_cdp)."""

from typing import Any, Awaitable, Callable, List

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from ..errors import ProtocolFailure
from . import scripts
from .base import BrowserBackend, normalize_url
from .keyboard import playwright_key, split_modifiers

import logging
logger = logging.getLogger(__name__)


_BLANK_URLS = ("", "about:blank", "chrome://newtab/")


class CdpBackend(BrowserBackend):
    """
    Persistent CDP connection to a running Chrome.

    Mouse, scroll, drag and text actions use the shared page scripts; keys go
    through Playwright's native keyboard, and history navigation uses the
    Page domain's entry list. Tab operations are not available in this mode.
    """

    mode = "cdp"

    def __init__(self, config: dict, playwright_factory: Callable = async_playwright):
        super().__init__(config)
        self._playwright_factory = playwright_factory
        self._playwright = None
        self.browser = None
        self.context = None
        self.page = None
        self.cdp = None

    async def _guard(self, awaitable: Awaitable) -> Any:
        try:
            return await awaitable
        except PlaywrightError as e:
            raise ProtocolFailure(e.message or str(e)) from e

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, endpoint: str) -> None:
        logger.info("Connecting over CDP to %s", endpoint)
        try:
            self._playwright = await self._playwright_factory().start()
            self.browser = await self._playwright.chromium.connect_over_cdp(endpoint)
            contexts = self.browser.contexts
            self.context = contexts[0] if contexts else await self.browser.new_context()

            created = not self.context.pages
            self.page = await self.context.new_page() if created else self.context.pages[0]
            await self.page.set_viewport_size({"width": self.screen_width, "height": self.screen_height})

            if self.config.get("undetected"):
                await self.context.add_init_script(scripts.STEALTH)
                await self.page.evaluate(scripts.STEALTH)

            self.cdp = await self.context.new_cdp_session(self.page)
        except PlaywrightError as e:
            await self.stop()
            raise ProtocolFailure(f"CDP connection to {endpoint} failed: {e.message or e}") from e

        initial_url = self.config.get("initial_url")
        if initial_url and (created or self.page.url in _BLANK_URLS):
            await self.goto(normalize_url(initial_url))
        await self.wait_for_ready()

    async def stop(self) -> None:
        cdp, browser, pw = self.cdp, self.browser, self._playwright
        self.cdp = self.browser = self.context = self.page = self._playwright = None
        if cdp is not None:
            try:
                await cdp.detach()
            except PlaywrightError as e:
                logger.debug("CDP session detach failed: %s", e)
        if browser is not None:
            # Disconnects; a browser we did not launch keeps running.
            try:
                await browser.close()
            except PlaywrightError as e:
                logger.warning("Closing CDP connection failed: %s", e)
        if pw is not None:
            await pw.stop()

    # ------------------------------------------------------------------
    # Protocol hooks
    # ------------------------------------------------------------------

    async def evaluate(self, script: str) -> Any:
        return await self._guard(self.page.evaluate(script))

    async def screenshot_png(self) -> bytes:
        return await self._guard(self.page.screenshot(type="png"))

    async def current_url(self) -> str:
        return self.page.url

    async def goto(self, url: str) -> None:
        # Readiness is polled separately; only wait for the navigation to commit.
        await self._guard(self.page.goto(url, wait_until="commit"))

    async def press_keys(self, keys: List[str]) -> None:
        modifiers, main = split_modifiers(keys)
        if not main:
            modifiers, main = modifiers[:-1], modifiers[-1:]
        keyboard = self.page.keyboard
        held = []
        try:
            for key in modifiers:
                await self._guard(keyboard.down(playwright_key(key)))
                held.append(key)
            for key in main:
                await self._guard(keyboard.press(playwright_key(key)))
        finally:
            for key in reversed(held):
                await self._guard(keyboard.up(playwright_key(key)))

    async def press_enter(self) -> None:
        await self._guard(self.page.keyboard.press("Enter"))

    async def history_step(self, delta: int) -> None:
        history = await self._guard(self.cdp.send("Page.getNavigationHistory"))
        entries = history.get("entries") or []
        index = int(history.get("currentIndex", 0)) + delta
        if not 0 <= index < len(entries):
            logger.debug("No history entry at index %s", index)
            return
        await self._guard(self.cdp.send("Page.navigateToHistoryEntry", {"entryId": entries[index]["id"]}))


__all__ = ["CdpBackend"]

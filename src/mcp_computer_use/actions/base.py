"""
Protocol-independent action layer.

`BrowserBackend` implements every primitive action once, in terms of a few
protocol hooks (evaluate a script, take a screenshot, read the URL, go to a
URL, press keys, walk history). `WebDriverBackend` and `CdpBackend` fill in
those hooks for their protocol and nothing else; they share no mutable state.

Each coordinate action validates its input before touching the browser, runs
its effect, waits for document readiness (best effort, never an error), sleeps
the settle delay and returns a fresh Observation.
"""

import abc
import time
import base64
import asyncio
from dataclasses import dataclass, asdict
from typing import Any, List, Optional, Sequence, Tuple

from .. import constants
from ..errors import InvalidInput, ProtocolFailure, UnsupportedOperation
from . import scripts
from .keyboard import validate_keys

import logging
logger = logging.getLogger(__name__)


DIRECTIONS = ("up", "down", "left", "right")

_KNOWN_SCHEMES = ("http://", "https://", "file://", "about:", "data:", "chrome://")


@dataclass(frozen=True)
class Observation:
    """Screenshot (base64 PNG) and URL captured after an action settled."""

    screenshot: str
    url: str


@dataclass
class TabInfo:
    handle: str
    url: str
    title: str
    active: bool
    navigation_error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def validate_coordinates(x: int, y: int, width: int, height: int) -> None:
    """
    Reject negative points and points more than twice the viewport away.

    Raises:
        InvalidInput
    """
    if x < 0 or y < 0:
        raise InvalidInput(f"Coordinates cannot be negative: ({x}, {y})")
    if x > width * 2 or y > height * 2:
        raise InvalidInput(
            f"Coordinates ({x}, {y}) are too far outside screen bounds ({width}x{height})"
        )


def normalize_direction(direction: str) -> str:
    value = (direction or "").strip().lower()
    if value not in DIRECTIONS:
        raise InvalidInput(f"Invalid scroll direction: {direction!r}")
    return value


def scroll_delta(direction: str, magnitude: int) -> Tuple[int, int]:
    """(dx, dy) in pixels for a direction and a non-negative magnitude."""
    direction = normalize_direction(direction)
    if magnitude < 0:
        raise InvalidInput(f"Scroll magnitude cannot be negative: {magnitude}")
    return {
        "up": (0, -magnitude),
        "down": (0, magnitude),
        "left": (-magnitude, 0),
        "right": (magnitude, 0),
    }[direction]


def normalize_url(url: str) -> str:
    """Prefix https:// unless the URL already carries a known scheme."""
    url = (url or "").strip()
    if not url:
        raise InvalidInput("URL cannot be empty")
    if url.lower().startswith(_KNOWN_SCHEMES):
        return url
    return f"https://{url}"


class BrowserBackend(abc.ABC):
    """
    One live browser connection. Created closed; `start()` connects,
    `stop()` disconnects. Not safe for concurrent use: the session
    serializes every call.
    """

    mode = ""

    def __init__(self, config: dict):
        self.config = config
        self.screen_width = int(config.get("screen_width", 1280))
        self.screen_height = int(config.get("screen_height", 720))
        self.highlight = bool(config.get("highlight_mouse", False))

    # ------------------------------------------------------------------
    # Protocol hooks
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def start(self, endpoint: str) -> None:
        """Connect to `endpoint` and load the initial page."""

    @abc.abstractmethod
    async def stop(self) -> None:
        """Disconnect and release the protocol client."""

    @abc.abstractmethod
    async def evaluate(self, script: str) -> Any:
        """Evaluate a single JavaScript expression in the page."""

    @abc.abstractmethod
    async def screenshot_png(self) -> bytes:
        ...

    @abc.abstractmethod
    async def current_url(self) -> str:
        ...

    @abc.abstractmethod
    async def goto(self, url: str) -> None:
        ...

    @abc.abstractmethod
    async def press_keys(self, keys: List[str]) -> None:
        """Press a validated, canonical key combination."""

    @abc.abstractmethod
    async def press_enter(self) -> None:
        ...

    @abc.abstractmethod
    async def history_step(self, delta: int) -> None:
        """Move -1 (back) or +1 (forward) in session history."""

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    async def wait_for_ready(
        self,
        timeout: float = None,
        interval: float = None,
    ) -> bool:
        """
        Poll document.readyState until 'complete'. Returns False on timeout;
        slow pages are expected, so the caller proceeds either way.
        """
        timeout = constants.READY_POLL_TIMEOUT_SECS if timeout is None else timeout
        interval = constants.READY_POLL_INTERVAL_SECS if interval is None else interval
        deadline = time.monotonic() + timeout
        while True:
            try:
                if await self.evaluate(scripts.READY_STATE) == "complete":
                    return True
            except ProtocolFailure as e:  # page may be mid-navigation
                logger.debug("readyState poll failed: %s", e)
            if time.monotonic() >= deadline:
                logger.debug("Page not ready after %.1fs, continuing", timeout)
                return False
            await asyncio.sleep(interval)

    async def observe(self) -> Observation:
        png = await self.screenshot_png()
        url = await self.current_url()
        return Observation(screenshot=base64.b64encode(png).decode("ascii"), url=url)

    async def settle_and_observe(self) -> Observation:
        await self.wait_for_ready()
        await asyncio.sleep(constants.SETTLE_DELAY_SECS)
        return await self.observe()

    async def current_state(self) -> Observation:
        return await self.observe()

    # ------------------------------------------------------------------
    # Primitive actions
    # ------------------------------------------------------------------

    def _check(self, x: int, y: int) -> None:
        validate_coordinates(x, y, self.screen_width, self.screen_height)

    async def click_at(self, x: int, y: int) -> Observation:
        self._check(x, y)
        logger.debug("click_at (%s, %s)", x, y)
        await self.evaluate(scripts.click(x, y, self.highlight))
        return await self.settle_and_observe()

    async def hover_at(self, x: int, y: int) -> Observation:
        self._check(x, y)
        logger.debug("hover_at (%s, %s)", x, y)
        await self.evaluate(scripts.hover(x, y, self.highlight))
        return await self.settle_and_observe()

    async def type_text_at(
        self,
        x: int,
        y: int,
        text: str,
        press_enter: bool = False,
        clear_before_typing: bool = True,
    ) -> Observation:
        self._check(x, y)
        logger.debug("type_text_at (%s, %s): %d chars", x, y, len(text or ""))
        await self.evaluate(scripts.focus_at(x, y))
        await asyncio.sleep(constants.TYPING_DELAY_SECS)
        if clear_before_typing:
            await self.evaluate(scripts.clear_active())
        if text:
            await self.evaluate(scripts.insert_text(text))
        if press_enter:
            await self.press_enter()
        return await self.settle_and_observe()

    async def scroll_document(self, direction: str) -> Observation:
        direction = normalize_direction(direction)
        await self.evaluate(scripts.scroll_document(direction))
        return await self.settle_and_observe()

    async def scroll_at(self, x: int, y: int, direction: str, magnitude: int = 800) -> Observation:
        self._check(x, y)
        dx, dy = scroll_delta(direction, magnitude)
        await self.evaluate(scripts.scroll_at(x, y, dx, dy))
        return await self.settle_and_observe()

    async def wait_5_seconds(self) -> Observation:
        await asyncio.sleep(constants.WAIT_ACTION_SECS)
        return await self.settle_and_observe()

    async def go_back(self) -> Observation:
        await self.history_step(-1)
        return await self.settle_and_observe()

    async def go_forward(self) -> Observation:
        await self.history_step(1)
        return await self.settle_and_observe()

    async def navigate(self, url: str) -> Observation:
        url = normalize_url(url)
        logger.debug("navigate %s", url)
        await self.goto(url)
        return await self.settle_and_observe()

    async def search(self, search_engine_url: Optional[str] = None) -> Observation:
        return await self.navigate(search_engine_url or self.config.get("search_engine_url") or "https://www.google.com")

    async def key_combination(self, keys: Sequence[str]) -> Observation:
        canonical = validate_keys(keys)
        logger.debug("key_combination %s", canonical)
        await self.press_keys(canonical)
        return await self.settle_and_observe()

    async def drag_and_drop(self, x: int, y: int, destination_x: int, destination_y: int) -> Observation:
        self._check(x, y)
        self._check(destination_x, destination_y)
        await self.evaluate(scripts.drag_and_drop(x, y, destination_x, destination_y))
        return await self.settle_and_observe()

    # ------------------------------------------------------------------
    # Tabs (WebDriver only)
    # ------------------------------------------------------------------

    def _no_tabs(self):
        return UnsupportedOperation(f"Tab operations are not supported in {self.mode} mode")

    async def new_tab(self, url: Optional[str] = None) -> Tuple[TabInfo, Observation]:
        raise self._no_tabs()

    async def close_tab(self, handle: Optional[str] = None) -> Observation:
        raise self._no_tabs()

    async def switch_tab(self, handle: Optional[str] = None, index: Optional[int] = None) -> Observation:
        raise self._no_tabs()

    async def list_tabs(self) -> Tuple[List[TabInfo], Observation]:
        raise self._no_tabs()


__all__ = [
    "DIRECTIONS",
    "Observation",
    "TabInfo",
    "validate_coordinates",
    "normalize_direction",
    "scroll_delta",
    "normalize_url",
    "BrowserBackend",
]

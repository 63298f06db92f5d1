#region Overview
"""
MCP server exposing coordinate-based computer-use tools for a Chrome browser.

## Connection Modes

* `webdriver` (default): Selenium talks to a chromedriver server. With
  MCP_AUTO_START=true chromedriver is located (or downloaded when
  MCP_AUTO_DOWNLOAD_DRIVER=true) and launched on MCP_DRIVER_PORT; otherwise
  MCP_WEBDRIVER_URL must point at a running chromedriver.
* `cdp`: Playwright connects over the Chrome DevTools Protocol. When
  MCP_CDP_URL is set and MCP_AUTO_START is off, it attaches to that browser.
  Otherwise Chrome itself is launched with remote debugging on MCP_CDP_PORT.
  Tab tools are not available in this mode.

## Responses

Every tool answers with a JSON text block `{"url", "success", "message"}`
(plus `tab` / `tabs` for the tab tools) followed by a PNG screenshot. Failed
calls carry `success: false` and no screenshot; the browser stays open.

## Idle Handling

The browser closes itself after MCP_IDLE_TIMEOUT seconds without a tool call
(0 disables). The next open_web_browser starts it again.
"""
#endregion

import sys
import signal
import asyncio
from typing import List, Optional

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from mcp_computer_use import tools
from mcp_computer_use.config import get_env_config, is_tool_disabled
from mcp_computer_use.decorators import tool_envelope
from mcp_computer_use.session import BrowserSession

import logging
logger = logging.getLogger(__name__)


def build_server(config: dict, session: BrowserSession) -> FastMCP:
    """
    Create the FastMCP server with every tool bound to `session`.
    Tools named in MCP_DISABLED_TOOLS are not registered.
    """
    mcp = FastMCP(
        "mcp_computer_use",
        host=config.get("http_host", "127.0.0.1"),
        port=int(config.get("http_port", 8080)),
    )

    @tool_envelope("open web browser")
    async def open_web_browser():
        """
        Open the web browser, or return the current page if it is already open.

        Must be called before any other tool. Returns the current URL and a screenshot.
        """
        return await tools.open_web_browser(session)

    @tool_envelope("capture current state")
    async def current_state():
        """Return the current URL and a screenshot without changing the page."""
        return await tools.current_state(session)

    @tool_envelope("click")
    async def click_at(x: int, y: int):
        """
        Click at pixel coordinates on the page.

        Args:
            x: Horizontal position in pixels from the left edge of the viewport
            y: Vertical position in pixels from the top edge of the viewport
        """
        return await tools.click_at(session, x, y)

    @tool_envelope("hover")
    async def hover_at(x: int, y: int):
        """Move the mouse to pixel coordinates (mouseenter, mouseover, mousemove)."""
        return await tools.hover_at(session, x, y)

    @tool_envelope("type text")
    async def type_text_at(
        x: int,
        y: int,
        text: str,
        press_enter: bool = False,
        clear_before_typing: bool = True,
    ):
        """
        Click the element at (x, y) and type text into it.

        Args:
            x: Horizontal position in pixels
            y: Vertical position in pixels
            text: Text to type
            press_enter: Press Enter after typing
            clear_before_typing: Remove existing content first
        """
        return await tools.type_text_at(
            session, x, y, text,
            press_enter=press_enter,
            clear_before_typing=clear_before_typing,
        )

    @tool_envelope("scroll document")
    async def scroll_document(direction: str):
        """
        Scroll the whole page by most of a viewport.

        Args:
            direction: One of "up", "down", "left", "right"
        """
        return await tools.scroll_document(session, direction)

    @tool_envelope("scroll")
    async def scroll_at(x: int, y: int, direction: str, magnitude: int = 800):
        """
        Scroll the element under (x, y), or the page if there is none.

        Args:
            x: Horizontal position in pixels
            y: Vertical position in pixels
            direction: One of "up", "down", "left", "right"
            magnitude: Distance in pixels (default 800)
        """
        return await tools.scroll_at(session, x, y, direction, magnitude)

    @tool_envelope("wait")
    async def wait_5_seconds():
        """Wait five seconds, e.g. for a page to finish loading, then return the state."""
        return await tools.wait_5_seconds(session)

    @tool_envelope("go back")
    async def go_back():
        """Go back one entry in the browser history."""
        return await tools.go_back(session)

    @tool_envelope("go forward")
    async def go_forward():
        """Go forward one entry in the browser history."""
        return await tools.go_forward(session)

    @tool_envelope("open search engine")
    async def search():
        """Open the configured search engine home page."""
        return await tools.search(session)

    @tool_envelope("navigate")
    async def navigate(url: str):
        """
        Navigate to a URL. https:// is added when no scheme is given.

        Args:
            url: Address to load, e.g. "example.com" or "https://example.com/page"
        """
        return await tools.navigate(session, url)

    @tool_envelope("press keys")
    async def key_combination(keys: List[str]):
        """
        Press a key or key combination.

        Args:
            keys: Keys pressed together, e.g. ["Control", "a"] or ["Enter"].
                  Named keys: Enter, Tab, Escape, Backspace, Delete, Insert, Home, End,
                  PageUp, PageDown, ArrowLeft/Right/Up/Down, Space, F1-F12,
                  Control, Shift, Alt, Meta. Any other key must be a single character.
        """
        return await tools.key_combination(session, keys)

    @tool_envelope("drag and drop")
    async def drag_and_drop(x: int, y: int, destination_x: int, destination_y: int):
        """Drag from (x, y) and drop at (destination_x, destination_y)."""
        return await tools.drag_and_drop(session, x, y, destination_x, destination_y)

    @tool_envelope("open new tab")
    async def new_tab(url: Optional[str] = None):
        """
        Open a new tab and make it active. WebDriver mode only.

        Args:
            url: Optional address to load in the new tab
        """
        return await tools.new_tab(session, url)

    @tool_envelope("close tab")
    async def close_tab(handle: Optional[str] = None):
        """
        Close a tab (the active one if no handle is given). The last tab cannot be closed.
        WebDriver mode only.
        """
        return await tools.close_tab(session, handle)

    @tool_envelope("switch tab")
    async def switch_tab(handle: Optional[str] = None, index: Optional[int] = None):
        """
        Activate a tab by handle or by zero-based index (exactly one of them). WebDriver mode only.
        """
        return await tools.switch_tab(session, handle=handle, index=index)

    @tool_envelope("list tabs")
    async def list_tabs():
        """List open tabs with handle, url, title and which one is active. WebDriver mode only."""
        return await tools.list_tabs(session)

    for fn in (
        open_web_browser,
        click_at,
        hover_at,
        type_text_at,
        scroll_document,
        scroll_at,
        wait_5_seconds,
        go_back,
        go_forward,
        search,
        navigate,
        key_combination,
        drag_and_drop,
        current_state,
        new_tab,
        close_tab,
        switch_tab,
        list_tabs,
    ):
        if is_tool_disabled(config, fn.__name__):
            logger.info("Tool disabled: %s", fn.__name__)
            continue
        mcp.add_tool(fn, name=fn.__name__, structured_output=False)

    return mcp


async def serve(config: dict) -> None:
    """Run the server until the transport closes, then always shut the session down."""
    session = BrowserSession(config)
    mcp = build_server(config, session)

    loop = asyncio.get_running_loop()
    current = asyncio.current_task()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGTERM, current.cancel)

    try:
        await session.init()
        if config["transport"] == "http":
            logger.info("Serving streamable HTTP on %s:%s", config["http_host"], config["http_port"])
            await mcp.run_streamable_http_async()
        else:
            await mcp.run_stdio_async()
    finally:
        await session.shutdown()
        logger.info("Shutdown complete")


def main() -> None:
    load_dotenv()
    config = get_env_config()
    # stdout belongs to the stdio transport
    logging.basicConfig(
        level=getattr(logging, config["log_level"], logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(serve(config))
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Interrupted")


if __name__ == "__main__":
    main()

"""Tab management tool implementations (WebDriver mode only)."""

from typing import Optional

from ..decorators.envelope import ToolResult
from ..session import BrowserSession


async def new_tab(session: BrowserSession, url: Optional[str] = None) -> ToolResult:
    tab, observation = await session.run("new_tab", url)
    message = "Opened new tab"
    if tab.navigation_error:
        message += f" (navigation failed: {tab.navigation_error})"
    return ToolResult(observation, message, {"tab": tab.to_dict()})


async def close_tab(session: BrowserSession, handle: Optional[str] = None) -> ToolResult:
    observation = await session.run("close_tab", handle)
    return ToolResult(observation, "Closed tab")


async def switch_tab(
    session: BrowserSession,
    handle: Optional[str] = None,
    index: Optional[int] = None,
) -> ToolResult:
    observation = await session.run("switch_tab", handle=handle, index=index)
    return ToolResult(observation, "Switched tab")


async def list_tabs(session: BrowserSession) -> ToolResult:
    tabs, observation = await session.run("list_tabs")
    return ToolResult(observation, f"{len(tabs)} tab(s) open", {"tabs": [t.to_dict() for t in tabs]})

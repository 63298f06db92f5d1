"""Browser lifecycle tool implementations."""

from ..decorators.envelope import ToolResult
from ..session import BrowserSession


async def open_web_browser(session: BrowserSession) -> ToolResult:
    """Open the browser (idempotent) and return the current page."""
    already_open = session.is_open
    observation = await session.open()
    return ToolResult(observation, "Browser already open" if already_open else "Browser opened")


async def current_state(session: BrowserSession) -> ToolResult:
    observation = await session.run("current_state")
    return ToolResult(observation, "Current state captured")

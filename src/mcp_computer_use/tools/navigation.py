"""Navigation and scrolling tool implementations."""

from ..decorators.envelope import ToolResult
from ..session import BrowserSession


async def navigate(session: BrowserSession, url: str) -> ToolResult:
    observation = await session.run("navigate", url)
    return ToolResult(observation, f"Navigated to {observation.url}")


async def search(session: BrowserSession) -> ToolResult:
    observation = await session.run("search", session.config.get("search_engine_url"))
    return ToolResult(observation, "Opened search engine")


async def go_back(session: BrowserSession) -> ToolResult:
    observation = await session.run("go_back")
    return ToolResult(observation, "Navigated back")


async def go_forward(session: BrowserSession) -> ToolResult:
    observation = await session.run("go_forward")
    return ToolResult(observation, "Navigated forward")


async def scroll_document(session: BrowserSession, direction: str) -> ToolResult:
    observation = await session.run("scroll_document", direction)
    return ToolResult(observation, f"Scrolled document {direction.lower()}")


async def scroll_at(
    session: BrowserSession,
    x: int,
    y: int,
    direction: str,
    magnitude: int = 800,
) -> ToolResult:
    observation = await session.run("scroll_at", x, y, direction, magnitude)
    return ToolResult(observation, f"Scrolled {direction.lower()} by {magnitude}px at ({x}, {y})")


async def wait_5_seconds(session: BrowserSession) -> ToolResult:
    observation = await session.run("wait_5_seconds")
    return ToolResult(observation, "Waited 5 seconds")

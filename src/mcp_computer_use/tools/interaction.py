"""Mouse and keyboard tool implementations."""

from typing import List

from ..decorators.envelope import ToolResult
from ..session import BrowserSession


async def click_at(session: BrowserSession, x: int, y: int) -> ToolResult:
    observation = await session.run("click_at", x, y)
    return ToolResult(observation, f"Clicked at ({x}, {y})")


async def hover_at(session: BrowserSession, x: int, y: int) -> ToolResult:
    observation = await session.run("hover_at", x, y)
    return ToolResult(observation, f"Hovered at ({x}, {y})")


async def type_text_at(
    session: BrowserSession,
    x: int,
    y: int,
    text: str,
    press_enter: bool = False,
    clear_before_typing: bool = True,
) -> ToolResult:
    observation = await session.run(
        "type_text_at", x, y, text,
        press_enter=press_enter,
        clear_before_typing=clear_before_typing,
    )
    message = f"Typed {len(text)} characters at ({x}, {y})"
    if press_enter:
        message += " and pressed Enter"
    return ToolResult(observation, message)


async def key_combination(session: BrowserSession, keys: List[str]) -> ToolResult:
    observation = await session.run("key_combination", keys)
    return ToolResult(observation, f"Pressed {'+'.join(keys)}")


async def drag_and_drop(
    session: BrowserSession,
    x: int,
    y: int,
    destination_x: int,
    destination_y: int,
) -> ToolResult:
    observation = await session.run("drag_and_drop", x, y, destination_x, destination_y)
    return ToolResult(observation, f"Dragged from ({x}, {y}) to ({destination_x}, {destination_y})")

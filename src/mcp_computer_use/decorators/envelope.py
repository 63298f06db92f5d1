# mcp_computer_use/decorators/envelope.py

import json
import asyncio
import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Union

from mcp.types import ImageContent, TextContent

from ..actions import Observation
from ..errors import BrowserError

import logging
logger = logging.getLogger(__name__)


__all__ = [
    "ToolResult",
    "success_content",
    "failure_content",
    "tool_envelope",
]


Content = List[Union[TextContent, ImageContent]]


@dataclass
class ToolResult:
    """What a tool implementation hands back to the envelope."""

    observation: Observation
    message: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)


def success_content(result: ToolResult) -> Content:
    payload = {"url": result.observation.url}
    payload.update(result.extra)
    payload["success"] = True
    payload["message"] = result.message
    return [
        TextContent(type="text", text=json.dumps(payload, ensure_ascii=False)),
        ImageContent(type="image", data=result.observation.screenshot, mimeType="image/png"),
    ]


def failure_content(action: str, err: BaseException) -> Content:
    payload = {
        "url": "",
        "success": False,
        "message": f"Failed to {action}: {err}",
    }
    return [TextContent(type="text", text=json.dumps(payload, ensure_ascii=False))]


def tool_envelope(action: str):
    """
    Decorator for async MCP tool functions returning a ToolResult.
      - On success: a JSON text block {url, success, message, ...} plus the PNG screenshot.
      - On error: the same JSON shape with success=false and no image.
    Cancellation is never converted.
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Content:
            try:
                result = await func(*args, **kwargs)
            except asyncio.CancelledError:
                # Preserve cooperative cancellation semantics
                raise
            except BrowserError as e:
                logger.warning("%s failed: %s: %s", func.__name__, e.__class__.__name__, e)
                return failure_content(action, e)
            except Exception as e:
                logger.exception("%s failed", func.__name__)
                return failure_content(action, e)
            return success_content(result)
        return wrapper
    return decorator

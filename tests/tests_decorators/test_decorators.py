# tests/tests_decorators/test_decorators.py
import json
import asyncio
import logging

import pytest
from mcp.types import ImageContent, TextContent

from mcp_computer_use.actions import Observation
from mcp_computer_use.decorators import ToolResult, tool_envelope
from mcp_computer_use.errors import InvalidInput, ProtocolFailure, SessionNotOpen

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


OBS = Observation(screenshot="aGVsbG8=", url="https://example.com/")


def _payload(content):
    assert isinstance(content[0], TextContent)
    return json.loads(content[0].text)


def test_tool_envelope_success(event_loop):
    @tool_envelope("click")
    async def fn(x, y):
        return ToolResult(observation=OBS)

    out = event_loop.run_until_complete(fn(1, 2))
    assert _payload(out) == {"url": "https://example.com/", "success": True, "message": ""}
    assert isinstance(out[1], ImageContent)
    assert out[1].data == "aGVsbG8="
    assert out[1].mimeType == "image/png"


def test_tool_envelope_extra_fields(event_loop):
    @tool_envelope("list tabs")
    async def fn():
        return ToolResult(observation=OBS, message="2 tabs", extra={"tabs": [{"handle": "A"}]})

    payload = _payload(event_loop.run_until_complete(fn()))
    assert payload["tabs"] == [{"handle": "A"}]
    assert payload["message"] == "2 tabs"
    assert payload["success"] is True


@pytest.mark.parametrize("err", [
    InvalidInput("Coordinates cannot be negative: (-1, 0)"),
    SessionNotOpen("Browser is not open. Call open_web_browser first."),
    ProtocolFailure("no such window"),
])
def test_tool_envelope_known_errors(event_loop, err, caplog):
    @tool_envelope("click")
    async def fn():
        raise err

    with caplog.at_level(logging.WARNING):
        out = event_loop.run_until_complete(fn())
    assert len(out) == 1
    payload = _payload(out)
    assert payload["success"] is False
    assert payload["url"] == ""
    assert payload["message"] == f"Failed to click: {err}"
    assert any(r.levelno == logging.WARNING for r in caplog.records)


def test_tool_envelope_unexpected_error_logs_traceback(event_loop, caplog):
    @tool_envelope("navigate")
    async def fn():
        raise KeyError("boom")

    with caplog.at_level(logging.ERROR):
        out = event_loop.run_until_complete(fn())
    assert _payload(out)["message"].startswith("Failed to navigate:")
    assert any(r.exc_info for r in caplog.records)


def test_tool_envelope_cancelled_propagates(event_loop):
    @tool_envelope("wait")
    async def fn():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        event_loop.run_until_complete(fn())


def test_tool_envelope_keeps_signature():
    import inspect

    @tool_envelope("scroll")
    async def scroll_at(x: int, y: int, direction: str, magnitude: int = 800):
        """Scroll."""

    assert scroll_at.__name__ == "scroll_at"
    assert scroll_at.__doc__ == "Scroll."
    assert list(inspect.signature(scroll_at).parameters) == ["x", "y", "direction", "magnitude"]

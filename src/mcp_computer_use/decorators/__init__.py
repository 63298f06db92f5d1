"""Decorators for MCP tool functions."""

from .envelope import ToolResult, failure_content, success_content, tool_envelope

__all__ = [
    "ToolResult",
    "failure_content",
    "success_content",
    "tool_envelope",
]

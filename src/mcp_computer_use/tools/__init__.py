# mcp_computer_use/tools/__init__.py
"""
MCP tool implementations.

Each function takes the BrowserSession first, runs one action through it and
returns a ToolResult; the server wraps them with tool_envelope.
"""

from .browser_management import (
    open_web_browser,
    current_state,
)

from .navigation import (
    navigate,
    search,
    go_back,
    go_forward,
    scroll_document,
    scroll_at,
    wait_5_seconds,
)

from .interaction import (
    click_at,
    hover_at,
    type_text_at,
    key_combination,
    drag_and_drop,
)

from .tabs import (
    new_tab,
    close_tab,
    switch_tab,
    list_tabs,
)

__all__ = [
    # Browser management
    'open_web_browser',
    'current_state',
    # Navigation
    'navigate',
    'search',
    'go_back',
    'go_forward',
    'scroll_document',
    'scroll_at',
    'wait_5_seconds',
    # Interaction
    'click_at',
    'hover_at',
    'type_text_at',
    'key_combination',
    'drag_and_drop',
    # Tabs
    'new_tab',
    'close_tab',
    'switch_tab',
    'list_tabs',
]

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from mcp_computer_use import constants
from mcp_computer_use.actions import create_backend
from mcp_computer_use.actions.cdp_backend import CdpBackend
from mcp_computer_use.actions.webdriver_backend import WebDriverBackend
from mcp_computer_use.errors import ProtocolFailure, UnsupportedOperation

from _fakes import make_config

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture(autouse=True)
def fast_timing(monkeypatch):
    monkeypatch.setattr(constants, "SETTLE_DELAY_SECS", 0.0)


def _page(url="about:blank"):
    page = MagicMock()
    page.url = url
    page.evaluate = AsyncMock(return_value="complete")
    page.screenshot = AsyncMock(return_value=b"png")
    page.goto = AsyncMock()
    page.set_viewport_size = AsyncMock()
    page.keyboard.events = []

    def recorder(kind):
        async def record(key):
            page.keyboard.events.append((kind, key))
        return record

    page.keyboard.down = AsyncMock(side_effect=recorder("down"))
    page.keyboard.up = AsyncMock(side_effect=recorder("up"))
    page.keyboard.press = AsyncMock(side_effect=recorder("press"))
    return page


def _playwright(pages=None, contexts=True):
    page = _page()
    context = MagicMock()
    context.pages = list(pages) if pages is not None else []
    context.new_page = AsyncMock(return_value=page)
    context.add_init_script = AsyncMock()
    context.new_cdp_session = AsyncMock(return_value=MagicMock(send=AsyncMock(), detach=AsyncMock()))

    browser = MagicMock()
    browser.contexts = [context] if contexts else []
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    pw = MagicMock()
    pw.chromium.connect_over_cdp = AsyncMock(return_value=browser)
    pw.stop = AsyncMock()

    manager = MagicMock()
    manager.start = AsyncMock(return_value=pw)
    factory = MagicMock(return_value=manager)
    return factory, pw, browser, context, page


class TestCdpStart:

    def test_connects_and_opens_initial_page(self, event_loop):
        factory, pw, browser, context, page = _playwright()
        backend = CdpBackend(make_config(connection_mode="cdp"), playwright_factory=factory)
        event_loop.run_until_complete(backend.start("http://127.0.0.1:9222"))

        pw.chromium.connect_over_cdp.assert_awaited_once_with("http://127.0.0.1:9222")
        context.new_page.assert_awaited_once()
        page.set_viewport_size.assert_awaited_once_with({"width": 1280, "height": 720})
        page.goto.assert_awaited_once_with("https://www.google.com", wait_until="commit")
        assert backend.cdp is not None

    def test_existing_page_with_content_is_kept(self, event_loop):
        existing = _page(url="https://already.there/")
        factory, pw, browser, context, _ = _playwright(pages=[existing])
        backend = CdpBackend(make_config(connection_mode="cdp"), playwright_factory=factory)
        event_loop.run_until_complete(backend.start("http://127.0.0.1:9222"))

        assert backend.page is existing
        context.new_page.assert_not_awaited()
        existing.goto.assert_not_awaited()

    def test_stealth_when_undetected(self, event_loop):
        factory, pw, browser, context, page = _playwright()
        backend = CdpBackend(make_config(connection_mode="cdp", undetected=True), playwright_factory=factory)
        event_loop.run_until_complete(backend.start("http://127.0.0.1:9222"))
        context.add_init_script.assert_awaited_once()

    def test_connection_failure(self, event_loop):
        factory, pw, *_ = _playwright()
        pw.chromium.connect_over_cdp.side_effect = PlaywrightError("connect ECONNREFUSED")
        backend = CdpBackend(make_config(connection_mode="cdp"), playwright_factory=factory)
        with pytest.raises(ProtocolFailure, match="ECONNREFUSED"):
            event_loop.run_until_complete(backend.start("http://127.0.0.1:9222"))
        pw.stop.assert_awaited_once()
        assert backend.page is None

    def test_stop_disconnects(self, event_loop):
        factory, pw, browser, context, page = _playwright()
        backend = CdpBackend(make_config(connection_mode="cdp"), playwright_factory=factory)
        event_loop.run_until_complete(backend.start("http://127.0.0.1:9222"))
        cdp = backend.cdp
        event_loop.run_until_complete(backend.stop())
        event_loop.run_until_complete(backend.stop())
        cdp.detach.assert_awaited_once()
        browser.close.assert_awaited_once()
        pw.stop.assert_awaited_once()


class TestCdpActions:

    def setup_method(self):
        self.backend = CdpBackend(make_config(connection_mode="cdp"))
        self.page = _page(url="https://example.com/")
        self.backend.page = self.page
        self.backend.cdp = MagicMock(send=AsyncMock())

    def test_combination_holds_modifiers(self, event_loop):
        event_loop.run_until_complete(self.backend.key_combination(["ctrl", "shift", "t"]))
        assert self.page.keyboard.events == [
            ("down", "Control"),
            ("down", "Shift"),
            ("press", "t"),
            ("up", "Shift"),
            ("up", "Control"),
        ]

    def test_modifier_only_combination(self, event_loop):
        event_loop.run_until_complete(self.backend.key_combination(["Control", "Shift"]))
        assert self.page.keyboard.events == [
            ("down", "Control"),
            ("press", "Shift"),
            ("up", "Control"),
        ]

    def test_modifiers_released_when_press_fails(self, event_loop):
        self.page.keyboard.press.side_effect = PlaywrightError("Target closed")
        with pytest.raises(ProtocolFailure):
            event_loop.run_until_complete(self.backend.key_combination(["Control", "a"]))
        self.page.keyboard.up.assert_awaited_once_with("Control")

    def test_go_back_uses_history_entries(self, event_loop):
        self.backend.cdp.send.side_effect = [
            {"currentIndex": 1, "entries": [{"id": 10}, {"id": 11}]},
            {},
        ]
        event_loop.run_until_complete(self.backend.go_back())
        self.backend.cdp.send.assert_awaited_with("Page.navigateToHistoryEntry", {"entryId": 10})

    @pytest.mark.parametrize("action,index", [("go_back", 0), ("go_forward", 1)])
    def test_history_edges_are_noops(self, event_loop, action, index):
        self.backend.cdp.send.return_value = {"currentIndex": index, "entries": [{"id": 1}, {"id": 2}]}
        obs = event_loop.run_until_complete(getattr(self.backend, action)())
        assert self.backend.cdp.send.await_count == 1
        assert obs.url == "https://example.com/"

    def test_evaluate_errors_become_protocol_failures(self, event_loop):
        self.page.evaluate.side_effect = PlaywrightError("Execution context was destroyed")
        with pytest.raises(ProtocolFailure):
            event_loop.run_until_complete(self.backend.evaluate("1"))

    @pytest.mark.parametrize("action,args", [
        ("new_tab", ()),
        ("close_tab", ()),
        ("switch_tab", ()),
        ("list_tabs", ()),
    ])
    def test_tabs_unsupported(self, event_loop, action, args):
        with pytest.raises(UnsupportedOperation, match="cdp"):
            event_loop.run_until_complete(getattr(self.backend, action)(*args))


def test_create_backend_by_mode():
    assert isinstance(create_backend(make_config(connection_mode="cdp")), CdpBackend)
    assert isinstance(create_backend(make_config(connection_mode="webdriver")), WebDriverBackend)

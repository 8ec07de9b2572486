import asyncio
import types

import pytest

from r6tracker.common import playwright_utils
from r6tracker.common.playwright_utils import SharedBrowser, accept_consent, browser_page, scroll_rounds


class DummyBrowser:
    def __init__(self):
        self.closed = False
        self.connected = True
        self.contexts = []
    def is_connected(self):
        return self.connected and not self.closed
    async def new_context(self, **kwargs):
        ctx = DummyContext(kwargs)
        self.contexts.append(ctx)
        return ctx
    async def close(self):
        self.closed = True


class DummyContext:
    def __init__(self, kwargs):
        self.kwargs = kwargs
        self.closed = False
    async def new_page(self):
        return types.SimpleNamespace(context=self)
    async def close(self):
        self.closed = True


class DummyPlaywright:
    def __init__(self, fail=False):
        self.launched = []
        self.stopped = False
        self.fail = fail
        self.chromium = types.SimpleNamespace(launch=self._launch)
    async def _launch(self, **kwargs):
        if self.fail:
            raise RuntimeError("Executable doesn't exist")
        browser = DummyBrowser()
        browser.kwargs = kwargs
        self.launched.append(browser)
        return browser
    async def stop(self):
        self.stopped = True


@pytest.fixture
def fake_playwright(monkeypatch):
    instances = []

    def fake_async_playwright():
        class Starter:
            async def start(self_inner):
                pw = DummyPlaywright(fail=fake_async_playwright.fail)
                instances.append(pw)
                return pw
        return Starter()

    fake_async_playwright.fail = False
    monkeypatch.setattr(playwright_utils, "async_playwright", fake_async_playwright)
    fake_async_playwright.instances = instances
    return fake_async_playwright


@pytest.mark.asyncio
async def test_browser_is_launched_lazily_and_reused(fake_playwright):
    shared = SharedBrowser(idle_timeout_s=60)
    assert not shared.is_running
    async with shared.acquire() as b1:
        pass
    async with shared.acquire() as b2:
        pass
    assert b1 is b2
    assert shared.launch_count == 1
    assert b1.kwargs["headless"] is True
    await shared.close()
    assert b1.closed
    assert fake_playwright.instances[0].stopped


@pytest.mark.asyncio
async def test_idle_timeout_closes_then_relaunches(fake_playwright):
    shared = SharedBrowser(idle_timeout_s=0.01)
    async with shared.acquire() as first:
        pass
    await asyncio.sleep(0.05)
    assert not shared.is_running
    assert first.closed
    async with shared.acquire() as second:
        assert second is not first
    assert shared.launch_count == 2
    await shared.close()


@pytest.mark.asyncio
async def test_reacquire_cancels_pending_teardown(fake_playwright):
    shared = SharedBrowser(idle_timeout_s=0.03)
    async with shared.acquire():
        pass
    async with shared.acquire() as browser:
        await asyncio.sleep(0.06)
        assert shared.is_running
        assert not browser.closed
    assert shared.launch_count == 1
    await shared.close()


@pytest.mark.asyncio
async def test_concurrent_acquire_launches_once(fake_playwright):
    shared = SharedBrowser(idle_timeout_s=60)

    async def use():
        async with shared.acquire() as b:
            await asyncio.sleep(0.01)
            return b

    browsers = await asyncio.gather(use(), use(), use())
    assert len({id(b) for b in browsers}) == 1
    assert shared.launch_count == 1
    await shared.close()


@pytest.mark.asyncio
async def test_disconnected_browser_is_replaced(fake_playwright):
    shared = SharedBrowser(idle_timeout_s=60, executable_path="/opt/chrome")
    async with shared.acquire() as first:
        assert first.kwargs["executable_path"] == "/opt/chrome"
    first.connected = False
    async with shared.acquire() as second:
        assert second is not first
    assert shared.launch_count == 2
    await shared.close()


@pytest.mark.asyncio
async def test_launch_failure_propagates(fake_playwright):
    fake_playwright.fail = True
    shared = SharedBrowser()
    with pytest.raises(RuntimeError):
        async with shared.acquire():
            pass
    assert not shared.is_running
    assert fake_playwright.instances[0].stopped


@pytest.mark.asyncio
async def test_browser_page_closes_context_on_error():
    browser = DummyBrowser()
    with pytest.raises(ValueError):
        async with browser_page(browser, user_agent="UA", extra_headers={"X": "1"}) as page:
            assert page.context.kwargs["user_agent"] == "UA"
            assert page.context.kwargs["extra_http_headers"] == {"X": "1"}
            raise ValueError("boom")
    assert browser.contexts[0].closed


class DummyElement:
    def __init__(self):
        self.clicked = False
    async def click(self):
        self.clicked = True


class DummyFrame:
    def __init__(self, matches=None):
        self.matches = matches or {}
    async def query_selector(self, sel):
        return self.matches.get(sel)


class DummyConsentPage(DummyFrame):
    def __init__(self, frames=(), matches=None):
        super().__init__(matches)
        self.frames = list(frames)
        self.scrolls = 0
        self.waits = []
    async def wait_for_timeout(self, ms):
        self.waits.append(ms)
    async def evaluate(self, script):  # noqa: ARG002
        self.scrolls += 1


@pytest.mark.asyncio
async def test_accept_consent_searches_frames():
    button = DummyElement()
    page = DummyConsentPage(frames=[DummyFrame({"#onetrust-accept-btn-handler": button})])
    assert await accept_consent(page) is True
    assert button.clicked
    assert await accept_consent(DummyConsentPage()) is False


@pytest.mark.asyncio
async def test_scroll_rounds():
    page = DummyConsentPage()
    await scroll_rounds(page, rounds=3, pause_ms=10)
    assert page.scrolls == 3
    assert page.waits == [10, 10, 10]

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from playwright.async_api import Browser, Page, async_playwright

# Shared async Playwright helpers used by the session manager

logger = logging.getLogger("r6tracker.browser")

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--lang=en-US,en;q=0.9",
    "--window-size=1366,900",
]
DEFAULT_VIEWPORT = {"width": 1366, "height": 900}

CONSENT_SELECTORS = [
    "button[aria-label='Accept all']",
    "#onetrust-accept-btn-handler",
    "button:has-text('Accept All')",
    "button:has-text('Accept')",
    "button:has-text('I agree')",
    "[id*='consent'] button",
    ".cc-allow",
    ".osano-cm-accept",
]


class SharedBrowser:
    """Lazily launched Chromium instance shared by all session refreshes.

    ``acquire()`` hands out the running browser (launching it on first use);
    when the last holder releases it an idle timer starts, and the browser is
    closed once the timer elapses without a new acquisition. Launch, release
    and teardown all run under one lock, so an acquisition that races an idle
    teardown waits for it and then relaunches.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        executable_path: Optional[str] = None,
        idle_timeout_s: float = 300.0,
    ):
        self.headless = headless
        self.executable_path = executable_path
        self.idle_timeout_s = idle_timeout_s
        self._lock = asyncio.Lock()
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._users = 0
        self._idle_task: Optional[asyncio.Task] = None
        self.launch_count = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[Browser]:
        async with self._lock:
            self._cancel_idle_timer()
            if self._browser is None or not self._is_connected():
                await self._teardown()
                await self._launch()
            self._users += 1
            browser = self._browser
        try:
            yield browser
        finally:
            async with self._lock:
                self._users -= 1
                if self._users == 0:
                    self._start_idle_timer()

    async def close(self) -> None:
        async with self._lock:
            self._cancel_idle_timer()
            await self._teardown()

    def _is_connected(self) -> bool:
        try:
            return bool(self._browser.is_connected())
        except Exception:
            return False

    async def _launch(self) -> None:
        playwright = await async_playwright().start()
        launch_kwargs: dict[str, Any] = {"headless": self.headless, "args": LAUNCH_ARGS}
        if self.executable_path:
            launch_kwargs["executable_path"] = self.executable_path
        try:
            self._browser = await playwright.chromium.launch(**launch_kwargs)
        except Exception:
            with contextlib.suppress(Exception):
                await playwright.stop()
            raise
        self._playwright = playwright
        self.launch_count += 1
        logger.info("Launched shared browser (headless=%s)", self.headless)

    async def _teardown(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        if browser is not None:
            with contextlib.suppress(Exception):
                await browser.close()
            logger.info("Closed shared browser")
        if playwright is not None:
            with contextlib.suppress(Exception):
                await playwright.stop()

    def _start_idle_timer(self) -> None:
        self._cancel_idle_timer()
        self._idle_task = asyncio.create_task(self._close_when_idle())

    def _cancel_idle_timer(self) -> None:
        task, self._idle_task = self._idle_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _close_when_idle(self) -> None:
        await asyncio.sleep(self.idle_timeout_s)
        async with self._lock:
            if self._users == 0:
                self._idle_task = None
                await self._teardown()


@asynccontextmanager
async def browser_page(
    browser: Browser,
    *,
    user_agent: str | None = None,
    locale: str | None = "en-US",
    viewport: dict[str, int] | None = None,
    extra_headers: dict[str, str] | None = None,
) -> AsyncIterator[Page]:
    """Fresh context + page on a running browser, closed on exit."""
    context_args: dict[str, Any] = {"viewport": viewport or DEFAULT_VIEWPORT}
    if user_agent:
        context_args["user_agent"] = user_agent
    if locale:
        context_args["locale"] = locale
    if extra_headers:
        context_args["extra_http_headers"] = extra_headers
    context = await browser.new_context(**context_args)
    page = await context.new_page()
    try:
        yield page
    finally:
        with contextlib.suppress(Exception):
            await context.close()


async def accept_consent(page: Page) -> bool:
    """Attempt to accept cookie/consent banners on the given page or its frames.
    Returns True if any consent element was clicked.
    """
    frames = [page] + list(page.frames)
    for frame in frames:
        for sel in CONSENT_SELECTORS:
            try:
                el = await frame.query_selector(sel)
                if el:
                    await el.click()
                    await page.wait_for_timeout(500)
                    return True
            except Exception:
                continue
    return False


async def scroll_rounds(page: Page, rounds: int = 3, pause_ms: int = 800) -> None:
    """Scroll a few viewport heights to trigger lazy-loaded sections."""
    for _ in range(max(0, rounds)):
        try:
            await page.evaluate("() => window.scrollBy(0, window.innerHeight)")
            await page.wait_for_timeout(pause_ms)
        except Exception:
            break

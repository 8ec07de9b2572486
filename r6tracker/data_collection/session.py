"""
Session credential management for the tracker site.

A single cached ``SessionToken`` (cookies + the user agent they were issued
to) is shared by every fetch. When it is missing, expired or rejected, a
headless browser loads the site, waits for the anti-bot challenge to clear
and harvests the resulting cookies.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from r6tracker.common.http import DEFAULT_UAS, RetryPolicy, looks_like_challenge
from r6tracker.common.playwright_utils import SharedBrowser, accept_consent, browser_page, scroll_rounds
from r6tracker.core.config import Settings
from r6tracker.domain.contracts import SessionToken
from r6tracker.domain.errors import SessionUnavailable
from r6tracker.monitoring.prometheus_metrics import TrackerMetrics


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """Single owner of the cached session token.

    Refreshes are single-flight: while one refresh is running, every other
    caller (forced or not) awaits the same result instead of launching its
    own browser work.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        browser: Optional[SharedBrowser] = None,
        retry_policy: Optional[RetryPolicy] = None,
        metrics: Optional[TrackerMetrics] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or Settings()
        self.browser = browser or SharedBrowser(
            headless=self.settings.browser_headless,
            executable_path=self.settings.browser_executable_path,
            idle_timeout_s=self.settings.browser_idle_timeout_seconds,
        )
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)
        self.metrics = metrics or TrackerMetrics()
        self.ttl = timedelta(seconds=self.settings.session_ttl_seconds)
        self.logger = logging.getLogger("r6tracker.session")
        self._clock = clock or _utcnow
        self._token: Optional[SessionToken] = None
        self._inflight: Optional[asyncio.Future] = None
        self._unavailable_until: Optional[datetime] = None
        self.refresh_count = 0

    @property
    def token(self) -> Optional[SessionToken]:
        return self._token

    async def get_token(self, force_refresh: bool = False) -> SessionToken:
        """Cached token if still valid, otherwise the result of a (joined) refresh.

        Raises SessionUnavailable when no credential can be produced; callers
        are expected to continue without one.
        """
        now = self._clock()
        token = self._token
        if not force_refresh and token is not None and token.is_valid(now):
            return token
        if self._inflight is not None and not self._inflight.done():
            return await asyncio.shield(self._inflight)
        if not force_refresh and self._unavailable_until is not None and now < self._unavailable_until:
            raise SessionUnavailable("session refresh cooling down after a failed attempt")
        self._inflight = asyncio.ensure_future(self._refresh())
        return await asyncio.shield(self._inflight)

    def absorb(self, cookies: Dict[str, str]) -> None:
        """Fold credentials returned by a successful response into the cached token."""
        if not cookies:
            return
        now = self._clock()
        if self._token is None:
            self._token = SessionToken(cookies=dict(cookies), acquired_at=now, ttl=self.ttl)
        else:
            self._token = self._token.merged(cookies, now)

    def invalidate(self) -> None:
        """Drop the cached token (e.g. after the site rejected it)."""
        if self._token is not None:
            self.logger.debug("Session token invalidated")
        self._token = None

    async def close(self) -> None:
        await self.browser.close()

    async def _refresh(self) -> SessionToken:
        self.refresh_count += 1
        self.logger.info("Refreshing tracker session via headless browser")
        try:
            token = await self._acquire_via_browser()
        except SessionUnavailable:
            self._mark_unavailable()
            raise
        except Exception as exc:
            self._mark_unavailable()
            raise SessionUnavailable(f"browser session refresh failed: {exc}") from exc
        self._token = token
        self._unavailable_until = None
        self.metrics.record_session_refresh("success")
        self.logger.info("Session refreshed (%d cookies)", len(token.cookies))
        return token

    def _mark_unavailable(self) -> None:
        self.metrics.record_session_refresh("failed")
        cooldown = timedelta(seconds=self.settings.session_retry_cooldown_seconds)
        self._unavailable_until = self._clock() + cooldown

    async def _acquire_via_browser(self) -> SessionToken:
        url = self.settings.session_warmup_url
        async with self.browser.acquire() as browser:
            async with browser_page(
                browser,
                user_agent=DEFAULT_UAS[0],
                extra_headers={"Accept-Language": "en-US,en;q=0.9"},
            ) as page:
                await self._load(page, url)
                with contextlib.suppress(Exception):
                    await accept_consent(page)
                await self._wait_for_challenge(page)
                await scroll_rounds(page, rounds=2, pause_ms=300)
                raw_cookies = await page.context.cookies()
                try:
                    user_agent = await page.evaluate("() => navigator.userAgent")
                except Exception:
                    user_agent = DEFAULT_UAS[0]
        cookies = {c["name"]: c["value"] for c in raw_cookies if c.get("name")}
        return SessionToken(cookies=cookies, acquired_at=self._clock(), ttl=self.ttl, user_agent=user_agent)

    async def _load(self, page, url: str) -> None:
        timeout_ms = int(self.settings.fetch_timeout_seconds * 1000)
        last_err: Exception | None = None
        for attempt in range(1, self.retry_policy.attempts + 1):
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                return
            except Exception as e:
                last_err = e
                self.logger.warning(f"Session page load attempt {attempt} failed for {url}: {e}")
                if attempt < self.retry_policy.attempts:
                    await self.retry_policy.backoff(attempt)
        raise SessionUnavailable(f"could not load {url}: {last_err}")

    async def _wait_for_challenge(self, page) -> None:
        budget = self.settings.challenge_wait_budget
        for poll in range(1, budget + 1):
            try:
                title = await page.title()
                html = await page.content()
            except Exception as e:
                self.logger.debug(f"Challenge poll {poll} could not read page: {e}")
                title, html = "", ""
            if html and not looks_like_challenge(html, title):
                return
            await page.wait_for_timeout(self.settings.challenge_poll_interval_ms)
        raise SessionUnavailable(f"challenge did not clear after {budget} polls")

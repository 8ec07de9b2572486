import asyncio
import types
from datetime import datetime, timedelta, timezone

import aiohttp
import pytest

from r6tracker.common.http import ResponseClass
from r6tracker.data_collection.fetcher import ResilientFetcher
from r6tracker.domain.contracts import SessionToken
from r6tracker.domain.errors import FetchBlocked, NetworkError, SessionUnavailable
from r6tracker.monitoring.prometheus_metrics import TrackerMetrics

A = "https://r6.tracker.network/r6siege/profile/ubi/p/overview"
B = "https://tracker.gg/r6siege/profile/ubi/p/overview"
OK_HTML = "<html><header><div class='text-18'>Oct 18</div></header></html>"


class DummyResponse:
    def __init__(self, status=200, body=OK_HTML, cookies=None):
        self.status = status
        self._body = body
        self.cookies = {k: types.SimpleNamespace(value=v) for k, v in (cookies or {}).items()}
    async def text(self):
        return self._body
    async def __aenter__(self):
        return self
    async def __aexit__(self, exc_type, exc, tb):  # noqa: ARG002
        return False


class RaisingRequest:
    def __init__(self, exc):
        self.exc = exc
    async def __aenter__(self):
        raise self.exc
    async def __aexit__(self, exc_type, exc, tb):  # noqa: ARG002
        return False


class DummyHttpSession:
    """Replays a scripted list of responses/exceptions per URL."""

    def __init__(self, script):
        self.script = {url: list(items) for url, items in script.items()}
        self.calls = []
        self.closed = False
    def get(self, url, headers=None, cookies=None, timeout=None):  # noqa: ARG002
        self.calls.append(types.SimpleNamespace(url=url, headers=headers, cookies=cookies))
        items = self.script.get(url) or [DummyResponse(404, "not found")]
        item = items.pop(0) if len(items) > 1 else items[0]
        if isinstance(item, BaseException):
            return RaisingRequest(item)
        return item
    async def close(self):
        self.closed = True


class DummySessionManager:
    def __init__(self, *, unavailable=False, refresh_fails=False):
        self.unavailable = unavailable
        self.refresh_fails = refresh_fails
        self.forced = 0
        self.absorbed = []
        self.invalidated = 0
        self.token = SessionToken(
            cookies={"cf_clearance": "abc"},
            acquired_at=datetime(2026, 10, 18, tzinfo=timezone.utc),
            ttl=timedelta(minutes=30),
            user_agent="DummyUA/1.0",
        )
    async def get_token(self, force_refresh=False):
        await asyncio.sleep(0)
        if force_refresh:
            self.forced += 1
            if self.refresh_fails:
                raise SessionUnavailable("challenge did not clear")
            return self.token
        if self.unavailable:
            raise SessionUnavailable("browser missing")
        return self.token
    def absorb(self, cookies):
        self.absorbed.append(cookies)
    def invalidate(self):
        self.invalidated += 1


def make_fetcher(settings, script, session_manager=None, metrics=None):
    http = DummyHttpSession(script)
    fetcher = ResilientFetcher(
        settings,
        session_manager=session_manager or DummySessionManager(),
        http_session=http,
        metrics=metrics or TrackerMetrics(),
    )
    return fetcher, http


@pytest.mark.asyncio
async def test_success_returns_document_and_writes_back_cookies(fast_settings):
    sm = DummySessionManager()
    fetcher, http = make_fetcher(fast_settings, {A: [DummyResponse(200, OK_HTML, {"sid": "42"})]}, sm)
    doc = await fetcher.fetch([A, B])
    assert doc.url == A
    assert doc.html == OK_HTML
    assert sm.absorbed == [{"sid": "42"}]
    call = http.calls[0]
    assert call.cookies == {"cf_clearance": "abc"}
    assert call.headers["User-Agent"] == "DummyUA/1.0"


@pytest.mark.asyncio
async def test_network_error_is_retried_on_same_candidate(fast_settings):
    fetcher, http = make_fetcher(
        fast_settings, {A: [aiohttp.ClientConnectionError("reset"), DummyResponse()]}
    )
    doc = await fetcher.fetch([A, B])
    assert doc.url == A
    assert [c.url for c in http.calls] == [A, A]


@pytest.mark.asyncio
async def test_timeout_counts_as_attempt(fast_settings):
    fetcher, http = make_fetcher(fast_settings, {A: [asyncio.TimeoutError()], B: [DummyResponse()]})
    doc = await fetcher.fetch([A, B])
    assert doc.url == B
    assert [c.url for c in http.calls] == [A, A, B]


@pytest.mark.asyncio
async def test_http_error_moves_to_next_candidate(fast_settings):
    fetcher, http = make_fetcher(fast_settings, {A: [DummyResponse(404, "gone")], B: [DummyResponse()]})
    doc = await fetcher.fetch([A, B])
    assert doc.url == B
    assert [c.url for c in http.calls] == [A, A, B]


@pytest.mark.asyncio
async def test_block_forces_one_refresh_and_immediate_retry(fast_settings):
    sm = DummySessionManager()
    fetcher, http = make_fetcher(fast_settings, {A: [DummyResponse(403, "denied"), DummyResponse()]}, sm)
    doc = await fetcher.fetch([A])
    assert doc.url == A
    assert sm.forced == 1
    assert sm.invalidated == 1
    assert len(http.calls) == 2


@pytest.mark.asyncio
async def test_challenge_page_is_treated_as_block(fast_settings, challenge_html):
    sm = DummySessionManager()
    fetcher, _ = make_fetcher(fast_settings, {A: [DummyResponse(200, challenge_html), DummyResponse()]}, sm)
    await fetcher.fetch([A])
    assert sm.forced == 1


@pytest.mark.asyncio
async def test_persistent_block_exhausts_everything(fast_settings):
    metrics = TrackerMetrics()
    sm = DummySessionManager()
    fetcher, http = make_fetcher(
        fast_settings, {A: [DummyResponse(429, "")], B: [DummyResponse(503, "")]}, sm, metrics
    )
    with pytest.raises(FetchBlocked) as exc_info:
        await fetcher.fetch([A, B])
    err = exc_info.value
    assert err.classification == ResponseClass.BLOCKED
    # budget of 2 per candidate plus one free retry after the forced refresh
    assert len(http.calls) == 5
    assert err.attempts == 5
    assert sm.forced == 1
    assert "blocked" in err.reason
    assert metrics.value("r6tracker_fetch_attempts_total", outcome="blocked") == 5


@pytest.mark.asyncio
async def test_network_exhaustion_chains_last_network_error(fast_settings):
    fetcher, _ = make_fetcher(
        fast_settings, {A: [aiohttp.ClientConnectionError("down")], B: [asyncio.TimeoutError()]}
    )
    with pytest.raises(FetchBlocked) as exc_info:
        await fetcher.fetch([A, B])
    assert exc_info.value.classification == ResponseClass.NETWORK
    assert isinstance(exc_info.value.__cause__, NetworkError)


@pytest.mark.asyncio
async def test_fetch_proceeds_without_credential_when_session_unavailable(fast_settings):
    sm = DummySessionManager(unavailable=True)
    fetcher, http = make_fetcher(fast_settings, {A: [DummyResponse()]}, sm)
    doc = await fetcher.fetch([A])
    assert doc.url == A
    assert http.calls[0].cookies is None
    assert http.calls[0].headers["User-Agent"]


@pytest.mark.asyncio
async def test_failed_forced_refresh_falls_back_to_backoff(fast_settings):
    sm = DummySessionManager(refresh_fails=True)
    fetcher, http = make_fetcher(fast_settings, {A: [DummyResponse(403, ""), DummyResponse()]}, sm)
    doc = await fetcher.fetch([A])
    assert doc.url == A
    assert sm.forced == 1
    assert len(http.calls) == 2


@pytest.mark.asyncio
async def test_no_candidates(fast_settings):
    fetcher, _ = make_fetcher(fast_settings, {})
    with pytest.raises(FetchBlocked):
        await fetcher.fetch([])


@pytest.mark.asyncio
async def test_close_leaves_injected_session_open(fast_settings):
    fetcher, http = make_fetcher(fast_settings, {})
    await fetcher.close()
    assert not http.closed

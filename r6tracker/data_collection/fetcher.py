"""
Resilient page retrieval across mirror candidates.

Each candidate gets a bounded number of attempts with exponential backoff
and jitter. Blocking answers (403/429/503 or challenge markup) trigger one
forced session refresh per ``fetch`` call followed by an immediate retry of
the same candidate.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Sequence, Tuple

import aiohttp

from r6tracker.common.http import DEFAULT_UAS, ResponseClass, RetryPolicy, build_headers, classify_response
from r6tracker.core.config import Settings
from r6tracker.data_collection.session import SessionManager
from r6tracker.domain.contracts import Document, SessionToken
from r6tracker.domain.errors import FetchBlocked, NetworkError, SessionUnavailable
from r6tracker.monitoring.prometheus_metrics import TrackerMetrics

Outcome = Tuple[str, Optional[Document], Optional[Exception]]


class ResilientFetcher:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        session_manager: SessionManager,
        http_session: Optional[aiohttp.ClientSession] = None,
        retry_policy: Optional[RetryPolicy] = None,
        metrics: Optional[TrackerMetrics] = None,
    ):
        self.settings = settings or Settings()
        self.session_manager = session_manager
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)
        self.metrics = metrics or TrackerMetrics()
        self.logger = logging.getLogger("r6tracker.fetcher")
        self._http = http_session
        self._owns_http = http_session is None

    async def close(self) -> None:
        if self._owns_http and self._http is not None and not self._http.closed:
            await self._http.close()
        self._http = None

    def _client(self) -> aiohttp.ClientSession:
        if self._http is None:
            self._http = aiohttp.ClientSession()
            self._owns_http = True
        return self._http

    async def fetch(self, candidates: Sequence[str]) -> Document:
        """Return the first successfully retrieved document among candidates.

        Raises FetchBlocked (carrying the last response classification) once
        every candidate has used up its attempt budget.
        """
        if not candidates:
            raise FetchBlocked("no candidate targets", classification=ResponseClass.HTTP_ERROR)

        refreshed = False
        total_attempts = 0
        last_class = ResponseClass.NETWORK
        last_network: Optional[NetworkError] = None

        for url in candidates:
            attempt = 0
            while attempt < self.retry_policy.attempts:
                attempt += 1
                total_attempts += 1
                outcome, doc, err = await self._attempt(url)

                if outcome == ResponseClass.BLOCKED and not refreshed:
                    refreshed = True
                    if await self._force_refresh():
                        total_attempts += 1
                        outcome, doc, err = await self._attempt(url)

                if outcome == ResponseClass.SUCCESS and doc is not None:
                    return doc

                last_class = outcome
                if isinstance(err, NetworkError):
                    last_network = err
                self.logger.warning(
                    f"Fetch attempt {attempt}/{self.retry_policy.attempts} for {url} -> {outcome}"
                    + (f": {err}" if err else "")
                )
                if attempt < self.retry_policy.attempts:
                    await self.retry_policy.backoff(attempt)
            self.logger.info(f"Candidate exhausted: {url}")

        raise FetchBlocked(
            f"all {len(candidates)} candidates exhausted (last: {last_class})",
            classification=last_class,
            attempts=total_attempts,
            url=candidates[-1],
        ) from last_network

    async def _attempt(self, url: str) -> Outcome:
        token = await self._current_token()
        user_agent = (token.user_agent if token and token.user_agent else None) or DEFAULT_UAS[0]
        headers = build_headers(user_agent, header_randomize=True)
        cookies = dict(token.cookies) if token else None
        timeout = aiohttp.ClientTimeout(total=self.settings.fetch_timeout_seconds)
        try:
            async with self._client().get(url, headers=headers, cookies=cookies, timeout=timeout) as resp:
                body = await resp.text()
                status = resp.status
                returned = _response_cookies(resp)
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            self.metrics.record_fetch(ResponseClass.NETWORK)
            return ResponseClass.NETWORK, None, NetworkError(f"{type(e).__name__} fetching {url}: {e}")

        outcome = classify_response(status, body)
        self.metrics.record_fetch(outcome)
        if outcome == ResponseClass.SUCCESS:
            self.session_manager.absorb(returned)
            return outcome, Document(url=url, html=body, status=status), None
        return outcome, None, None

    async def _current_token(self) -> Optional[SessionToken]:
        try:
            return await self.session_manager.get_token()
        except SessionUnavailable as e:
            self.logger.debug(f"Proceeding without session credential: {e}")
            return None

    async def _force_refresh(self) -> bool:
        self.session_manager.invalidate()
        try:
            await self.session_manager.get_token(force_refresh=True)
            return True
        except SessionUnavailable as e:
            self.logger.warning(f"Forced session refresh failed: {e}")
            return False


def _response_cookies(resp) -> Dict[str, str]:
    jar = getattr(resp, "cookies", None) or {}
    return {name: getattr(morsel, "value", morsel) for name, morsel in jar.items()}

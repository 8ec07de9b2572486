from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Optional

# Shared defaults
DEFAULT_UAS: list[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
]
ACCEPT_LANGUAGES = [
    "en-US,en;q=0.9",
    "en-US,en;q=0.9,pt-BR;q=0.8",
]
ACCEPT_HEADERS = [
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
]

# Status codes the source uses when it throttles or walls off a client
BLOCKING_STATUSES: frozenset[int] = frozenset({403, 429, 503})

# Fragments of interstitial anti-bot pages (lower case)
CHALLENGE_MARKERS: tuple[str, ...] = (
    "just a moment...",
    "attention required! | cloudflare",
    "checking your browser",
    "cf-browser-verification",
    "challenge-platform",
    "cf-chl-",
    "cf_chl_opt",
    "enable javascript and cookies to continue",
)


class ResponseClass:
    SUCCESS = "success"
    BLOCKED = "blocked"
    NETWORK = "network"
    HTTP_ERROR = "http_error"


def build_headers(
    user_agent: str, *, header_randomize: bool, accept_json: bool = False
) -> dict[str, str]:
    headers = {"User-Agent": user_agent}
    if accept_json:
        headers["Accept"] = "application/json, text/plain, */*"
    elif header_randomize:
        headers["Accept-Language"] = random.choice(ACCEPT_LANGUAGES)
        headers["Accept"] = random.choice(ACCEPT_HEADERS)
    return headers


def looks_like_challenge(body: Optional[str], title: Optional[str] = None) -> bool:
    """Return True if the markup (or page title) matches a known challenge page."""
    haystack = f"{title or ''}\n{(body or '')[:20000]}".lower()
    return any(marker in haystack for marker in CHALLENGE_MARKERS)


def classify_response(status: int, body: Optional[str]) -> str:
    if status in BLOCKING_STATUSES:
        return ResponseClass.BLOCKED
    if 200 <= status < 300:
        if looks_like_challenge(body):
            return ResponseClass.BLOCKED
        return ResponseClass.SUCCESS
    return ResponseClass.HTTP_ERROR


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry budget with exponential backoff plus jitter.

    Shared by every acquisition path (plain fetches and browser page loads),
    so all of them back off the same way.
    """

    attempts: int = 3
    backoff_base: float = 1.5
    backoff_cap: float = 30.0

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            attempts=settings.fetch_retry_budget,
            backoff_base=settings.fetch_backoff_base,
            backoff_cap=settings.fetch_backoff_cap,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay after the given (1-based) failed attempt."""
        if self.backoff_base <= 0:
            return 0.0
        delay = self.backoff_base * (2 ** max(0, attempt - 1))
        jitter = random.uniform(0, self.backoff_base)
        return min(delay + jitter, self.backoff_cap)

    async def backoff(self, attempt: int) -> float:
        delay = self.delay_for(attempt)
        if delay > 0:
            await asyncio.sleep(delay)
        return delay

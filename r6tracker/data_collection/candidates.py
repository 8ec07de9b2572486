"""
Candidate targets for a player's profile page.

The tracker serves the same daily overview under several hosts and path
shapes; the fetcher walks them in order until one yields a usable document.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

DEFAULT_PLATFORM = "ubi"

PLATFORM_ALIASES = {
    "ubi": "ubi",
    "uplay": "ubi",
    "pc": "ubi",
    "ubisoft": "ubi",
    "psn": "psn",
    "ps": "psn",
    "ps4": "psn",
    "ps5": "psn",
    "playstation": "psn",
    "xbl": "xbl",
    "xbox": "xbl",
    "xb": "xbl",
}

# (host, path template) in preference order
MIRRORS: tuple[tuple[str, str], ...] = (
    ("https://r6.tracker.network", "/r6siege/profile/{platform}/{username}/overview"),
    ("https://r6.tracker.network", "/r6siege/profile/{platform}/{username}/matches"),
    ("https://tracker.gg", "/r6siege/profile/{platform}/{username}/overview"),
    ("https://r6.tracker.network", "/profile/{platform}/{username}"),
)


def normalize_platform(hint: Optional[str], default: str = DEFAULT_PLATFORM) -> str:
    key = (hint or "").strip().lower()
    if not key:
        return PLATFORM_ALIASES.get(default, DEFAULT_PLATFORM)
    return PLATFORM_ALIASES.get(key, PLATFORM_ALIASES.get(default, DEFAULT_PLATFORM))


def resolve_candidates(
    username: str, platform_hint: Optional[str] = None, *, default_platform: str = DEFAULT_PLATFORM
) -> list[str]:
    """Ordered, de-duplicated profile URLs for ``username``. Never raises."""
    platform = normalize_platform(platform_hint, default_platform)
    encoded = quote((username or "").strip(), safe="")
    out: list[str] = []
    seen: set[str] = set()
    for host, template in MIRRORS:
        url = host + template.format(platform=platform, username=encoded)
        if url not in seen:
            seen.add(url)
            out.append(url)
    return out


def profile_url(username: str, platform_hint: Optional[str] = None) -> str:
    """Canonical, user-facing profile URL (first candidate)."""
    return resolve_candidates(username, platform_hint)[0]

"""Global pytest fixtures.

Centralizes:
 - Project root path insertion (so individual tests don't repeat sys.path hacks)
 - Reusable profile-page HTML snippets for both markup versions
 - Settings tuned for tests (no backoff, no inter-player delay)
"""

import sys
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

# Ensure project root (containing r6tracker/) is on sys.path once
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from r6tracker.core.config import Settings  # noqa: E402

TZ = ZoneInfo("America/Fortaleza")

# Sunday
NOW = datetime(2026, 10, 18, 20, 0, tzinfo=TZ)


# -------------------- Settings Fixtures -------------------- #

@pytest.fixture
def fast_settings(tmp_path):
    return Settings(
        timezone="America/Fortaleza",
        fetch_retry_budget=2,
        fetch_backoff_base=0,
        session_retry_cooldown_seconds=60,
        challenge_wait_budget=3,
        challenge_poll_interval_ms=0,
        inter_player_delay_seconds=0,
        browser_idle_timeout_seconds=0,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'tracker.db'}",
        schedule_sync_seconds=0.05,
    )


@pytest.fixture
def now():
    return NOW


# -------------------- HTML Fixtures -------------------- #

def _stat(name, value):
    return (
        '<div class="name-value">'
        f'<div class="stat-name"><span class="truncate">{name}</span></div>'
        f'<div class="stat-value"><span>{value}</span></div>'
        "</div>"
    )


def header_day(label, *, wins=None, losses=None, kd=None, kills=None, deaths=None, hs=None):
    parts = [f'<header><div class="text-18">{label}</div>']
    if wins is not None:
        parts.append(f'<span class="value text-green">{wins} W</span>')
    if losses is not None:
        parts.append(f'<span class="value text-red">{losses} L</span>')
    if kd is not None:
        parts.append(_stat("K/D", kd))
    if kills is not None:
        parts.append(_stat("K", kills))
    if deaths is not None:
        parts.append(_stat("D", deaths))
    if hs is not None:
        parts.append(_stat("HS%", f"{hs}%"))
    parts.append("</header>")
    return "".join(parts)


def match_row(outcome, kills, deaths, hs):
    return (
        f'<div class="v3-match-row v3-match-row--{outcome}">'
        + _stat("K", kills)
        + _stat("D", deaths)
        + _stat("HS%", f"{hs}%")
        + "</div>"
    )


def match_group(label, rows="", summary=""):
    return (
        '<div class="trn-gamereport-list__group">'
        f'<h3 class="trn-gamereport-list__title">{label}</h3>'
        f"{summary}{rows}</div>"
    )


@pytest.fixture
def header_v1_html():
    return (
        "<html><head><title>SomePlayer - R6 Tracker</title></head><body>"
        "<header><nav>Tracker Network</nav></header>"
        + header_day("Oct 18", wins=2, losses=1, kd="2.00", kills=20, deaths=10, hs=50)
        + header_day("Oct 17", wins=1, losses=1, kd="1.00", kills=10, deaths=10, hs=20)
        + header_day("Oct 16")
        + header_day("Oct 1", wins=1, losses=0, kills=5, deaths=1, hs="40.0")
        + "</body></html>"
    )


@pytest.fixture
def match_groups_html():
    return (
        "<html><body>"
        + match_group(
            "Oct 18",
            rows=match_row("win", 10, 5, 50) + match_row("loss", 0, 4, 0) + match_row("win", 10, 6, 30),
        )
        + match_group("Oct 17", summary=_stat("Wins", 1) + _stat("Losses", 2) + _stat("K", 7) + _stat("D", 9) + _stat("HS%", "28.5%"))
        + match_group("Not a date", rows=match_row("win", 1, 1, 100))
        + "</body></html>"
    )


@pytest.fixture
def challenge_html():
    return (
        "<html><head><title>Just a moment...</title></head>"
        "<body><div id='cf-browser-verification'>Checking your browser</div></body></html>"
    )

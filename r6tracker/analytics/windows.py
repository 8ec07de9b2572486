"""
Calendar windows in the configured timezone.

Rolling windows include today; canonical ones (previous week/month) are the
complete period strictly before the current one.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union
from zoneinfo import ZoneInfo

from r6tracker.core.config import settings
from r6tracker.domain.contracts import Window


class WindowKind(str, Enum):
    TODAY = "today"
    ROLLING_7 = "rolling7"
    ROLLING_30 = "rolling30"
    YESTERDAY = "yesterday"
    PREVIOUS_WEEK = "previous_week"
    PREVIOUS_MONTH = "previous_month"


WINDOW_LABELS = {
    WindowKind.TODAY: "Today",
    WindowKind.ROLLING_7: "Last 7 days",
    WindowKind.ROLLING_30: "Last 30 days",
    WindowKind.YESTERDAY: "Yesterday",
    WindowKind.PREVIOUS_WEEK: "Previous week",
    WindowKind.PREVIOUS_MONTH: "Previous month",
}

# Short names accepted from users, mirroring the day/week/month choices of the bot
WINDOW_ALIASES = {
    "day": WindowKind.TODAY,
    "week": WindowKind.ROLLING_7,
    "month": WindowKind.ROLLING_30,
}


def parse_kind(value: Union[str, WindowKind]) -> WindowKind:
    if isinstance(value, WindowKind):
        return value
    key = value.strip().lower().replace("-", "_")
    if key in WINDOW_ALIASES:
        return WINDOW_ALIASES[key]
    return WindowKind(key)


def resolve_window(
    kind: Union[str, WindowKind],
    now: Optional[datetime] = None,
    tz: Union[str, ZoneInfo, None] = None,
) -> Window:
    if tz is None:
        zone = settings.tz
    else:
        zone = tz if isinstance(tz, ZoneInfo) else ZoneInfo(tz)
    kind = parse_kind(kind)
    if now is None:
        now = datetime.now(zone)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=zone)
    else:
        now = now.astimezone(zone)
    today = now.date()

    if kind is WindowKind.TODAY:
        start, end = today, today
    elif kind is WindowKind.ROLLING_7:
        start, end = today - timedelta(days=6), today
    elif kind is WindowKind.ROLLING_30:
        start, end = today - timedelta(days=29), today
    elif kind is WindowKind.YESTERDAY:
        start = end = today - timedelta(days=1)
    elif kind is WindowKind.PREVIOUS_WEEK:
        this_monday = today - timedelta(days=today.weekday())
        start, end = this_monday - timedelta(days=7), this_monday - timedelta(days=1)
    elif kind is WindowKind.PREVIOUS_MONTH:
        end = today.replace(day=1) - timedelta(days=1)
        start = end.replace(day=1)
    else:  # pragma: no cover - exhaustive enum
        raise ValueError(f"unsupported window kind: {kind}")

    return Window(kind=kind.value, start=start, end=end, tz=zone)

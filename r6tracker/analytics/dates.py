"""
Resolve year-less day labels ("Oct 17", "Today") to calendar dates.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

# Labels never point further ahead than this; anything later is last year's
FUTURE_TOLERANCE = timedelta(days=2)

_MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
_MONTHS = {name: i for i, name in enumerate(_MONTH_NAMES, start=1)}
_MONTHS.update({name[:3]: i for name, i in list(_MONTHS.items())})
_MONTHS["sept"] = 9

# "Oct 17", "Oct. 17", "October 17", "Oct 17, 2025"
_LABEL_RE = re.compile(r"([A-Za-z]+)\.?\s+(\d{1,2})(?:,\s*(\d{4}))?")


def _reference_day(reference: Union[date, datetime]) -> date:
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def resolve_label(label: Optional[str], reference: Union[date, datetime]) -> Optional[date]:
    """Map a "Mon D" label to a date in the reference's year.

    A result more than two days after the reference is moved back one year
    (a December block seen in January). An explicit ", YYYY" suffix is taken
    as is. The whole label must be the date; returns None for anything else.
    """
    if not label:
        return None
    ref = _reference_day(reference)
    text = " ".join(label.split()).strip()
    lowered = text.lower()
    if lowered == "today":
        return ref
    if lowered == "yesterday":
        return ref - timedelta(days=1)

    m = _LABEL_RE.fullmatch(text)
    if not m:
        return None
    month = _MONTHS.get(m.group(1).lower())
    if month is None:
        return None
    day = int(m.group(2))
    if m.group(3):
        return _safe_date(int(m.group(3)), month, day)

    resolved = _safe_date(ref.year, month, day)
    if resolved is None:
        # Feb 29 outside a leap year can only mean the previous year
        resolved = _safe_date(ref.year - 1, month, day)
        return resolved if resolved is not None and resolved <= ref + FUTURE_TOLERANCE else None
    if resolved > ref + FUTURE_TOLERANCE:
        resolved = _safe_date(resolved.year - 1, month, day)
    return resolved


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None

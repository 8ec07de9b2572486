"""Per-markup-version block extractors."""

from __future__ import annotations

from typing import Dict, Type

from r6tracker.common.parsing import soup_from_html

from .base import BlockExtractor, DayTotals, read_stat
from .header_v1 import HeaderBlockExtractor
from .match_groups_v2 import MatchGroupExtractor

EXTRACTORS: Dict[str, Type[BlockExtractor]] = {
    HeaderBlockExtractor.version: HeaderBlockExtractor,
    MatchGroupExtractor.version: MatchGroupExtractor,
}

# Probe order for auto-detection; the first match wins
_DETECTION_ORDER = (MatchGroupExtractor, HeaderBlockExtractor)


def get_extractor(version: str = "auto", html: str | None = None) -> BlockExtractor:
    """Extractor for a named markup version, or the one matching html when "auto"."""
    if version != "auto":
        try:
            return EXTRACTORS[version]()
        except KeyError:
            raise ValueError(f"unknown extractor version: {version}") from None
    if html:
        soup = soup_from_html(html)
        for cls in _DETECTION_ORDER:
            extractor = cls()
            if extractor.matches(soup):
                return extractor
    return HeaderBlockExtractor()


__all__ = [
    "BlockExtractor",
    "DayTotals",
    "read_stat",
    "HeaderBlockExtractor",
    "MatchGroupExtractor",
    "EXTRACTORS",
    "get_extractor",
]

"""
Block extractor interface.

Every markup version yields ``(date_label, DayTotals)`` pairs; the base class
resolves labels to dates, drops unparseable ones and keeps the first section
seen for each date. Missing markup degrades to zeros, never to an exception.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup

from r6tracker.analytics.dates import resolve_label
from r6tracker.common.parsing import clean_text, node_text, soup_from_html
from r6tracker.domain.contracts import DailyBlock

logger = logging.getLogger("r6tracker.extractors")


@dataclass
class DayTotals:
    wins: int = 0
    losses: int = 0
    kills: int = 0
    deaths: int = 0
    headshot_pct: float = 0.0


def read_stat(root, label: str) -> Optional[str]:
    """Value text of the ``.name-value`` stat whose name equals label."""
    if root is None:
        return None
    for name in root.select(".name-value .stat-name .truncate"):
        if clean_text(name.get_text()) == label:
            container = name.find_parent(class_="name-value")
            value = container.select_one(".stat-value span") if container else None
            return node_text(value)
    return None


class BlockExtractor(ABC):
    version: str = ""

    @abstractmethod
    def matches(self, soup: BeautifulSoup) -> bool:
        """Whether the document looks like this markup version."""

    @abstractmethod
    def sections(self, soup: BeautifulSoup) -> Iterable[Tuple[Optional[str], DayTotals]]:
        """Yield (date label, totals) for each per-day section in page order."""

    def extract(self, html: str, reference: date) -> List[DailyBlock]:
        soup = soup_from_html(html)
        blocks: List[DailyBlock] = []
        seen = set()
        for label, totals in self.sections(soup):
            resolved = resolve_label(label, reference)
            if resolved is None:
                if label:
                    logger.debug(f"Skipping section with unparseable label {label!r}")
                continue
            if resolved in seen:
                continue
            seen.add(resolved)
            blocks.append(
                DailyBlock(
                    date_label=label,
                    resolved_date=resolved,
                    wins=totals.wins,
                    losses=totals.losses,
                    kills=totals.kills,
                    deaths=totals.deaths,
                    headshot_pct=totals.headshot_pct,
                )
            )
        logger.debug(f"{self.version}: extracted {len(blocks)} daily blocks")
        return blocks

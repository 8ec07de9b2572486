from __future__ import annotations

from bs4 import BeautifulSoup

from r6tracker.common.parsing import node_text, parse_decimal, parse_int

from .base import BlockExtractor, DayTotals, read_stat


class HeaderBlockExtractor(BlockExtractor):
    """Overview page where each day is a ``<header>`` with a date and summary stats.

    Wins and losses are the green/red badges ("1 W", "3 L"); kills, deaths and
    HS% are ``.name-value`` stats inside the header.
    """

    version = "header-v1"

    def matches(self, soup: BeautifulSoup) -> bool:
        return any(h.select_one(".text-18") is not None for h in soup.find_all("header"))

    def sections(self, soup: BeautifulSoup):
        for header in soup.find_all("header"):
            label = node_text(header.select_one(".text-18"))
            totals = DayTotals(
                wins=parse_int(node_text(header.select_one(".value.text-green"))) or 0,
                losses=parse_int(node_text(header.select_one(".value.text-red"))) or 0,
                kills=parse_int(read_stat(header, "K")) or 0,
                deaths=parse_int(read_stat(header, "D")) or 0,
                headshot_pct=parse_decimal(read_stat(header, "HS%")) or 0.0,
            )
            yield label, totals

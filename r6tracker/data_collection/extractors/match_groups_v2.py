from __future__ import annotations

from typing import List

from bs4 import BeautifulSoup

from r6tracker.common.parsing import node_text, parse_decimal, parse_int

from .base import BlockExtractor, DayTotals, read_stat

GROUP_SELECTOR = ".trn-gamereport-list__group"
TITLE_SELECTOR = ".trn-gamereport-list__title"
ROW_SELECTOR = ".v3-match-row"


def _row_outcome(row) -> str:
    classes = " ".join(row.get("class") or [])
    if "--win" in classes:
        return "win"
    if "--loss" in classes:
        return "loss"
    return ""


class MatchGroupExtractor(BlockExtractor):
    """Match history grouped by day, one ``.v3-match-row`` per match.

    Counts are summed across rows. A day without rows falls back to the
    group's own summary stats.
    """

    version = "match-groups-v2"

    def matches(self, soup: BeautifulSoup) -> bool:
        return soup.select_one(f"{GROUP_SELECTOR} {ROW_SELECTOR}") is not None

    def sections(self, soup: BeautifulSoup):
        for group in soup.select(GROUP_SELECTOR):
            label = node_text(group.select_one(TITLE_SELECTOR))
            rows = group.select(ROW_SELECTOR)
            if rows:
                yield label, self._from_rows(rows)
            else:
                yield label, self._from_summary(group)

    def _from_rows(self, rows: List) -> DayTotals:
        totals = DayTotals()
        hs_values: List[float] = []
        weighted = 0.0
        for row in rows:
            outcome = _row_outcome(row)
            if outcome == "win":
                totals.wins += 1
            elif outcome == "loss":
                totals.losses += 1
            kills = parse_int(read_stat(row, "K")) or 0
            deaths = parse_int(read_stat(row, "D")) or 0
            hs = parse_decimal(read_stat(row, "HS%"))
            totals.kills += kills
            totals.deaths += deaths
            if hs is not None:
                hs_values.append(hs)
                weighted += hs * kills
        if totals.kills > 0:
            totals.headshot_pct = weighted / totals.kills
        elif hs_values:
            totals.headshot_pct = sum(hs_values) / len(hs_values)
        return totals

    def _from_summary(self, group) -> DayTotals:
        return DayTotals(
            wins=parse_int(read_stat(group, "Wins")) or 0,
            losses=parse_int(read_stat(group, "Losses")) or 0,
            kills=parse_int(read_stat(group, "K")) or 0,
            deaths=parse_int(read_stat(group, "D")) or 0,
            headshot_pct=parse_decimal(read_stat(group, "HS%")) or 0.0,
        )

"""
Leaderboards over collected player summaries.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Iterable, List, Tuple

from r6tracker.domain.contracts import (
    AggregateSummary,
    CollectionResult,
    PlayerFailure,
    PlayerReport,
    RankingEntry,
    Rankings,
)

RANKING_METRICS: Dict[str, Callable[[AggregateSummary], float]] = {
    "kills": lambda s: s.kills,
    "deaths": lambda s: s.deaths,
    "kd": lambda s: s.kd,
    "headshot_pct": lambda s: s.headshot_pct,
    "wins": lambda s: s.wins,
}

RANKING_TITLES = {
    "kills": "Most kills",
    "deaths": "Most deaths",
    "kd": "Best K/D",
    "headshot_pct": "Best HS%",
    "wins": "Most wins",
}


def _sort_key(item: Tuple[PlayerReport, float]):
    report, value = item
    return (-value, -report.summary.kills, report.player.username.casefold())


def build_rankings(results: Iterable[CollectionResult], top_n: int = 5) -> Rankings:
    """Top ``top_n`` players per metric.

    Failed collections never enter a board. Non-finite values (kd of a
    deathless player) are left out of that metric's board only.
    """
    reports: List[PlayerReport] = []
    failed = 0
    for result in results:
        if isinstance(result, PlayerFailure):
            failed += 1
        else:
            reports.append(result)

    boards: Dict[str, List[RankingEntry]] = {}
    for metric, getter in RANKING_METRICS.items():
        scored = []
        for report in reports:
            value = float(getter(report.summary))
            if math.isfinite(value):
                scored.append((report, value))
        scored.sort(key=_sort_key)
        boards[metric] = [RankingEntry(player=r.player, value=v) for r, v in scored[:top_n]]

    return Rankings(boards=boards, considered=len(reports), failed=failed)

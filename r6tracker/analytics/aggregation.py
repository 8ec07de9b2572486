from __future__ import annotations

from typing import Iterable

from r6tracker.domain.contracts import AggregateSummary, DailyBlock, Window


def aggregate(blocks: Iterable[DailyBlock], window: Window, count_empty_days: bool = True) -> AggregateSummary:
    """Reduce the in-window blocks of one player into a summary.

    kd is kills/deaths, ``inf`` when kills were made without dying, 0 when
    there is no activity. Headshot % is weighted by kills.
    """
    wins = losses = kills = deaths = 0
    hs_weighted = 0.0
    active_days = idle_days = 0

    for block in blocks:
        if not window.contains(block.resolved_date):
            continue
        if block.is_empty:
            idle_days += 1
            continue
        active_days += 1
        wins += block.wins
        losses += block.losses
        kills += block.kills
        deaths += block.deaths
        hs_weighted += (block.headshot_pct / 100.0) * block.kills

    if deaths > 0:
        kd = kills / deaths
    elif kills > 0:
        kd = float("inf")
    else:
        kd = 0.0
    headshot_pct = (hs_weighted / kills) * 100.0 if kills > 0 else 0.0

    return AggregateSummary(
        wins=wins,
        losses=losses,
        kills=kills,
        deaths=deaths,
        kd=kd,
        headshot_pct=headshot_pct,
        days_covered=active_days + (idle_days if count_empty_days else 0),
        idle_days=idle_days,
    )

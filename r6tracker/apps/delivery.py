"""
Outbound delivery of reports and leaderboards.

The tracker only builds payloads; where they end up (a chat channel, the
console) is the business of a ``Delivery`` implementation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Protocol, runtime_checkable

import click

from r6tracker.analytics.rankings import RANKING_TITLES
from r6tracker.domain.contracts import CollectionResult, PlayerFailure, Rankings


@dataclass(frozen=True)
class ReportPayload:
    window_label: str
    result: CollectionResult


@dataclass(frozen=True)
class RankingPayload:
    window_label: str
    rankings: Rankings
    failures: List[PlayerFailure] = field(default_factory=list)

    @property
    def players(self) -> int:
        return self.rankings.total


@runtime_checkable
class Delivery(Protocol):
    async def deliver_report(self, channel_ref: str, payload: ReportPayload) -> None: ...

    async def deliver_ranking(self, channel_ref: str, payload: RankingPayload) -> None: ...


def format_kd(kd: float) -> str:
    if math.isinf(kd):
        return "∞"
    return f"{kd:.2f}"


def _format_value(metric: str, value: float) -> str:
    if metric == "kd":
        return format_kd(value)
    if metric == "headshot_pct":
        return f"{value:.1f}%"
    return str(int(value))


def format_report(payload: ReportPayload) -> str:
    result = payload.result
    if isinstance(result, PlayerFailure):
        return f"R6 {payload.window_label} - {result.player.username}: failed ({result.reason})"
    s = result.summary
    lines = [
        f"R6 {payload.window_label} - {result.player.username}",
        f"  {result.source_url}",
        f"  W/L:   {s.wins} W / {s.losses} L",
        f"  K/D:   {format_kd(s.kd)}",
        f"  K - D: {s.kills} - {s.deaths}",
        f"  HS%:   {s.headshot_pct:.1f}%",
        f"  Days:  {s.days_covered}",
    ]
    return "\n".join(lines)


def format_ranking(payload: RankingPayload) -> str:
    rankings = payload.rankings
    lines = [f"R6 Ranking {payload.window_label}"]
    if payload.players == 0:
        lines.append("  no tracked players")
        return "\n".join(lines)
    for metric in rankings:
        lines.append(f"{RANKING_TITLES.get(metric, metric)}:")
        entries = rankings[metric]
        if not entries:
            lines.append("  -")
        for pos, entry in enumerate(entries, start=1):
            lines.append(f"  {pos}. {entry.player.username} - {_format_value(metric, entry.value)}")
    if payload.failures:
        names = ", ".join(f.player.username for f in payload.failures)
        lines.append(f"{len(payload.failures)} of {payload.players} players failed: {names}")
    return "\n".join(lines)


class ConsoleDelivery:
    """Writes payloads to stdout, prefixed with the target channel."""

    async def deliver_report(self, channel_ref: str, payload: ReportPayload) -> None:
        click.echo(f"[{channel_ref}] {format_report(payload)}")

    async def deliver_ranking(self, channel_ref: str, payload: RankingPayload) -> None:
        click.echo(f"[{channel_ref}] {format_ranking(payload)}")

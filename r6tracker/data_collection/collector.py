"""
Collection of per-player window summaries.

Players of a group are processed one after another with a fixed delay in
between; a failing player becomes a ``PlayerFailure`` entry and never aborts
the batch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from r6tracker.analytics.aggregation import aggregate
from r6tracker.analytics.windows import WindowKind, resolve_window
from r6tracker.core.config import Settings
from r6tracker.data_collection.candidates import resolve_candidates
from r6tracker.data_collection.extractors import get_extractor
from r6tracker.data_collection.fetcher import ResilientFetcher
from r6tracker.database.services.players import PlayerStore
from r6tracker.domain.contracts import BatchStats, CollectionResult, PlayerFailure, PlayerRef, PlayerReport, Window
from r6tracker.domain.errors import AcquisitionError
from r6tracker.monitoring.prometheus_metrics import TrackerMetrics

WindowSpec = Union[Window, WindowKind, str]


class TrackerCollector:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        fetcher: ResilientFetcher,
        players: Optional[PlayerStore] = None,
        metrics: Optional[TrackerMetrics] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or Settings()
        self.fetcher = fetcher
        self.players = players
        self.metrics = metrics or TrackerMetrics()
        self.logger = logging.getLogger("r6tracker.collector")
        self._sleep = sleep

    def resolve(self, window_spec: WindowSpec, now: Optional[datetime] = None) -> Window:
        if isinstance(window_spec, Window):
            return window_spec
        return resolve_window(window_spec, now=now, tz=self.settings.tz)

    def _today(self, now: Optional[datetime]):
        tz = self.settings.tz
        if now is None:
            return datetime.now(tz).date()
        if now.tzinfo is None:
            return now.date()
        return now.astimezone(tz).date()

    async def collect_for_player(
        self,
        player: PlayerRef,
        window_spec: WindowSpec,
        *,
        now: Optional[datetime] = None,
        platform: Optional[str] = None,
    ) -> PlayerReport:
        """Fetch, extract and aggregate one player's stats for the window.

        Raises AcquisitionError (FetchBlocked) when the profile could not be
        retrieved; a fetch failure is never turned into a zeroed summary.
        """
        window = self.resolve(window_spec, now)
        candidates = resolve_candidates(player.username, platform, default_platform=self.settings.default_platform)
        started = time.perf_counter()
        try:
            document = await self.fetcher.fetch(candidates)
        except AcquisitionError:
            self.metrics.record_collection("failed", time.perf_counter() - started)
            raise

        extractor = get_extractor(self.settings.extractor_version, document.html)
        blocks = extractor.extract(document.html, self._today(now))
        summary = aggregate(blocks, window, count_empty_days=self.settings.count_empty_days)
        self.metrics.record_collection("success", time.perf_counter() - started)
        self.logger.info(
            f"Collected {player.username} ({window.kind}): {summary.days_covered} days, "
            f"{summary.kills} K / {summary.deaths} D"
        )
        return PlayerReport(player=player, source_url=document.url, summary=summary, window=window)

    async def collect_for_players(
        self,
        players: Sequence[PlayerRef],
        window_spec: WindowSpec,
        *,
        now: Optional[datetime] = None,
    ) -> List[CollectionResult]:
        window = self.resolve(window_spec, now)
        results: List[CollectionResult] = []
        for index, player in enumerate(players):
            if index > 0 and self.settings.inter_player_delay_seconds > 0:
                await self._sleep(self.settings.inter_player_delay_seconds)
            try:
                results.append(await self.collect_for_player(player, window, now=now))
            except AcquisitionError as e:
                self.logger.warning(f"Collection failed for {player.username}: {e.reason}")
                results.append(PlayerFailure(player=player, reason=e.reason, error_type=type(e).__name__))
            except Exception as e:
                self.logger.exception(f"Unexpected error collecting {player.username}")
                self.metrics.record_collection("failed")
                results.append(PlayerFailure(player=player, reason=str(e) or type(e).__name__, error_type=type(e).__name__))

        stats = BatchStats.from_results(results)
        self.logger.info(f"Batch finished: {stats.succeeded}/{stats.total} succeeded, {stats.failed} failed")
        return results

    async def collect_for_group(
        self, group_id: str, window_spec: WindowSpec, *, now: Optional[datetime] = None
    ) -> List[CollectionResult]:
        """Mixed list of reports and failures for every tracked player of the group."""
        if self.players is None:
            raise RuntimeError("collector has no player store")
        usernames = await self.players.list(group_id)
        refs = [PlayerRef(group_id=group_id, username=u) for u in usernames]
        return await self.collect_for_players(refs, window_spec, now=now)

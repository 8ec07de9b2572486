"""
Tracker App - wiring of acquisition, aggregation, persistence and schedules

Exposes the inbound operations used by the CLI (or any other frontend) and
the long-running service mode that keeps group schedules armed.
"""

import asyncio
import logging
import signal
from datetime import datetime
from typing import List, Optional, Tuple

from r6tracker.analytics.rankings import build_rankings
from r6tracker.analytics.windows import WINDOW_LABELS, WindowKind, parse_kind
from r6tracker.common.playwright_utils import SharedBrowser
from r6tracker.core.config import Settings
from r6tracker.data_collection.collector import TrackerCollector
from r6tracker.data_collection.fetcher import ResilientFetcher
from r6tracker.data_collection.session import SessionManager
from r6tracker.database.manager import DatabaseManager
from r6tracker.database.services.players import PlayerStore
from r6tracker.database.services.schedules import ScheduleStore
from r6tracker.domain.contracts import (
    CollectionResult,
    PlayerFailure,
    PlayerRef,
    PlayerReport,
    ScheduleEntry,
)
from r6tracker.monitoring.prometheus_metrics import TrackerMetrics

from .delivery import ConsoleDelivery, Delivery, RankingPayload, ReportPayload
from .scheduler import TRIGGER_WINDOWS, ScheduleManager, TriggerKind


class TrackerApp:
    """Main application object for the R6 tracker"""

    def __init__(
        self,
        settings: Settings = None,
        *,
        delivery: Optional[Delivery] = None,
        db_manager: Optional[DatabaseManager] = None,
        fetcher: Optional[ResilientFetcher] = None,
        metrics: Optional[TrackerMetrics] = None,
    ):
        self.settings = settings or Settings()
        self.db_manager = db_manager or DatabaseManager(self.settings.database_url)
        self.delivery = delivery or ConsoleDelivery()
        self.metrics = metrics or TrackerMetrics()
        self.players = PlayerStore(self.db_manager)
        self.schedule_store = ScheduleStore(self.db_manager)

        self.browser: Optional[SharedBrowser] = None
        self.session_manager: Optional[SessionManager] = None
        if fetcher is None:
            self.browser = SharedBrowser(
                headless=self.settings.browser_headless,
                executable_path=self.settings.browser_executable_path,
                idle_timeout_s=self.settings.browser_idle_timeout_seconds,
            )
            self.session_manager = SessionManager(self.settings, browser=self.browser, metrics=self.metrics)
            fetcher = ResilientFetcher(self.settings, session_manager=self.session_manager, metrics=self.metrics)
        self.fetcher = fetcher

        self.collector = TrackerCollector(
            self.settings, fetcher=self.fetcher, players=self.players, metrics=self.metrics
        )
        self.scheduler = ScheduleManager(
            self.settings, store=self.schedule_store, on_tick=self.run_scheduled_tick, metrics=self.metrics
        )

        self.shutdown_event = asyncio.Event()
        self.logger = logging.getLogger("r6tracker.app")

    async def initialize(self):
        try:
            self.logger.info("Initializing tracker app...")
            await self.db_manager.initialize()
            if self.settings.enable_metrics:
                self.metrics.start_server(self.settings.metrics_port)
            self.logger.info("Tracker app initialized")
        except Exception as e:
            self.logger.error(f"Failed to initialize tracker app: {e}")
            raise

    # Players

    async def add_player(self, group_id: str, username: str) -> Tuple[bool, int]:
        """Track a player; returns (newly added, players now tracked in the group)."""
        username = (username or "").strip()
        if not username:
            raise ValueError("username must not be empty")
        added = await self.players.add(PlayerRef(group_id=group_id, username=username))
        return added, await self.players.count(group_id)

    async def remove_player(self, group_id: str, username: str) -> bool:
        return await self.players.remove(PlayerRef(group_id=group_id, username=username.strip()))

    async def list_players(self, group_id: str) -> List[str]:
        return await self.players.list(group_id)

    # Reports

    async def report(
        self,
        group_id: str,
        username: str,
        window: str = WindowKind.TODAY,
        *,
        platform: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PlayerReport:
        ref = PlayerRef(group_id=group_id, username=username.strip())
        return await self.collector.collect_for_player(ref, parse_kind(window), now=now, platform=platform)

    async def ranking(
        self, group_id: str, window: str = WindowKind.TODAY, *, now: Optional[datetime] = None
    ) -> RankingPayload:
        kind = parse_kind(window)
        results = await self.collector.collect_for_group(group_id, kind, now=now)
        return self._ranking_payload(kind, results)

    def _ranking_payload(self, kind: WindowKind, results: List[CollectionResult]) -> RankingPayload:
        return RankingPayload(
            window_label=WINDOW_LABELS[kind],
            rankings=build_rankings(results, top_n=self.settings.ranking_top_n),
            failures=[r for r in results if isinstance(r, PlayerFailure)],
        )

    # Schedules

    async def program(self, group_id: str, channel_ref: str, time_of_day: str) -> ScheduleEntry:
        return await self.scheduler.program(group_id, channel_ref, time_of_day)

    async def cancel(self, group_id: str) -> bool:
        return await self.scheduler.cancel(group_id)

    async def schedules(self) -> List[ScheduleEntry]:
        return await self.schedule_store.list_all()

    async def run_scheduled_tick(self, entry: ScheduleEntry, kind: TriggerKind) -> None:
        """One tick: a report per player, then the group ranking, to the entry's channel."""
        window_kind = TRIGGER_WINDOWS[kind]
        label = WINDOW_LABELS[window_kind]
        self.logger.info(f"Running {kind.value} tick for group {entry.group_id}")
        results = await self.collector.collect_for_group(entry.group_id, window_kind)
        for result in results:
            await self.delivery.deliver_report(entry.channel_ref, ReportPayload(window_label=label, result=result))
        await self.delivery.deliver_ranking(entry.channel_ref, self._ranking_payload(window_kind, results))

    # Service mode

    def _setup_signal_handlers(self):
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            self.shutdown_event.set()

        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, signal_handler, signum)
            except (NotImplementedError, RuntimeError):
                signal.signal(signum, lambda s, _f: loop.call_soon_threadsafe(signal_handler, s))

    async def serve(self):
        """Restore persisted schedules, keep them in step with the store and run until shutdown."""
        try:
            await self.initialize()
            self._setup_signal_handlers()
            restored = await self.scheduler.restore()
            self.logger.info(f"Service running with {restored} scheduled groups")
            while not self.shutdown_event.is_set():
                try:
                    await asyncio.wait_for(self.shutdown_event.wait(), timeout=self.settings.schedule_sync_seconds)
                except asyncio.TimeoutError:
                    await self._sync_schedules()
        finally:
            await self.cleanup()

    async def _sync_schedules(self):
        try:
            await self.scheduler.sync()
        except Exception as e:
            self.logger.error(f"Schedule sync failed: {e}")

    async def shutdown(self):
        self.shutdown_event.set()

    async def cleanup(self):
        try:
            self.logger.info("Cleaning up resources...")
            await self.scheduler.shutdown()
            await self.fetcher.close()
            if self.session_manager is not None:
                await self.session_manager.close()
            await self.db_manager.close()
            self.logger.info("Resource cleanup completed")
        except Exception as e:
            self.logger.error(f"Cleanup failed: {e}")

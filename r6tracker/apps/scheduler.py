"""
Per-group recurring report schedules.

A programmed group owns three calendar triggers derived from its HH:mm time:
every day, every Monday and every first of the month. Each trigger is an
asyncio task that sleeps until its next fire time, runs the tick handler and
goes back to sleep; a failing tick is logged and the trigger keeps running.

Ticks of all groups run one at a time, so triggers that share an instant
(a Monday that is also the 1st) never overlap their acquisition batches. The
store is the source of truth: a tick whose entry no longer matches the stored
one is skipped, and ``sync`` re-arms triggers after another process programmed
or cancelled a group.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from r6tracker.analytics.windows import WindowKind
from r6tracker.core.config import Settings
from r6tracker.database.services.schedules import ScheduleStore
from r6tracker.domain.contracts import ScheduleEntry
from r6tracker.domain.errors import ScheduleValidationError
from r6tracker.monitoring.prometheus_metrics import TrackerMetrics

TIME_OF_DAY_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class TriggerKind(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


TRIGGER_WINDOWS = {
    TriggerKind.DAILY: WindowKind.TODAY,
    TriggerKind.WEEKLY: WindowKind.PREVIOUS_WEEK,
    TriggerKind.MONTHLY: WindowKind.PREVIOUS_MONTH,
}


class ScheduleState(str, Enum):
    UNSCHEDULED = "unscheduled"
    SCHEDULED = "scheduled"


TickHandler = Callable[[ScheduleEntry, TriggerKind], Awaitable[None]]


def validate_time_of_day(value: str) -> str:
    """Return the normalized 24h ``HH:mm`` string or raise ScheduleValidationError."""
    text = (value or "").strip()
    if not TIME_OF_DAY_RE.match(text):
        raise ScheduleValidationError(f"invalid time {value!r}, expected 24h HH:mm")
    return text


def _fires_on(kind: TriggerKind, day: date) -> bool:
    if kind is TriggerKind.WEEKLY:
        return day.weekday() == 0
    if kind is TriggerKind.MONTHLY:
        return day.day == 1
    return True


def next_fire_time(kind: TriggerKind, hour: int, minute: int, after: datetime, tz: ZoneInfo) -> datetime:
    """First fire time of the trigger strictly after ``after``, in tz."""
    after_utc = after.astimezone(timezone.utc)
    day = after.astimezone(tz).date()
    for _ in range(400):
        if _fires_on(kind, day):
            candidate = datetime.combine(day, time(hour, minute), tzinfo=tz)
            if candidate.astimezone(timezone.utc) > after_utc:
                return candidate
        day += timedelta(days=1)
    raise RuntimeError(f"no fire time found for {kind.value} at {hour:02d}:{minute:02d}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CalendarTrigger:
    """One recurring trigger of one group."""

    def __init__(
        self,
        entry: ScheduleEntry,
        kind: TriggerKind,
        handler: TickHandler,
        *,
        tz: ZoneInfo,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        metrics: Optional[TrackerMetrics] = None,
    ):
        self.entry = entry
        self.kind = kind
        self.tz = tz
        self.fired = 0
        self._handler = handler
        self._clock = clock
        self._sleep = sleep
        self._metrics = metrics
        self._last_fire: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None
        self.logger = logging.getLogger("r6tracker.scheduler")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_fire(self) -> datetime:
        after = self._clock()
        if self._last_fire is not None and self._last_fire > after:
            after = self._last_fire
        return next_fire_time(self.kind, self.entry.hour, self.entry.minute, after, self.tz)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"trigger:{self.entry.group_id}:{self.kind.value}"
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        if task is asyncio.current_task():
            task.cancel()
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            fire_at = self.next_fire()
            delay = (fire_at.astimezone(timezone.utc) - self._clock().astimezone(timezone.utc)).total_seconds()
            await self._sleep(max(0.0, delay))
            self._last_fire = fire_at
            self.fired += 1
            try:
                await self._handler(self.entry, self.kind)
            except asyncio.CancelledError:
                raise
            except Exception:
                self.logger.exception(
                    f"Scheduled {self.kind.value} tick failed for group {self.entry.group_id}"
                )
                self._record("failed")
            else:
                self._record("success")

    def _record(self, status: str) -> None:
        if self._metrics is not None:
            self._metrics.record_tick(self.kind.value, status)


class ScheduleManager:
    """Sole owner of the installed triggers of every group."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        store: ScheduleStore,
        on_tick: TickHandler,
        metrics: Optional[TrackerMetrics] = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or Settings()
        self.store = store
        self.metrics = metrics or TrackerMetrics()
        self.logger = logging.getLogger("r6tracker.scheduler")
        self._on_tick = on_tick
        self._clock = clock
        self._sleep = sleep
        self._triggers: Dict[str, List[CalendarTrigger]] = {}
        self._entries: Dict[str, ScheduleEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._tick_lock = asyncio.Lock()

    async def program(self, group_id: str, channel_ref: str, time_of_day: str) -> ScheduleEntry:
        """Persist the group's schedule and (re)install its triggers.

        Invalid times are rejected before anything is stored or installed.
        """
        entry = ScheduleEntry(group_id=group_id, channel_ref=channel_ref, time_of_day=validate_time_of_day(time_of_day))
        async with self._locks[group_id]:
            await self.store.upsert(entry)
            await self._install(entry)
        self.logger.info(f"Group {group_id} scheduled at {entry.time_of_day} -> {channel_ref}")
        return entry

    async def cancel(self, group_id: str) -> bool:
        """Stop the group's triggers and forget its schedule; False if it had none."""
        async with self._locks[group_id]:
            had_triggers = await self._uninstall(group_id)
            deleted = await self.store.delete(group_id)
        if had_triggers or deleted:
            self.logger.info(f"Schedule cancelled for group {group_id}")
        return had_triggers or deleted

    async def restore(self) -> int:
        """Re-arm triggers for every persisted schedule without writing them back."""
        restored = 0
        for entry in await self.store.list_all():
            try:
                validate_time_of_day(entry.time_of_day)
            except ScheduleValidationError as e:
                self.logger.warning(f"Skipping stored schedule of group {entry.group_id}: {e}")
                continue
            async with self._locks[entry.group_id]:
                await self._install(entry)
            restored += 1
        self.logger.info(f"Restored {restored} schedules")
        return restored

    def state(self, group_id: str) -> ScheduleState:
        if self._triggers.get(group_id):
            return ScheduleState.SCHEDULED
        return ScheduleState.UNSCHEDULED

    def installed(self, group_id: str) -> List[TriggerKind]:
        return [t.kind for t in self._triggers.get(group_id, [])]

    def entry(self, group_id: str) -> Optional[ScheduleEntry]:
        return self._entries.get(group_id)

    def triggers(self, group_id: str) -> List[CalendarTrigger]:
        return list(self._triggers.get(group_id, []))

    async def run_tick(self, group_id: str, kind: TriggerKind = TriggerKind.DAILY) -> None:
        """Run a group's tick pipeline right away, outside of its calendar."""
        entry = self._entries.get(group_id) or await self.store.get(group_id)
        if entry is None:
            raise KeyError(f"group {group_id} has no schedule")
        async with self._tick_lock:
            await self._on_tick(entry, kind)

    async def sync(self) -> int:
        """Bring installed triggers in line with the store.

        Picks up schedules programmed, changed or cancelled by another process.
        Returns the number of groups whose triggers were (re)installed or removed.
        """
        group_ids = {e.group_id for e in await self.store.list_all()} | set(self._triggers)
        changed = 0
        for group_id in sorted(group_ids):
            async with self._locks[group_id]:
                entry = await self.store.get(group_id)
                if entry == self._entries.get(group_id):
                    continue
                if entry is None:
                    await self._uninstall(group_id)
                    self.logger.info(f"Schedule of group {group_id} was cancelled, triggers stopped")
                elif not TIME_OF_DAY_RE.match(entry.time_of_day):
                    continue
                else:
                    await self._install(entry)
                    self.logger.info(f"Group {group_id} now scheduled at {entry.time_of_day} -> {entry.channel_ref}")
                changed += 1
        return changed

    async def _fire(self, entry: ScheduleEntry, kind: TriggerKind) -> None:
        if await self.store.get(entry.group_id) != entry:
            self.logger.info(f"Skipping {kind.value} tick of group {entry.group_id}: schedule changed or cancelled")
            return
        async with self._tick_lock:
            await self._on_tick(entry, kind)

    async def shutdown(self) -> None:
        """Stop every trigger; persisted schedules are kept for the next start."""
        for group_id in list(self._triggers):
            await self._uninstall(group_id)

    async def _install(self, entry: ScheduleEntry) -> None:
        await self._uninstall(entry.group_id)
        triggers = [
            CalendarTrigger(
                entry,
                kind,
                self._fire,
                tz=self.settings.tz,
                clock=self._clock,
                sleep=self._sleep,
                metrics=self.metrics,
            )
            for kind in TriggerKind
        ]
        for trigger in triggers:
            trigger.start()
        self._triggers[entry.group_id] = triggers
        self._entries[entry.group_id] = entry
        self.logger.debug(f"Installed {len(triggers)} triggers for group {entry.group_id}")

    async def _uninstall(self, group_id: str) -> bool:
        triggers = self._triggers.pop(group_id, [])
        self._entries.pop(group_id, None)
        for trigger in triggers:
            await trigger.stop()
        return bool(triggers)

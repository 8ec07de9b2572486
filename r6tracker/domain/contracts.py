from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union
from zoneinfo import ZoneInfo

# Typed data transfer objects shared across layers


@dataclass(frozen=True)
class PlayerRef:
    group_id: str
    username: str

    def __str__(self) -> str:
        return self.username


@dataclass(frozen=True)
class DailyBlock:
    date_label: str
    resolved_date: date
    wins: int = 0
    losses: int = 0
    kills: int = 0
    deaths: int = 0
    headshot_pct: float = 0.0

    @property
    def is_empty(self) -> bool:
        """Labelled day without any recorded activity."""
        return not (self.wins or self.losses or self.kills or self.deaths)


@dataclass(frozen=True)
class SessionToken:
    cookies: Dict[str, str]
    acquired_at: datetime
    ttl: timedelta
    user_agent: Optional[str] = None

    def expires_at(self) -> datetime:
        return self.acquired_at + self.ttl

    def is_valid(self, now: datetime) -> bool:
        return now <= self.expires_at()

    def merged(self, cookies: Dict[str, str], now: datetime) -> "SessionToken":
        """New token carrying these cookies on top of the current ones, re-stamped at now."""
        combined = dict(self.cookies)
        combined.update(cookies)
        return SessionToken(cookies=combined, acquired_at=now, ttl=self.ttl, user_agent=self.user_agent)


@dataclass(frozen=True)
class Document:
    url: str
    html: str
    status: int = 200


@dataclass(frozen=True)
class Window:
    kind: str
    start: date
    end: date
    tz: ZoneInfo

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"window start {self.start} is after end {self.end}")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: Union[date, datetime]) -> bool:
        if isinstance(day, datetime):
            if day.tzinfo is not None:
                day = day.astimezone(self.tz)
            day = day.date()
        return self.start <= day <= self.end


@dataclass(frozen=True)
class AggregateSummary:
    wins: int = 0
    losses: int = 0
    kills: int = 0
    deaths: int = 0
    kd: float = 0.0
    headshot_pct: float = 0.0
    days_covered: int = 0
    idle_days: int = 0

    @property
    def matches(self) -> int:
        return self.wins + self.losses

    @property
    def kd_is_infinite(self) -> bool:
        return math.isinf(self.kd)


@dataclass(frozen=True)
class PlayerReport:
    player: PlayerRef
    source_url: str
    summary: AggregateSummary
    window: Window

    ok = True


@dataclass(frozen=True)
class PlayerFailure:
    player: PlayerRef
    reason: str
    error_type: str = "AcquisitionError"

    ok = False


CollectionResult = Union[PlayerReport, PlayerFailure]


@dataclass(frozen=True)
class RankingEntry:
    player: PlayerRef
    value: float


@dataclass
class Rankings:
    boards: Dict[str, List[RankingEntry]]
    considered: int = 0
    failed: int = 0

    def __getitem__(self, metric: str) -> List[RankingEntry]:
        return self.boards[metric]

    def __iter__(self):
        return iter(self.boards)

    @property
    def total(self) -> int:
        return self.considered + self.failed


@dataclass(frozen=True)
class ScheduleEntry:
    group_id: str
    channel_ref: str
    time_of_day: str  # "HH:mm" (24h)

    @property
    def hour(self) -> int:
        return int(self.time_of_day.split(":")[0])

    @property
    def minute(self) -> int:
        return int(self.time_of_day.split(":")[1])


@dataclass
class BatchStats:
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: List[PlayerFailure] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: List[Any]) -> "BatchStats":
        failures = [r for r in results if isinstance(r, PlayerFailure)]
        return cls(
            total=len(results),
            succeeded=len(results) - len(failures),
            failed=len(failures),
            failures=failures,
        )

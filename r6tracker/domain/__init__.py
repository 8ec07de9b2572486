"""Typed records and error taxonomy shared across layers."""

from .contracts import (
    AggregateSummary,
    DailyBlock,
    Document,
    PlayerFailure,
    PlayerRef,
    PlayerReport,
    RankingEntry,
    Rankings,
    ScheduleEntry,
    SessionToken,
    Window,
)
from .errors import (
    AcquisitionError,
    FetchBlocked,
    NetworkError,
    ScheduleValidationError,
    SessionUnavailable,
    TrackerError,
)

__all__ = [
    "AggregateSummary",
    "DailyBlock",
    "Document",
    "PlayerFailure",
    "PlayerRef",
    "PlayerReport",
    "RankingEntry",
    "Rankings",
    "ScheduleEntry",
    "SessionToken",
    "Window",
    "AcquisitionError",
    "FetchBlocked",
    "NetworkError",
    "ScheduleValidationError",
    "SessionUnavailable",
    "TrackerError",
]

"""Application layer: schedules, delivery, wiring and CLI."""

from .delivery import ConsoleDelivery, Delivery, RankingPayload, ReportPayload
from .scheduler import ScheduleManager, ScheduleState, TriggerKind
from .tracker_app import TrackerApp

__all__ = [
    "ConsoleDelivery",
    "Delivery",
    "RankingPayload",
    "ReportPayload",
    "ScheduleManager",
    "ScheduleState",
    "TriggerKind",
    "TrackerApp",
]

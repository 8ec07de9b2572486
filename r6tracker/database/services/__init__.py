from .players import PlayerStore
from .schedules import ScheduleStore

__all__ = ["PlayerStore", "ScheduleStore"]

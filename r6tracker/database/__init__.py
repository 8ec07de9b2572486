from .manager import DatabaseManager
from .schema import Base, ScheduleRow, TrackedPlayer

__all__ = ["DatabaseManager", "Base", "ScheduleRow", "TrackedPlayer"]

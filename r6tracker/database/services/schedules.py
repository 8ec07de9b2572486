"""
Database services for per-group report schedules (one row per group).
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import delete, select

from r6tracker.domain.contracts import ScheduleEntry

from ..manager import DatabaseManager
from ..schema import ScheduleRow


def _to_entry(row: ScheduleRow) -> ScheduleEntry:
    return ScheduleEntry(group_id=row.group_id, channel_ref=row.channel_ref, time_of_day=row.time_of_day)


class ScheduleStore:
    def __init__(self, db: DatabaseManager):
        self.db = db

    async def upsert(self, entry: ScheduleEntry) -> None:
        """Insert or fully replace the group's schedule."""
        async with self.db.session() as s:
            await s.merge(
                ScheduleRow(group_id=entry.group_id, channel_ref=entry.channel_ref, time_of_day=entry.time_of_day)
            )

    async def get(self, group_id: str) -> Optional[ScheduleEntry]:
        async with self.db.session() as s:
            row = await s.get(ScheduleRow, group_id)
            return _to_entry(row) if row is not None else None

    async def delete(self, group_id: str) -> bool:
        async with self.db.session() as s:
            result = await s.execute(delete(ScheduleRow).where(ScheduleRow.group_id == group_id))
        return bool(result.rowcount)

    async def list_all(self) -> List[ScheduleEntry]:
        async with self.db.session() as s:
            rows = await s.scalars(select(ScheduleRow).order_by(ScheduleRow.group_id))
            return [_to_entry(r) for r in rows]

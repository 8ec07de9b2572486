"""
Database services for tracked players.
"""

from __future__ import annotations

from typing import List

from sqlalchemy import delete, func, select

from r6tracker.domain.contracts import PlayerRef

from ..manager import DatabaseManager
from ..schema import TrackedPlayer


class PlayerStore:
    def __init__(self, db: DatabaseManager):
        self.db = db

    async def add(self, ref: PlayerRef) -> bool:
        """Insert-or-ignore; True when the player was not tracked yet."""
        async with self.db.session() as s:
            existing = await s.get(TrackedPlayer, (ref.group_id, ref.username))
            if existing is not None:
                return False
            s.add(TrackedPlayer(group_id=ref.group_id, username=ref.username))
        return True

    async def remove(self, ref: PlayerRef) -> bool:
        async with self.db.session() as s:
            result = await s.execute(
                delete(TrackedPlayer).where(
                    TrackedPlayer.group_id == ref.group_id,
                    TrackedPlayer.username == ref.username,
                )
            )
        return bool(result.rowcount)

    async def list(self, group_id: str) -> List[str]:
        """Usernames of a group ordered case-insensitively."""
        async with self.db.session() as s:
            rows = await s.execute(
                select(TrackedPlayer.username)
                .where(TrackedPlayer.group_id == group_id)
                .order_by(func.lower(TrackedPlayer.username), TrackedPlayer.username)
            )
            return [r[0] for r in rows]

    async def count(self, group_id: str) -> int:
        async with self.db.session() as s:
            total = await s.scalar(
                select(func.count()).select_from(TrackedPlayer).where(TrackedPlayer.group_id == group_id)
            )
        return int(total or 0)

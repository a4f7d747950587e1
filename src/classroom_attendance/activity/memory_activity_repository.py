from __future__ import annotations

from typing import Sequence

from ..database.memory_base import MemoryDatabase
from .model import ActivityEvent
from .repository import ActivityLogRepository


class MemoryActivityLogRepository(ActivityLogRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def append(self, event: ActivityEvent) -> None:
        with self._db.transaction() as db:
            db.activity_logs.append(
                {
                    "id": db.next_id("activity_logs"),
                    "user_id": event.user_id,
                    "action_type": event.action.value,
                    "description": event.description[:500],
                    "created_at": db.now(),
                }
            )

    def list_recent(self, *, limit: int = 50) -> Sequence[dict]:
        with self._db.transaction() as db:
            return list(reversed(db.activity_logs))[: int(limit)]

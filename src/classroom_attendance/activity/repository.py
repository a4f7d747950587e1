from __future__ import annotations

from typing import Protocol, Sequence

from .model import ActivityEvent


class ActivityLogRepository(Protocol):
    def append(self, event: ActivityEvent) -> None:
        raise NotImplementedError

    def list_recent(self, *, limit: int = 50) -> Sequence[dict]:
        raise NotImplementedError

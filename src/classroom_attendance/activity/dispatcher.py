from __future__ import annotations

from typing import Iterable

from ..common.logging import get_logger
from .model import ActivityEvent
from .repository import ActivityLogRepository

logger = get_logger(__name__)


class ActivityDispatcher:
    """Runs the ordered side effects a service returned, after its transaction committed.

    A failing audit write is logged and skipped; it never fails the request.
    """

    def __init__(self, logs: ActivityLogRepository):
        self._logs = logs

    def dispatch(self, events: Iterable[ActivityEvent]) -> int:
        written = 0
        for event in events:
            try:
                self._logs.append(event)
                written += 1
            except Exception:
                logger.exception("failed to write activity log: %s %s", event.action.value, event.description)
        return written
